"""
Dependency injection container wiring the cache, fetch layer, resolver and registry.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from functools import partial
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, Generic, Optional, TypeVar

import structlog
import yaml
from pydantic import ValidationError
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from cratedocs.cache import ResponseCache
from cratedocs.config import Config, load_config
from cratedocs.fetch import DocumentService, HttpClient
from cratedocs.index import ItemResolver
from cratedocs.observability import MetricsManager, configure_logging
from cratedocs.registry import RegistryClient
from cratedocs.service import DocsService

T = TypeVar("T")


class LazyInstance(Generic[T]):
    """Builds its instance on first ``get``; awaits ``initialize``/``close`` when the instance has them."""

    def __init__(self, factory: Callable[[], T]) -> None:
        self._factory = factory
        self._instance: Optional[T] = None

    @property
    def created(self) -> bool:
        return self._instance is not None

    async def get(self) -> T:
        if self._instance is None:
            instance = self._factory()
            initialize = getattr(instance, "initialize", None)
            if initialize is not None:
                await initialize()
            self._instance = instance
        return self._instance

    async def cleanup(self) -> None:
        instance, self._instance = self._instance, None
        close = getattr(instance, "close", None)
        if close is not None:
            await close()


class ConfigWatcher(FileSystemEventHandler):
    """Watches the configuration file for changes."""

    def __init__(self, container: DependencyContainer, loop: asyncio.AbstractEventLoop) -> None:
        self.container = container
        self.loop = loop
        self.logger = structlog.get_logger(self.__class__.__name__)

    def on_modified(self, event: FileSystemEvent) -> None:
        if event.is_directory or not self.container.config_path:
            return
        if Path(str(event.src_path)).name == self.container.config_path.name:
            self.logger.info("Configuration file changed, reloading", path=event.src_path)
            # watchdog calls back from its own thread
            asyncio.run_coroutine_threadsafe(self.container.reload_config(), self.loop)


class DependencyContainer:
    """
    Owns one response cache and the services built on it.

    The cache is created with the configuration and shared by the document
    service and the registry client; services are built on first use and
    rebuilt (with a fresh cache) when the configuration is reloaded.
    """

    def __init__(self, config_path: Optional[Path] = None, config: Optional[Config] = None) -> None:
        self.config_path = config_path
        self.config: Optional[Config] = config
        self.logger = structlog.get_logger(self.__class__.__name__)

        self.cache: Optional[ResponseCache] = None
        self._instances: Dict[str, LazyInstance[Any]] = {}
        self._services: Dict[str, Any] = {}
        self._instances_lock = asyncio.Lock()
        self._observer: Optional[Any] = None
        self._metrics: Optional[MetricsManager] = None
        self.is_running = False

    async def initialize(self) -> None:
        """Load configuration, set up logging and metrics, and create instances."""
        if self.config is None:
            self.config = self._read_config()
        configure_logging(self.config.monitoring)
        self._metrics = MetricsManager(self.config.monitoring)
        self._metrics.start()

        await self._create_instances()
        self._setup_config_watching()
        self.is_running = True

        self.logger.info(
            "Dependency container initialized",
            config_path=str(self.config_path) if self.config_path else "default",
        )

    def _read_config(self) -> Config:
        return load_config(self.config_path)

    async def _create_instances(self) -> None:
        if self.config is None:
            raise RuntimeError("Configuration must be loaded before creating instances")

        await self._cleanup_instances()
        self.cache = ResponseCache.from_config(self.config.cache)
        self._services.clear()
        self._instances = {"http_client": LazyInstance(partial(HttpClient, self.config.fetcher))}

    async def reload_config(self) -> None:
        """Hot-reload configuration and rebuild services; an invalid file keeps the current setup."""
        old_config = self.config
        try:
            new_config = self._read_config()
        except (ValidationError, yaml.YAMLError, FileNotFoundError) as e:
            self.logger.error("Configuration reload failed, keeping current settings", error=str(e))
            return
        async with self._instances_lock:
            self.config = new_config
            await self._create_instances()
        self.logger.info("Configuration reloaded", changes_detected=old_config != self.config)

    async def get_http_client(self) -> HttpClient:
        async with self._instances_lock:
            return await self._instances["http_client"].get()

    async def get_docs_service(self) -> DocsService:
        """The fully wired docs service; built once per configuration."""
        http_client = await self.get_http_client()
        async with self._instances_lock:
            if "docs" not in self._services:
                assert self.config is not None and self.cache is not None
                documents = DocumentService(http_client, self.cache)
                resolver = ItemResolver(documents, self.config.resolver, self.config.service)
                registry = RegistryClient(http_client, self.cache, self.config.service)
                self._services.update(
                    documents=documents,
                    resolver=resolver,
                    registry=registry,
                    docs=DocsService(documents, resolver, registry, self.config.service),
                )
            return self._services["docs"]

    async def get_registry(self) -> RegistryClient:
        await self.get_docs_service()
        return self._services["registry"]

    async def get_resolver(self) -> ItemResolver:
        await self.get_docs_service()
        return self._services["resolver"]

    @asynccontextmanager
    async def lifecycle(self) -> AsyncIterator[DependencyContainer]:
        """Context manager for proper lifecycle management."""
        try:
            await self.initialize()
            yield self
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Graceful shutdown of all managed instances."""
        if not self.is_running:
            return

        self.logger.info("Shutting down dependency container")
        if self._observer:
            self._observer.stop()
            self._observer.join()
            self._observer = None

        await self._cleanup_instances()
        self.is_running = False
        self.logger.info("Dependency container shutdown complete")

    def _setup_config_watching(self) -> None:
        if not self.config_path or self._observer is not None:
            return
        self._observer = Observer()
        handler = ConfigWatcher(self, asyncio.get_running_loop())
        self._observer.schedule(handler, str(self.config_path.parent), recursive=False)
        self._observer.start()

    async def _cleanup_instances(self) -> None:
        documents = self._services.get("documents")
        if documents is not None:
            await documents.close()
        for name, instance in self._instances.items():
            try:
                await instance.cleanup()
            except Exception as e:
                self.logger.error("Error cleaning up instance", instance=name, error=str(e))

    def get_health_status(self) -> Dict[str, Any]:
        return {
            "is_running": self.is_running,
            "config_loaded": self.config is not None,
            "cache": self.cache.stats() if self.cache is not None else None,
            "instances": {name: instance.created for name, instance in self._instances.items()},
            "config_path": str(self.config_path) if self.config_path else None,
        }
