from .metric_delta import get_histogram_count, histogram_observes, metric_delta, sample_value
from .rustdoc_pages import all_items_page, item_page_html, method_section, module_page

__all__ = [
    "all_items_page",
    "get_histogram_count",
    "histogram_observes",
    "item_page_html",
    "method_section",
    "metric_delta",
    "module_page",
    "sample_value",
]
