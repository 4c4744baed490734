from .pagination import PageRequest, build_page, total_pages
from .periods import PERIODS, day_range, stats_window, utcnow

__all__ = ["PageRequest", "build_page", "total_pages", "PERIODS", "day_range", "stats_window", "utcnow"]
