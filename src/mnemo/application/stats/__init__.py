# Application Stats Package
from .aggregator import ProgressReport, ProgressSummary, StatisticsAggregator, summarize
from .export import export_progress

__all__ = [
    "ProgressSummary",
    "ProgressReport",
    "StatisticsAggregator",
    "summarize",
    "export_progress",
]
