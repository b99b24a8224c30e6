from app.schemas.review import (
    CsvImportResponse,
    Issue,
    MetricPoint,
    MetricsResponse,
    OverviewStats,
    ReviewInsertResponse,
    ReviewRead,
    StoreSummary,
    SummaryStats,
)

__all__ = [
    "CsvImportResponse",
    "Issue",
    "MetricPoint",
    "MetricsResponse",
    "OverviewStats",
    "ReviewInsertResponse",
    "ReviewRead",
    "StoreSummary",
    "SummaryStats",
]
