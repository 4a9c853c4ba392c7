# backend/app/schemas/__init__.py
"""Pydantic Schema 模組"""

from app.schemas.report import (
    ApiResponse,
    ComparisonRequest,
    ComparisonResult,
    Deviation,
    PaginatedReportsQuery,
    PaginatedReportsResult,
    ReportRequest,
    WeatherCacheEntry,
    WeatherReading,
    WeatherReport,
)

__all__ = [
    "ApiResponse",
    "ComparisonRequest",
    "ComparisonResult",
    "Deviation",
    "PaginatedReportsQuery",
    "PaginatedReportsResult",
    "ReportRequest",
    "WeatherCacheEntry",
    "WeatherReading",
    "WeatherReport",
]
