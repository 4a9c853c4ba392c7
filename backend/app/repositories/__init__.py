"""資料存取模組

每個儲存介面以 Protocol 定義，並提供 SQLAlchemy 實作。
"""

from app.repositories.report import ReportStore, SqlReportRepository
from app.repositories.weather_cache import SqlWeatherCacheRepository, WeatherCacheStore

__all__ = [
    "ReportStore",
    "SqlReportRepository",
    "WeatherCacheStore",
    "SqlWeatherCacheRepository",
]
