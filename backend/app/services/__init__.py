"""服務模組

包含各種業務邏輯服務。
"""

from app.services.coalescer import CoalescingWeatherSource, RequestCoalescer
from app.services.openweather import OpenWeatherClient, WeatherSource
from app.services.report import ReportService

__all__ = [
    "CoalescingWeatherSource",
    "OpenWeatherClient",
    "ReportService",
    "RequestCoalescer",
    "WeatherSource",
]
