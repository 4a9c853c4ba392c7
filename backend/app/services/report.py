"""天氣報告服務

負責報告的產生、查詢與比較：
- 產生報告時優先使用天氣快取，快取未命中才呼叫上游 API
- 觀測時間距今 10 分鐘內使用即時資料，更早則使用歷史資料
- 報告寫入成功後順帶寫入快取（失敗僅記錄，不影響結果）
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from app.config import settings
from app.errors import (
    FirstReportUnavailable,
    ReportPersistFailed,
    SecondReportUnavailable,
    StoreError,
    UpstreamError,
    WeatherFetchFailed,
)
from app.repositories.report import ReportStore
from app.repositories.weather_cache import WeatherCacheStore
from app.schemas.report import (
    ComparisonResult,
    Deviation,
    PaginatedReportsQuery,
    PaginatedReportsResult,
    WeatherCacheEntry,
    WeatherReading,
    WeatherReport,
)
from app.services.openweather import WeatherSource
from app.utils.timeutil import ensure_utc, utc_now


logger = logging.getLogger(__name__)

# 距今多久以內視為「目前」天氣
CURRENT_WEATHER_THRESHOLD = timedelta(minutes=10)

# 產生報告時快取比對的時間窗口（分鐘）
REPORT_CACHE_WINDOW_MINUTES = 1


def compute_deviation(report1: WeatherReport, report2: WeatherReport) -> Deviation:
    """計算兩份報告各欄位的絕對差值"""
    return Deviation(
        temperature=abs(report2.temperature - report1.temperature),
        pressure=abs(report2.pressure - report1.pressure),
        humidity=abs(report2.humidity - report1.humidity),
        cloud_cover=abs(report2.cloud_cover - report1.cloud_cover),
    )


class ReportService:
    """天氣報告服務

    Attributes:
        reports: 報告儲存
        weather_cache: 天氣快取儲存
        weather_source: 天氣資料來源（應已包裝請求合併）
        cache_ttl: 快取有效時間
        clock: 取得目前時間的函式
    """

    def __init__(
        self,
        reports: ReportStore,
        weather_cache: WeatherCacheStore,
        weather_source: WeatherSource,
        cache_ttl: Optional[timedelta] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.reports = reports
        self.weather_cache = weather_cache
        self.weather_source = weather_source
        if cache_ttl is None:
            cache_ttl = timedelta(minutes=settings.weather_cache_ttl_minutes)
        if cache_ttl <= timedelta(0):
            raise ValueError(f"cache_ttl 必須大於 0: {cache_ttl}")
        self.cache_ttl = cache_ttl
        self.clock = clock

    async def generate_report(self, timestamp: Optional[datetime] = None) -> WeatherReport:
        """產生天氣報告

        Args:
            timestamp: 觀測時間，None 表示目前時間

        Returns:
            報告（快取命中時使用快取的 ID 與讀數）

        Raises:
            WeatherFetchFailed: 上游取得天氣資料失敗
            ReportPersistFailed: 報告寫入失敗
        """
        now = self.clock()
        timestamp = ensure_utc(timestamp) if timestamp is not None else now

        cached = self._find_cached(timestamp)
        if cached is not None:
            logger.info("天氣快取命中: %s", timestamp.isoformat())
            return WeatherReport.from_reading(
                cached.reading,
                timestamp=timestamp,
                created_at=cached.created_at,
                id=cached.id,
            )

        logger.debug("天氣快取未命中: %s", timestamp.isoformat())
        reading = await self._fetch_weather(timestamp, now)

        report = WeatherReport.from_reading(reading, timestamp=timestamp, created_at=self.clock())
        try:
            report.id = self.reports.insert(report)
        except StoreError as e:
            raise ReportPersistFailed("無法儲存報告", cause=e) from e

        self._write_through(timestamp, reading, report.created_at)
        return report

    async def get_all_reports(self) -> list[WeatherReport]:
        return self.reports.find_all()

    async def get_paginated_reports(self, query: PaginatedReportsQuery) -> PaginatedReportsResult:
        return self.reports.find_paginated(query)

    async def get_report_by_id(self, report_id: str) -> WeatherReport:
        return self.reports.find_by_id(report_id)

    async def compare_reports(self, report_id1: str, report_id2: str) -> ComparisonResult:
        """比較兩份報告

        Raises:
            FirstReportUnavailable: 無法載入第一份報告
            SecondReportUnavailable: 無法載入第二份報告
        """
        try:
            report1 = self.reports.find_by_id(report_id1)
        except StoreError as e:
            raise FirstReportUnavailable(f"無法取得第一份報告: {e}", cause=e) from e

        try:
            report2 = self.reports.find_by_id(report_id2)
        except StoreError as e:
            raise SecondReportUnavailable(f"無法取得第二份報告: {e}", cause=e) from e

        return ComparisonResult(
            report1=report1,
            report2=report2,
            deviation=compute_deviation(report1, report2),
        )

    async def purge_expired_cache(self) -> int:
        """刪除已過期的天氣快取，回傳刪除筆數"""
        return self.weather_cache.delete_expired(self.clock())

    # Helpers ------------------------------------------------------------

    def _find_cached(self, timestamp: datetime) -> Optional[WeatherCacheEntry]:
        try:
            return self.weather_cache.find_by_timestamp_window(
                timestamp, REPORT_CACHE_WINDOW_MINUTES
            )
        except StoreError as e:
            # 快取讀取失敗時視為未命中
            logger.warning("天氣快取查詢失敗: %s", e)
            return None

    async def _fetch_weather(self, timestamp: datetime, now: datetime) -> WeatherReading:
        try:
            if now - timestamp < CURRENT_WEATHER_THRESHOLD:
                return await self.weather_source.get_current()
            return await self.weather_source.get_historical(timestamp)
        except UpstreamError as e:
            logger.error("取得天氣資料失敗: %s", e)
            raise WeatherFetchFailed(f"無法取得天氣資料: {e}", cause=e) from e
        except Exception as e:
            logger.exception("取得天氣資料時發生未預期錯誤")
            raise WeatherFetchFailed(f"無法取得天氣資料: {e}", cause=e) from e

    def _write_through(self, timestamp: datetime, reading: WeatherReading, created_at: datetime) -> None:
        entry = WeatherCacheEntry(
            timestamp=timestamp,
            reading=reading,
            created_at=created_at,
            expires_at=created_at + self.cache_ttl,
        )
        try:
            self.weather_cache.save(entry)
        except StoreError as e:
            logger.warning("寫入天氣快取失敗: %s", e)
