"""天氣快取資料存取"""

import logging
from datetime import datetime, timedelta
from typing import Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.errors import StoreReadError, StoreWriteError
from app.models.report import new_id
from app.models.weather_cache import WeatherCacheRecord
from app.schemas.report import WeatherCacheEntry, WeatherReading


logger = logging.getLogger(__name__)

# 時間窗口預設 ±10 分鐘
DEFAULT_WINDOW_MINUTES = 10


class WeatherCacheStore(Protocol):
    """天氣快取儲存介面"""

    def save(self, entry: WeatherCacheEntry) -> str: ...

    def find_latest_valid(self, now: datetime) -> Optional[WeatherCacheEntry]: ...

    def find_by_timestamp_window(
        self, timestamp: datetime, window_minutes: int = DEFAULT_WINDOW_MINUTES
    ) -> Optional[WeatherCacheEntry]: ...

    def delete_expired(self, now: datetime) -> int: ...


def _to_entry(record: WeatherCacheRecord) -> WeatherCacheEntry:
    return WeatherCacheEntry(
        id=record.id,
        timestamp=record.timestamp,
        reading=WeatherReading(
            temperature=record.temperature,
            pressure=record.pressure,
            humidity=record.humidity,
            cloud_cover=record.cloud_cover,
        ),
        created_at=record.created_at,
        expires_at=record.expires_at,
    )


class SqlWeatherCacheRepository:
    """以 SQLAlchemy 實作的天氣快取

    Attributes:
        db: SQLAlchemy Session 物件
    """

    def __init__(self, db: Session):
        self.db = db

    def save(self, entry: WeatherCacheEntry) -> str:
        """新增快取項目

        Raises:
            StoreWriteError: 寫入失敗
        """
        entry_id = new_id()
        record = WeatherCacheRecord(
            id=entry_id,
            timestamp=entry.timestamp,
            temperature=entry.reading.temperature,
            pressure=entry.reading.pressure,
            humidity=entry.reading.humidity,
            cloud_cover=entry.reading.cloud_cover,
            created_at=entry.created_at,
            expires_at=entry.expires_at,
        )

        try:
            self.db.add(record)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreWriteError("無法儲存天氣快取", cause=e) from e

        return entry_id

    def find_latest_valid(self, now: datetime) -> Optional[WeatherCacheEntry]:
        """取得尚未過期、觀測時間最新的快取項目

        Args:
            now: 判斷過期的基準時間

        Returns:
            快取項目，沒有符合者時回傳 None
        """
        try:
            record = (
                self.db.query(WeatherCacheRecord)
                .filter(WeatherCacheRecord.expires_at > now)
                .order_by(WeatherCacheRecord.timestamp.desc(), WeatherCacheRecord.id.desc())
                .first()
            )
        except SQLAlchemyError as e:
            raise StoreReadError("無法取得天氣快取", cause=e) from e

        return _to_entry(record) if record else None

    def find_by_timestamp_window(
        self, timestamp: datetime, window_minutes: int = DEFAULT_WINDOW_MINUTES
    ) -> Optional[WeatherCacheEntry]:
        """取得觀測時間落在 timestamp ± window_minutes 內的快取項目

        不檢查過期時間：剛為此時間點取得的資料視為仍然有效。
        多筆符合時取最近寫入的一筆。

        Args:
            timestamp: 目標觀測時間
            window_minutes: 時間窗口（分鐘）

        Returns:
            快取項目，沒有符合者時回傳 None
        """
        window = timedelta(minutes=window_minutes)

        try:
            record = (
                self.db.query(WeatherCacheRecord)
                .filter(
                    WeatherCacheRecord.timestamp >= timestamp - window,
                    WeatherCacheRecord.timestamp <= timestamp + window,
                )
                .order_by(WeatherCacheRecord.created_at.desc(), WeatherCacheRecord.id.desc())
                .first()
            )
        except SQLAlchemyError as e:
            raise StoreReadError("無法取得天氣快取", cause=e) from e

        return _to_entry(record) if record else None

    def delete_expired(self, now: datetime) -> int:
        """刪除所有已過期（expires_at <= now）的快取項目

        Returns:
            刪除筆數

        Raises:
            StoreWriteError: 刪除失敗
        """
        try:
            deleted = (
                self.db.query(WeatherCacheRecord)
                .filter(WeatherCacheRecord.expires_at <= now)
                .delete(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreWriteError("無法刪除過期天氣快取", cause=e) from e

        logger.info("已刪除 %d 筆過期天氣快取", deleted)
        return deleted
