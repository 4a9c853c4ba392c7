"""天氣快取資料模型"""

from datetime import datetime

from sqlalchemy import Float, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models import Base
from app.models.report import new_id
from app.models.types import UTCDateTime


class WeatherCacheRecord(Base):
    """天氣快取資料表

    儲存從上游 API 取得的天氣資料，
    供相近時間點的報告直接重用。

    Attributes:
        id: 主鍵（UUID hex 字串）
        timestamp: 資料對應的觀測時間
        temperature / pressure / humidity / cloud_cover: 天氣讀數
        created_at: 寫入時間
        expires_at: 過期時間
    """

    __tablename__ = "weather_cache"

    __table_args__ = (
        Index("ix_weather_cache_timestamp", "timestamp"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    timestamp: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    temperature: Mapped[float] = mapped_column(Float, nullable=False)
    pressure: Mapped[float] = mapped_column(Float, nullable=False)
    humidity: Mapped[float] = mapped_column(Float, nullable=False)
    cloud_cover: Mapped[float] = mapped_column(Float, nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<WeatherCacheRecord {self.id} @ {self.timestamp}>"
