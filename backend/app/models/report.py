"""天氣報告資料模型"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Float, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models import Base
from app.models.types import UTCDateTime


def new_id() -> str:
    """產生新的報告識別碼（32 位小寫十六進位 UUID）"""
    return uuid4().hex


class WeatherReportRecord(Base):
    """天氣報告資料表

    每筆報告對應一次天氣資料查詢結果。

    Attributes:
        id: 主鍵（UUID hex 字串）
        timestamp: 觀測時間（使用者指定或建立當下）
        temperature: 溫度 (°C)
        pressure: 氣壓 (hPa)
        humidity: 相對濕度 (%)
        cloud_cover: 雲量 (%)
        created_at: 寫入時間
    """

    __tablename__ = "reports"

    # 依時間倒序查詢，id 作為同時間的排序依據
    __table_args__ = (
        Index("ix_reports_timestamp_id", "timestamp", "id"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    timestamp: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    temperature: Mapped[float] = mapped_column(Float, nullable=False)
    pressure: Mapped[float] = mapped_column(Float, nullable=False)
    humidity: Mapped[float] = mapped_column(Float, nullable=False)
    cloud_cover: Mapped[float] = mapped_column(Float, nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    def __repr__(self) -> str:
        return f"<WeatherReportRecord {self.id} @ {self.timestamp}>"
