# backend/app/schemas/report.py
"""天氣報告 Pydantic Schema 定義"""

from datetime import datetime
from typing import Generic, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.utils.timeutil import ensure_utc

T = TypeVar("T")

SortField = Literal[
    "timestamp",
    "created_at",
    "temperature",
    "pressure",
    "humidity",
    "cloud_cover",
]
SortOrder = Literal["asc", "desc"]


class WeatherReading(BaseModel):
    """單一時間點的天氣讀數"""

    model_config = ConfigDict(frozen=True)

    temperature: float = Field(..., description="溫度 (°C)")
    pressure: float = Field(..., description="氣壓 (hPa)")
    humidity: float = Field(..., description="相對濕度 (%)")
    cloud_cover: float = Field(..., description="雲量 (%)")


class WeatherReport(BaseModel):
    """天氣報告"""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = Field(None, description="報告 ID")
    timestamp: datetime = Field(..., description="觀測時間")
    temperature: float = Field(..., description="溫度 (°C)")
    pressure: float = Field(..., description="氣壓 (hPa)")
    humidity: float = Field(..., description="相對濕度 (%)")
    cloud_cover: float = Field(..., description="雲量 (%)")
    created_at: datetime = Field(..., description="建立時間")

    @property
    def reading(self) -> WeatherReading:
        return WeatherReading(
            temperature=self.temperature,
            pressure=self.pressure,
            humidity=self.humidity,
            cloud_cover=self.cloud_cover,
        )

    @classmethod
    def from_reading(
        cls,
        reading: WeatherReading,
        timestamp: datetime,
        created_at: datetime,
        id: Optional[str] = None,
    ) -> "WeatherReport":
        return cls(
            id=id,
            timestamp=timestamp,
            created_at=created_at,
            **reading.model_dump(),
        )


class WeatherCacheEntry(BaseModel):
    """天氣快取項目"""

    id: Optional[str] = Field(None, description="快取 ID")
    timestamp: datetime = Field(..., description="資料對應的觀測時間")
    reading: WeatherReading = Field(..., description="天氣讀數")
    created_at: datetime = Field(..., description="建立時間")
    expires_at: datetime = Field(..., description="過期時間")


class ReportRequest(BaseModel):
    """產生報告請求"""

    timestamp: Optional[datetime] = Field(None, description="觀測時間（未提供時使用目前時間）")

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)


class ComparisonRequest(BaseModel):
    """比較報告請求"""

    report_id1: str = Field(..., min_length=1, description="第一份報告 ID")
    report_id2: str = Field(..., min_length=1, description="第二份報告 ID")


class PaginatedReportsQuery(BaseModel):
    """分頁查詢條件"""

    limit: int = Field(10, gt=0, description="每頁筆數")
    offset: int = Field(0, ge=0, description="略過筆數")
    from_time: Optional[datetime] = Field(None, description="起始時間（含）")
    to_time: Optional[datetime] = Field(None, description="結束時間（含）")
    sort_by: SortField = Field("timestamp", description="排序欄位")
    sort_order: SortOrder = Field("desc", description="排序方向")
    last_id: Optional[str] = Field(None, min_length=1, description="上一頁最後一筆報告的 ID（游標分頁）")

    @field_validator("from_time", "to_time")
    @classmethod
    def normalize_bounds(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)

    @property
    def is_filtered(self) -> bool:
        return self.from_time is not None or self.to_time is not None


class PaginatedReportsResult(BaseModel):
    """分頁查詢結果"""

    reports: list[WeatherReport] = Field(default_factory=list, description="本頁報告")
    total_count: int = Field(0, description="符合篩選條件的總筆數")
    has_more: bool = Field(False, description="是否還有下一頁")
    current_page: int = Field(1, description="目前頁數")
    from_number: int = Field(0, description="本頁第一筆的序號")
    to_number: int = Field(0, description="本頁最後一筆的序號")


class Deviation(BaseModel):
    """兩份報告各欄位的絕對差值"""

    temperature: float
    pressure: float
    humidity: float
    cloud_cover: float


class ComparisonResult(BaseModel):
    """報告比較結果"""

    report1: WeatherReport
    report2: WeatherReport
    deviation: Deviation


class ApiResponse(BaseModel, Generic[T]):
    """API 回應包裝"""

    success: bool = Field(True, description="請求是否成功")
    data: Optional[T] = Field(None, description="回應資料")
    error: Optional[str] = Field(None, description="錯誤訊息")
    error_code: Optional[str] = Field(None, description="錯誤代碼")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "data": {},
                "error": None,
                "error_code": None,
            }
        }
    )
