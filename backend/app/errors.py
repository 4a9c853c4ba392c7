"""錯誤分類與錯誤代碼

所有服務層錯誤皆繼承 WeatherReportError，
每個類別帶有固定的錯誤代碼與對應的 HTTP 狀態碼，
由 API 層統一轉換為回應。
"""

from typing import Optional


# 通用錯誤代碼 (1000-1999)
ERR_UNKNOWN = "ERR1000"
ERR_INVALID_PARAMETERS = "ERR1002"

# 資料庫錯誤代碼 (2000-2999)
ERR_DATABASE_QUERY = "ERR2001"
ERR_DATABASE_INSERT = "ERR2002"

# 天氣服務錯誤代碼 (3000-3999)
ERR_WEATHER_SERVICE_CONNECTION = "ERR3000"
ERR_WEATHER_SERVICE_RESPONSE = "ERR3001"
ERR_WEATHER_DATA_NOT_AVAILABLE = "ERR3003"

# 報告錯誤代碼 (4000-4999)
ERR_REPORT_NOT_FOUND = "ERR4001"


class WeatherReportError(Exception):
    """服務層錯誤基底類別

    Attributes:
        code: 錯誤代碼
        status_code: 對應的 HTTP 狀態碼
        cause: 被包裝的底層錯誤（可能為 None）
    """

    code = ERR_UNKNOWN
    status_code = 500

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


# ===== 上游天氣 API =====

class UpstreamError(WeatherReportError):
    """上游天氣 API 錯誤"""

    code = ERR_WEATHER_SERVICE_RESPONSE


class UpstreamUnavailable(UpstreamError):
    """連線失敗或逾時"""

    code = ERR_WEATHER_SERVICE_CONNECTION


class UpstreamBadStatus(UpstreamError):
    """上游回傳非 200 狀態碼"""

    def __init__(self, status: int, message: Optional[str] = None):
        super().__init__(message or f"OpenWeather API 回傳非預期狀態碼: {status}")
        self.status = status


class UpstreamDecodeError(UpstreamError):
    """上游回應格式錯誤"""


class NoHistoricalData(UpstreamError):
    """指定時間點沒有歷史資料"""

    code = ERR_WEATHER_DATA_NOT_AVAILABLE


# ===== 儲存層 =====

class StoreError(WeatherReportError):
    """儲存層錯誤"""


class StoreReadError(StoreError):
    code = ERR_DATABASE_QUERY


class StoreWriteError(StoreError):
    code = ERR_DATABASE_INSERT


class NotFound(StoreError):
    code = ERR_REPORT_NOT_FOUND
    status_code = 404


# ===== 報告產生 =====

class WeatherFetchFailed(WeatherReportError):
    """取得天氣資料失敗"""

    code = ERR_WEATHER_SERVICE_RESPONSE


class ReportPersistFailed(WeatherReportError):
    """報告寫入失敗"""

    code = ERR_DATABASE_INSERT


# ===== 報告比較 =====

class ReportUnavailable(WeatherReportError):
    """比較時無法載入報告"""

    code = ERR_DATABASE_QUERY


class FirstReportUnavailable(ReportUnavailable):
    pass


class SecondReportUnavailable(ReportUnavailable):
    pass


def is_not_found(exc: BaseException) -> bool:
    """判斷錯誤（或其包裝的底層錯誤）是否屬於「找不到」

    Args:
        exc: 任意錯誤

    Returns:
        錯誤鏈中存在 NotFound 時為 True
    """
    while exc is not None:
        if isinstance(exc, NotFound):
            return True
        exc = getattr(exc, "cause", None) or exc.__cause__
    return False
