"""OpenWeather 天氣資料來源

透過 OpenWeather One Call 3.0 API 取得固定地點（樟宜機場）的
即時與歷史天氣資料，並轉換為統一的 WeatherReading。
"""

import logging
from datetime import datetime
from typing import Any, Optional, Protocol

import httpx

from app.config import Settings, settings
from app.errors import (
    NoHistoricalData,
    UpstreamBadStatus,
    UpstreamDecodeError,
    UpstreamUnavailable,
)
from app.schemas.report import WeatherReading


logger = logging.getLogger(__name__)

# One Call 3.0 歷史資料端點
TIMEMACHINE_PATH = "timemachine"


class WeatherSource(Protocol):
    """天氣資料來源介面"""

    async def get_current(self) -> WeatherReading:
        """取得目前天氣"""
        ...

    async def get_historical(self, timestamp: datetime) -> WeatherReading:
        """取得指定時間點的歷史天氣"""
        ...


def parse_reading(point: Any) -> WeatherReading:
    """從單一資料點解析天氣讀數

    current 與 timemachine 的 data[i] 結構相同，
    皆使用 temp / pressure / humidity / clouds 欄位。

    Args:
        point: API 回傳的資料點

    Returns:
        天氣讀數

    Raises:
        UpstreamDecodeError: 欄位缺失或不是數值
    """
    if not isinstance(point, dict):
        raise UpstreamDecodeError("OpenWeather 回應資料點格式錯誤")

    try:
        return WeatherReading(
            temperature=float(point["temp"]),
            pressure=float(point["pressure"]),
            humidity=float(point["humidity"]),
            cloud_cover=float(point["clouds"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise UpstreamDecodeError(f"OpenWeather 回應缺少必要欄位: {e}", cause=e) from e


class OpenWeatherClient:
    """OpenWeather One Call API 用戶端

    每次呼叫只發出一個 HTTP 請求，
    重複請求的合併由 CoalescingWeatherSource 負責。

    Attributes:
        api_key: API 金鑰
        base_url: One Call 端點
        latitude: 觀測地點緯度
        longitude: 觀測地點經度
        timeout: 請求逾時秒數
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openweathermap.org/data/3.0/onecall",
        latitude: float = 1.3586,
        longitude: float = 103.9899,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.latitude = latitude
        self.longitude = longitude
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "OpenWeatherClient":
        return cls(
            api_key=config.openweather_api_key,
            base_url=config.openweather_base_url,
            latitude=config.latitude,
            longitude=config.longitude,
            timeout=config.weather_api_timeout,
        )

    async def get_current(self) -> WeatherReading:
        """取得目前天氣

        Raises:
            UpstreamUnavailable: 連線失敗或逾時
            UpstreamBadStatus: 非 200 回應
            UpstreamDecodeError: 回應格式錯誤
        """
        data = await self._get_json(self.base_url, self._params())
        return parse_reading(data.get("current"))

    async def get_historical(self, timestamp: datetime) -> WeatherReading:
        """取得指定時間點的歷史天氣

        Args:
            timestamp: 觀測時間

        Raises:
            NoHistoricalData: 該時間點沒有資料
            UpstreamUnavailable / UpstreamBadStatus / UpstreamDecodeError
        """
        params = self._params(dt=int(timestamp.timestamp()))
        data = await self._get_json(f"{self.base_url}/{TIMEMACHINE_PATH}", params)

        points = data.get("data")
        if points is None:
            raise UpstreamDecodeError("OpenWeather 歷史資料回應缺少 data 欄位")
        if not isinstance(points, list):
            raise UpstreamDecodeError("OpenWeather 歷史資料格式錯誤")
        if not points:
            raise NoHistoricalData(f"找不到 {timestamp.isoformat()} 的歷史天氣資料")

        # 使用第一個資料點
        return parse_reading(points[0])

    def _params(self, **extra: Any) -> dict:
        params = {
            "lat": self.latitude,
            "lon": self.longitude,
            "appid": self.api_key,
            "units": "metric",
        }
        params.update(extra)
        return params

    async def _get_json(self, url: str, params: dict) -> dict:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, params=params)
        except httpx.TransportError as e:
            logger.warning("OpenWeather 連線失敗: %s", e.__class__.__name__)
            raise UpstreamUnavailable(f"無法連線至 OpenWeather API: {e}", cause=e) from e

        if response.status_code != httpx.codes.OK:
            logger.warning("OpenWeather 回傳狀態碼 %s", response.status_code)
            raise UpstreamBadStatus(response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamDecodeError("無法解析 OpenWeather 回應", cause=e) from e

        if not isinstance(data, dict):
            raise UpstreamDecodeError("OpenWeather 回應格式錯誤")
        return data
