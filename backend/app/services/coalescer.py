"""請求合併

同一時間對同一份天氣資料的多個請求只會觸發一次上游呼叫，
所有等待者共用同一個結果（或同一個錯誤）。
"""

import asyncio
import logging
from datetime import datetime
from functools import partial
from typing import Awaitable, Callable, Optional, TypeVar

from app.schemas.report import WeatherReading
from app.services.openweather import WeatherSource


logger = logging.getLogger(__name__)

T = TypeVar("T")

# 目前天氣不分毫秒共用同一個 key
CURRENT_WEATHER_KEY = "current_weather"


def historical_key(timestamp: datetime) -> str:
    """歷史天氣的合併 key（秒級 Unix 時間）"""
    return f"historical_weather_{int(timestamp.timestamp())}"


class RequestCoalescer:
    """以 key 合併進行中的非同步呼叫

    第一個呼叫者建立共用的 Task，後續相同 key 的呼叫者等待同一個 Task。
    等待時使用 asyncio.shield，單一等待者被取消時不會中斷共用的上游呼叫。
    Task 結束後自動釋放 key，之後的呼叫會重新觸發上游請求。
    """

    def __init__(self):
        self._calls: dict[str, asyncio.Future] = {}

    async def coalesce(self, key: str, producer: Callable[[], Awaitable[T]]) -> T:
        """執行或加入 key 對應的呼叫

        Args:
            key: 合併用的 key
            producer: 沒有進行中的呼叫時才會被執行一次

        Returns:
            producer 的結果

        Raises:
            producer 拋出的錯誤（所有等待者收到同一個錯誤）
            asyncio.CancelledError: 呼叫者本身被取消
        """
        # 檢查與登記之間沒有 await，在事件迴圈內是原子操作
        if self.in_flight(key):
            logger.debug("合併進行中的請求: %s", key)
            call = self._calls[key]
        else:
            call = asyncio.ensure_future(producer())
            self._calls[key] = call
            call.add_done_callback(partial(self._release, key))

        return await asyncio.shield(call)

    def in_flight(self, key: str) -> bool:
        call = self._calls.get(key)
        return call is not None and not call.done()

    def _release(self, key: str, call: asyncio.Future) -> None:
        if self._calls.get(key) is call:
            del self._calls[key]
        # 所有等待者都取消時仍要取回錯誤，避免 "exception was never retrieved"
        if not call.cancelled() and call.exception() is not None:
            logger.debug("合併請求 %s 失敗: %r", key, call.exception())


class CoalescingWeatherSource:
    """以 RequestCoalescer 包裝的 WeatherSource"""

    def __init__(self, source: WeatherSource, coalescer: Optional[RequestCoalescer] = None):
        self.source = source
        self.coalescer = coalescer or RequestCoalescer()

    async def get_current(self) -> WeatherReading:
        return await self.coalescer.coalesce(CURRENT_WEATHER_KEY, self.source.get_current)

    async def get_historical(self, timestamp: datetime) -> WeatherReading:
        return await self.coalescer.coalesce(
            historical_key(timestamp),
            partial(self.source.get_historical, timestamp),
        )
