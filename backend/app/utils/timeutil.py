"""時間處理工具

服務內部一律使用帶 UTC 時區的 datetime。
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """取得目前 UTC 時間"""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """將 datetime 轉為 UTC

    未帶時區的值視為 UTC。

    Args:
        value: 任意 datetime 或 None

    Returns:
        帶 UTC 時區的 datetime，輸入為 None 時回傳 None
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
