"""日誌設定

統一以 JSON 格式輸出日誌，等級由設定檔控制。
"""

from __future__ import annotations

import logging
from typing import Optional

from pythonjsonlogger import jsonlogger

from app.config import settings

_CONFIGURED = False


def setup_logging(level: Optional[str] = None) -> None:
    """設定根 logger（重複呼叫不會重複掛載 handler）

    Args:
        level: 日誌等級，未指定時使用 settings.log_level
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(
        jsonlogger.JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel((level or settings.log_level).upper())
    logging.captureWarnings(True)
    _CONFIGURED = True


__all__ = ["setup_logging"]
