"""應用程式設定模組

使用 pydantic-settings 管理應用程式配置，
支援從環境變數和 .env 檔案載入設定。
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# 專案根目錄（backend 的上一層）
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "data"


class Settings(BaseSettings):
    """應用程式設定類別

    Attributes:
        app_name: 應用程式名稱
        debug: 是否啟用除錯模式
        database_url: 資料庫連接字串
        data_dir: 資料目錄路徑
        openweather_api_key: OpenWeather API 金鑰
        openweather_base_url: OpenWeather One Call 3.0 端點
        latitude: 固定觀測地點緯度（樟宜機場）
        longitude: 固定觀測地點經度（樟宜機場）
        weather_api_timeout: 上游 API 逾時秒數
        weather_cache_ttl_minutes: 天氣快取有效分鐘數
        cors_allowed_origins: 允許的 CORS 來源
        log_level: 日誌等級
    """

    app_name: str = "Changi Weather Reports API"
    debug: bool = False
    database_url: str = f"sqlite:///{DATA_DIR / 'weather_reports.db'}"
    data_dir: Path = DATA_DIR

    openweather_api_key: str = ""
    openweather_base_url: str = "https://api.openweathermap.org/data/3.0/onecall"
    latitude: float = 1.3586
    longitude: float = 103.9899
    weather_api_timeout: float = 10.0
    weather_cache_ttl_minutes: int = Field(60, gt=0)

    cors_allowed_origins: list[str] = [
        "http://localhost:3000",
        "http://frontend:3000",
        "http://host.docker.internal:3000",
    ]
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# 全域設定實例
settings = Settings()
