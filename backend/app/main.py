# backend/app/main.py
"""FastAPI 應用程式入口"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1 import reports
from app.config import settings
from app.database import init_db
from app.errors import (
    ERR_INVALID_PARAMETERS,
    ERR_REPORT_NOT_FOUND,
    WeatherReportError,
    is_not_found,
)
from app.logging_config import setup_logging
from app.schemas.report import ApiResponse
from app.services.coalescer import CoalescingWeatherSource
from app.services.openweather import OpenWeatherClient

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    description="樟宜機場天氣報告產生、查詢與比較 API",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    max_age=3600,
)

# 所有請求共用同一個資料來源，請求合併才能跨請求生效
app.state.weather_source = CoalescingWeatherSource(OpenWeatherClient.from_settings(settings))


@app.on_event("startup")
async def startup():
    """應用程式啟動時初始化資料庫"""
    if not settings.openweather_api_key:
        logger.warning("未設定 OPENWEATHER_API_KEY，上游天氣查詢將會失敗")
    init_db()


@app.exception_handler(WeatherReportError)
async def weather_report_error_handler(request: Request, exc: WeatherReportError) -> JSONResponse:
    """將服務層錯誤轉換為統一格式的回應"""
    if is_not_found(exc):
        status_code, error_code = 404, ERR_REPORT_NOT_FOUND
    else:
        status_code, error_code = exc.status_code, exc.code
        logger.error("%s %s 失敗: %s", request.method, request.url.path, exc)

    body = ApiResponse(success=False, error=exc.message, error_code=error_code)
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """參數驗證失敗時回傳 422 與統一格式的錯誤"""
    details = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    )
    body = ApiResponse(
        success=False,
        error=f"請求參數錯誤: {details}",
        error_code=ERR_INVALID_PARAMETERS,
    )
    return JSONResponse(status_code=422, content=body.model_dump())


@app.get("/health")
async def health_check():
    """健康檢查端點"""
    return {"status": "ok", "version": "0.1.0"}


# 註冊 API 路由
app.include_router(
    reports.router,
    prefix="/api/reports",
    tags=["reports"]
)
