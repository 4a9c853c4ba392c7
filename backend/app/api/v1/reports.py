# backend/app/api/v1/reports.py
"""天氣報告 API 路由"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.repositories import SqlReportRepository, SqlWeatherCacheRepository
from app.schemas.report import (
    ApiResponse,
    ComparisonRequest,
    ComparisonResult,
    PaginatedReportsQuery,
    PaginatedReportsResult,
    ReportRequest,
    SortField,
    SortOrder,
    WeatherReport,
)
from app.services.openweather import WeatherSource
from app.services.report import ReportService

router = APIRouter()


def get_weather_source(request: Request) -> WeatherSource:
    """取得應用程式共用的天氣資料來源（含請求合併）"""
    return request.app.state.weather_source


def get_report_service(
    db: Session = Depends(get_db),
    weather_source: WeatherSource = Depends(get_weather_source),
) -> ReportService:
    """建立報告服務（FastAPI 依賴注入用）"""
    return ReportService(
        reports=SqlReportRepository(db),
        weather_cache=SqlWeatherCacheRepository(db),
        weather_source=weather_source,
    )


@router.post(
    "",
    status_code=201,
    response_model=ApiResponse[WeatherReport],
    summary="產生天氣報告",
    description="產生樟宜機場指定時間（預設為目前時間）的天氣報告",
)
async def generate_report(
    payload: Optional[ReportRequest] = None,
    service: ReportService = Depends(get_report_service),
) -> ApiResponse[WeatherReport]:
    timestamp = payload.timestamp if payload else None
    report = await service.generate_report(timestamp)
    return ApiResponse(success=True, data=report)


@router.get(
    "",
    response_model=ApiResponse[List[WeatherReport]],
    summary="列出所有報告",
    description="取得所有天氣報告（依觀測時間由新到舊，不分頁）",
)
async def get_all_reports(
    service: ReportService = Depends(get_report_service),
) -> ApiResponse[List[WeatherReport]]:
    reports = await service.get_all_reports()
    return ApiResponse(success=True, data=reports)


@router.get(
    "/paginated",
    response_model=ApiResponse[PaginatedReportsResult],
    summary="分頁查詢報告",
    description="依時間範圍篩選並分頁取得天氣報告",
)
async def get_paginated_reports(
    limit: int = Query(10, gt=0, description="每頁筆數"),
    offset: int = Query(0, ge=0, description="略過筆數"),
    from_time: Optional[datetime] = Query(None, description="起始時間 (RFC3339)"),
    to_time: Optional[datetime] = Query(None, description="結束時間 (RFC3339)"),
    sort_by: SortField = Query("timestamp", description="排序欄位"),
    sort_order: SortOrder = Query("desc", description="排序方向 (asc / desc)"),
    last_id: Optional[str] = Query(None, min_length=1, description="上一頁最後一筆報告的 ID（游標分頁）"),
    service: ReportService = Depends(get_report_service),
) -> ApiResponse[PaginatedReportsResult]:
    """分頁查詢報告

    Args:
        limit: 每頁筆數（需大於 0）
        offset: 略過筆數
        from_time: 起始時間（含）
        to_time: 結束時間（含）
        sort_by: 排序欄位
        sort_order: 排序方向
        last_id: 上一頁最後一筆報告的 ID，提供時從其後開始取
        service: 報告服務

    Returns:
        本頁報告、符合條件的總筆數與分頁資訊
    """
    query = PaginatedReportsQuery(
        limit=limit,
        offset=offset,
        from_time=from_time,
        to_time=to_time,
        sort_by=sort_by,
        sort_order=sort_order,
        last_id=last_id,
    )
    result = await service.get_paginated_reports(query)
    return ApiResponse(success=True, data=result)


@router.post(
    "/compare",
    response_model=ApiResponse[ComparisonResult],
    summary="比較兩份報告",
    description="計算兩份報告各欄位的絕對差值",
)
async def compare_reports(
    payload: ComparisonRequest,
    service: ReportService = Depends(get_report_service),
) -> ApiResponse[ComparisonResult]:
    result = await service.compare_reports(payload.report_id1, payload.report_id2)
    return ApiResponse(success=True, data=result)


@router.get(
    "/{report_id}",
    response_model=ApiResponse[WeatherReport],
    summary="取得單一報告",
    description="根據報告 ID 取得天氣報告",
)
async def get_report(
    report_id: str,
    service: ReportService = Depends(get_report_service),
) -> ApiResponse[WeatherReport]:
    report = await service.get_report_by_id(report_id)
    return ApiResponse(success=True, data=report)
