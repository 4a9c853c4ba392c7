"""天氣報告資料存取"""

import logging
from typing import Protocol
from uuid import UUID

from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from app.errors import NotFound, StoreReadError, StoreWriteError
from app.models.report import WeatherReportRecord, new_id
from app.schemas.report import (
    PaginatedReportsQuery,
    PaginatedReportsResult,
    WeatherReport,
)


logger = logging.getLogger(__name__)


class ReportStore(Protocol):
    """報告儲存介面"""

    def insert(self, report: WeatherReport) -> str: ...

    def find_all(self) -> list[WeatherReport]: ...

    def find_by_id(self, report_id: str) -> WeatherReport: ...

    def find_paginated(self, query: PaginatedReportsQuery) -> PaginatedReportsResult: ...

    def count(self) -> int: ...


def normalize_id(report_id: str) -> str:
    """將可解析為 UUID 的 ID 轉為儲存格式（32 位小寫 hex）

    無法解析的 ID 原樣回傳，以字串直接比對。
    """
    try:
        return UUID(report_id).hex
    except (ValueError, AttributeError, TypeError):
        return report_id


class SqlReportRepository:
    """以 SQLAlchemy 實作的報告儲存

    Attributes:
        db: SQLAlchemy Session 物件
    """

    def __init__(self, db: Session):
        self.db = db

    def insert(self, report: WeatherReport) -> str:
        """新增報告

        Args:
            report: 報告內容（忽略 id，由儲存層指派）

        Returns:
            新報告的 ID

        Raises:
            StoreWriteError: 寫入失敗
        """
        report_id = new_id()
        record = WeatherReportRecord(
            id=report_id,
            timestamp=report.timestamp,
            temperature=report.temperature,
            pressure=report.pressure,
            humidity=report.humidity,
            cloud_cover=report.cloud_cover,
            created_at=report.created_at,
        )

        try:
            self.db.add(record)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("報告寫入失敗: %s", e)
            raise StoreWriteError("無法儲存報告", cause=e) from e

        return report_id

    def find_all(self) -> list[WeatherReport]:
        """取得所有報告（依觀測時間由新到舊）"""
        try:
            records = (
                self.db.query(WeatherReportRecord)
                .order_by(WeatherReportRecord.timestamp.desc(), WeatherReportRecord.id.desc())
                .all()
            )
        except SQLAlchemyError as e:
            raise StoreReadError("無法取得報告", cause=e) from e

        return [WeatherReport.model_validate(r) for r in records]

    def find_by_id(self, report_id: str) -> WeatherReport:
        """依 ID 取得報告

        Raises:
            NotFound: 找不到報告
            StoreReadError: 查詢失敗
        """
        try:
            record = self.db.get(WeatherReportRecord, normalize_id(report_id))
        except SQLAlchemyError as e:
            raise StoreReadError("無法取得報告", cause=e) from e

        if record is None:
            raise NotFound(f"找不到報告 {report_id}")
        return WeatherReport.model_validate(record)

    def find_paginated(self, query: PaginatedReportsQuery) -> PaginatedReportsResult:
        """分頁查詢報告

        多取一筆判斷是否還有下一頁；總筆數以相同篩選條件計算，
        與 limit / offset / last_id 無關。

        提供 last_id 時從該筆報告之後開始取（依目前的排序），
        offset 則在游標之後再略過指定筆數。
        頁數與序號依游標之前的筆數換算。

        Args:
            query: 分頁與篩選條件

        Returns:
            本頁報告與分頁資訊

        Raises:
            StoreReadError: 查詢或計數失敗
        """
        base = self.db.query(WeatherReportRecord)

        if query.from_time is not None:
            base = base.filter(WeatherReportRecord.timestamp >= query.from_time)
        if query.to_time is not None:
            base = base.filter(WeatherReportRecord.timestamp <= query.to_time)

        column = getattr(WeatherReportRecord, query.sort_by)
        if query.sort_order == "asc":
            ordering = (column.asc(), WeatherReportRecord.id.asc())
        else:
            ordering = (column.desc(), WeatherReportRecord.id.desc())

        try:
            page = base
            if query.last_id is not None:
                page = self._after_cursor(base, query)

            records = (
                page.order_by(*ordering)
                .offset(query.offset)
                .limit(query.limit + 1)
                .all()
            )
            total_count = base.count()
            preceding = total_count - page.count() if query.last_id is not None else 0
        except SQLAlchemyError as e:
            raise StoreReadError("無法取得分頁報告", cause=e) from e

        has_more = len(records) > query.limit
        records = records[: query.limit]
        start = preceding + query.offset

        return PaginatedReportsResult(
            reports=[WeatherReport.model_validate(r) for r in records],
            total_count=total_count,
            has_more=has_more,
            current_page=start // query.limit + 1,
            from_number=start + 1 if records else 0,
            to_number=start + len(records),
        )

    def _after_cursor(self, base: Query, query: PaginatedReportsQuery) -> Query:
        """限制為排序上位於 last_id 之後的報告

        游標報告存在時以 (排序欄位, id) 比較；
        不存在時只以 id 比較。
        """
        cursor_id = normalize_id(query.last_id)
        cursor = self.db.get(WeatherReportRecord, cursor_id)
        column = getattr(WeatherReportRecord, query.sort_by)
        record_id = WeatherReportRecord.id

        if query.sort_order == "asc":
            if cursor is None:
                return base.filter(record_id > cursor_id)
            value = getattr(cursor, query.sort_by)
            return base.filter(or_(column > value, and_(column == value, record_id > cursor_id)))

        if cursor is None:
            return base.filter(record_id < cursor_id)
        value = getattr(cursor, query.sort_by)
        return base.filter(or_(column < value, and_(column == value, record_id < cursor_id)))

    def count(self) -> int:
        """取得報告總數（不含篩選）"""
        try:
            return self.db.query(WeatherReportRecord).count()
        except SQLAlchemyError as e:
            raise StoreReadError("無法計算報告數量", cause=e) from e
