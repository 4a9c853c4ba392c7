"""報告資料存取測試"""

from datetime import timedelta
from unittest.mock import MagicMock
from uuid import UUID

import pytest
from sqlalchemy.exc import OperationalError

from app.errors import NotFound, StoreReadError, StoreWriteError
from app.models import WeatherReportRecord
from app.repositories.report import SqlReportRepository, normalize_id
from app.schemas.report import PaginatedReportsQuery, WeatherReport
from conftest import utc


BASE_TIME = utc(2023, 1, 1, 0, 0, 0)


def make_report(hours: int = 0, temperature: float = 25.0) -> WeatherReport:
    ts = BASE_TIME + timedelta(hours=hours)
    return WeatherReport(
        timestamp=ts,
        temperature=temperature,
        pressure=1010.0 + hours,
        humidity=50.0,
        cloud_cover=20.0,
        created_at=ts + timedelta(seconds=5),
    )


@pytest.fixture
def repo(db):
    return SqlReportRepository(db)


@pytest.fixture
def twenty_reports(repo):
    """建立 20 筆報告，觀測時間間隔 1 小時"""
    return [repo.insert(make_report(hours=i, temperature=20.0 + (i % 7))) for i in range(20)]


def test_normalize_id():
    """測試 ID 正規化"""
    raw = "0f8fad5bd9cb469fa16570867728950e"
    assert normalize_id(raw) == raw
    assert normalize_id(str(UUID(raw))) == raw
    assert normalize_id(raw.upper()) == raw
    assert normalize_id("legacy-report-1") == "legacy-report-1"


def test_insert_and_find_by_id(repo):
    """測試新增後可依 ID 取回相同內容"""
    report = make_report()
    report_id = repo.insert(report)

    found = repo.find_by_id(report_id)

    assert found.id == report_id
    assert found.model_dump(exclude={"id"}) == report.model_dump(exclude={"id"})


def test_find_by_id_accepts_hyphenated_uuid(repo):
    """測試帶連字號的 UUID 也能查到"""
    report_id = repo.insert(make_report())

    found = repo.find_by_id(str(UUID(report_id)))

    assert found.id == report_id


def test_find_by_id_opaque_string(repo, db):
    """測試非 UUID 格式的 ID 以字串直接比對"""
    db.add(WeatherReportRecord(
        id="legacy-report-1",
        timestamp=BASE_TIME,
        temperature=24.0,
        pressure=1009.0,
        humidity=70.0,
        cloud_cover=80.0,
        created_at=BASE_TIME,
    ))
    db.commit()

    found = repo.find_by_id("legacy-report-1")

    assert found.id == "legacy-report-1"
    assert found.cloud_cover == 80.0


def test_find_by_id_not_found(repo):
    """測試找不到報告"""
    with pytest.raises(NotFound):
        repo.find_by_id("0f8fad5bd9cb469fa16570867728950e")

    with pytest.raises(NotFound):
        repo.find_by_id("does-not-exist")


def test_find_all_sorted_by_timestamp_desc(repo):
    """測試全部報告依觀測時間由新到舊"""
    for hours in (3, 1, 2):
        repo.insert(make_report(hours=hours))

    reports = repo.find_all()

    assert [r.timestamp for r in reports] == [
        BASE_TIME + timedelta(hours=h) for h in (3, 2, 1)
    ]


def test_count(repo, twenty_reports):
    assert repo.count() == 20


class TestFindPaginated:
    """分頁查詢測試"""

    def test_second_page(self, repo, twenty_reports):
        """測試 20 筆資料取第 11-20 筆"""
        result = repo.find_paginated(PaginatedReportsQuery(limit=10, offset=10))

        assert result.total_count == 20
        assert len(result.reports) == 10
        assert [r.timestamp for r in result.reports] == [
            BASE_TIME + timedelta(hours=h) for h in range(9, -1, -1)
        ]
        assert result.has_more is False
        assert result.current_page == 2
        assert result.from_number == 11
        assert result.to_number == 20

    def test_first_page_has_more(self, repo, twenty_reports):
        """測試第一頁還有下一頁"""
        result = repo.find_paginated(PaginatedReportsQuery())

        assert len(result.reports) == 10
        assert result.has_more is True
        assert result.total_count == 20
        assert result.reports[0].timestamp == BASE_TIME + timedelta(hours=19)
        assert result.from_number == 1
        assert result.to_number == 10

    def test_offset_past_end(self, repo, twenty_reports):
        """測試 offset 超出資料範圍"""
        result = repo.find_paginated(PaginatedReportsQuery(limit=5, offset=40))

        assert result.reports == []
        assert result.total_count == 20
        assert result.has_more is False
        assert result.from_number == 0

    def test_time_filter_counts_matching_rows_only(self, repo, twenty_reports):
        """測試總筆數只計算符合篩選條件的資料"""
        query = PaginatedReportsQuery(
            limit=3,
            from_time=BASE_TIME + timedelta(hours=5),
            to_time=BASE_TIME + timedelta(hours=12),
        )
        assert query.is_filtered

        result = repo.find_paginated(query)

        assert result.total_count == 8
        assert len(result.reports) == 3
        assert result.has_more is True
        assert result.reports[0].timestamp == BASE_TIME + timedelta(hours=12)

    def test_open_ended_filter(self, repo, twenty_reports):
        """測試只設定起始時間"""
        result = repo.find_paginated(
            PaginatedReportsQuery(limit=50, from_time=BASE_TIME + timedelta(hours=15))
        )

        assert result.total_count == 5
        assert len(result.reports) == 5
        assert all(r.timestamp >= BASE_TIME + timedelta(hours=15) for r in result.reports)

    def test_sort_ascending_by_other_field(self, repo, twenty_reports):
        """測試依溫度由低到高排序"""
        result = repo.find_paginated(
            PaginatedReportsQuery(limit=20, sort_by="temperature", sort_order="asc")
        )

        temperatures = [r.temperature for r in result.reports]
        assert temperatures == sorted(temperatures)
        assert len(result.reports) <= 20

    def test_second_page_by_cursor(self, repo, twenty_reports):
        """測試以上一頁最後一筆 ID 取第二頁"""
        first = repo.find_paginated(PaginatedReportsQuery(limit=10))

        second = repo.find_paginated(
            PaginatedReportsQuery(limit=10, last_id=first.reports[-1].id)
        )

        assert [r.timestamp for r in second.reports] == [
            BASE_TIME + timedelta(hours=h) for h in range(9, -1, -1)
        ]
        assert second.total_count == 20
        assert second.has_more is False
        assert second.current_page == 2
        assert second.from_number == 11
        assert second.to_number == 20

    def test_cursor_with_time_filter(self, repo, twenty_reports):
        """測試游標與時間篩選同時使用"""
        query = dict(
            limit=3,
            from_time=BASE_TIME + timedelta(hours=5),
            to_time=BASE_TIME + timedelta(hours=12),
        )
        first = repo.find_paginated(PaginatedReportsQuery(**query))

        second = repo.find_paginated(
            PaginatedReportsQuery(**query, last_id=first.reports[-1].id)
        )

        assert [r.timestamp for r in second.reports] == [
            BASE_TIME + timedelta(hours=h) for h in (9, 8, 7)
        ]
        assert second.total_count == 8
        assert second.has_more is True
        assert second.current_page == 2
        assert second.from_number == 4
        assert second.to_number == 6

    def test_cursor_accepts_hyphenated_uuid(self, repo, twenty_reports):
        """測試游標 ID 與 find_by_id 使用相同的正規化"""
        first = repo.find_paginated(PaginatedReportsQuery(limit=5))
        cursor = str(UUID(first.reports[-1].id)).upper()

        second = repo.find_paginated(PaginatedReportsQuery(limit=5, last_id=cursor))

        assert second.reports[0].timestamp == BASE_TIME + timedelta(hours=14)

    def test_cursor_walks_ties_in_sort_field(self, repo, twenty_reports):
        """測試排序欄位有相同值時逐頁取完不重複不遺漏"""
        full = repo.find_paginated(
            PaginatedReportsQuery(limit=20, sort_by="temperature", sort_order="asc")
        )

        walked = []
        last_id = None
        while True:
            page = repo.find_paginated(PaginatedReportsQuery(
                limit=4, sort_by="temperature", sort_order="asc", last_id=last_id
            ))
            walked.extend(r.id for r in page.reports)
            if not page.has_more:
                break
            last_id = page.reports[-1].id

        assert walked == [r.id for r in full.reports]

    def test_unknown_cursor_compares_ids_as_strings(self, repo, twenty_reports):
        """測試找不到游標報告時直接以 ID 字串比較"""
        # 儲存的 ID 皆為 0-9a-f，全部小於 "not-a-report"
        result = repo.find_paginated(PaginatedReportsQuery(limit=50, last_id="not-a-report"))

        assert len(result.reports) == 20
        assert result.current_page == 1
        assert result.from_number == 1

    def test_page_never_exceeds_limit(self, repo, twenty_reports):
        """測試每頁筆數不超過 limit"""
        for limit in (1, 3, 7, 25):
            result = repo.find_paginated(PaginatedReportsQuery(limit=limit, offset=2))
            assert len(result.reports) <= limit
            assert result.total_count == 20


class TestStoreFailures:
    """資料庫錯誤轉換測試"""

    def test_insert_failure(self):
        """測試寫入失敗時回滾並拋出 StoreWriteError"""
        db = MagicMock()
        db.commit.side_effect = OperationalError("INSERT", {}, Exception("disk full"))

        with pytest.raises(StoreWriteError):
            SqlReportRepository(db).insert(make_report())

        db.rollback.assert_called_once()

    def test_read_failure(self):
        """測試查詢失敗時拋出 StoreReadError"""
        db = MagicMock()
        db.query.side_effect = OperationalError("SELECT", {}, Exception("locked"))

        with pytest.raises(StoreReadError):
            SqlReportRepository(db).find_all()

        with pytest.raises(StoreReadError):
            SqlReportRepository(db).count()

    def test_paginated_count_failure(self):
        """測試計數失敗時拋出 StoreReadError"""
        db = MagicMock()
        query = db.query.return_value
        query.order_by.return_value.offset.return_value.limit.return_value.all.return_value = []
        query.count.side_effect = OperationalError("SELECT", {}, Exception("locked"))

        with pytest.raises(StoreReadError):
            SqlReportRepository(db).find_paginated(PaginatedReportsQuery())
