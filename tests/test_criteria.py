"""
Criteria Tests

🔍 Immutable query requests: construction checks, builders and the
translation of domain filters into backend filters.
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from fieldbook.core import DateTimeRange, InvalidCriteria, QueryOperator
from fieldbook.domains import (
    DailyReportCriteria, DailyReportSort, FeedbackCriteria, FeedbackSort, FeedbackStatus,
    FeedbackType, TransactionHistoryCriteria, VisitCriteria, VisitSort,
)

from .support.factories import BASE_TIME, customer, user


class TestCriteriaConstruction:
    def test_everything_is_optional(self):
        criteria = FeedbackCriteria()
        assert criteria.sort is None
        assert criteria.limit is None
        assert criteria.offset is None
        assert criteria.cursor is None
        assert criteria.filters() == []
        assert not criteria.is_paginated

    def test_sort_accepts_member_names(self):
        assert FeedbackCriteria(sort="CREATED_AT_DESC").sort is FeedbackSort.CREATED_AT_DESC

    def test_sort_rejects_unknown_names(self):
        with pytest.raises(InvalidCriteria) as exc_info:
            FeedbackCriteria(sort="BY_MOOD")
        assert exc_info.value.details["field"] == "sort"

    def test_sort_rejects_members_of_another_entity(self):
        with pytest.raises(InvalidCriteria):
            FeedbackCriteria(sort=VisitSort.VISITED_AT_ASC)

    @pytest.mark.parametrize("limit", [0, -1])
    def test_limit_must_be_positive(self, limit):
        with pytest.raises(InvalidCriteria) as exc_info:
            FeedbackCriteria(limit=limit)
        assert exc_info.value.details["field"] == "limit"

    def test_offset_must_not_be_negative(self):
        with pytest.raises(InvalidCriteria) as exc_info:
            FeedbackCriteria(offset=-1)
        assert exc_info.value.details["field"] == "offset"

    @pytest.mark.parametrize("field", ["limit", "offset"])
    @pytest.mark.parametrize("value", [True, False, "5", 2.0])
    def test_pagination_numbers_must_be_integers(self, field, value):
        with pytest.raises(InvalidCriteria) as exc_info:
            FeedbackCriteria(**{field: value})
        assert exc_info.value.details["field"] == field

    def test_offset_zero_is_allowed(self):
        assert FeedbackCriteria(offset=0, limit=1).offset == 0

    def test_cursor_must_not_be_blank(self):
        with pytest.raises(InvalidCriteria):
            FeedbackCriteria(cursor="  ")

    def test_cursor_and_offset_cannot_be_combined(self):
        with pytest.raises(InvalidCriteria) as exc_info:
            FeedbackCriteria(cursor="abc", offset=1)
        assert "cannot be combined" in exc_info.value.details["reason"]

    def test_unknown_status_is_rejected(self):
        with pytest.raises(InvalidCriteria) as exc_info:
            FeedbackCriteria(status="LOST")
        assert exc_info.value.details["field"] == "status"


class TestCriteriaValueSemantics:
    def test_is_immutable(self):
        criteria = FeedbackCriteria(limit=10)
        with pytest.raises(PydanticValidationError):
            criteria.limit = 20
        assert criteria.limit == 10

    def test_equal_criteria_compare_and_hash_equal(self):
        first = DailyReportCriteria(user=user(), date=DateTimeRange(start=BASE_TIME), limit=5)
        second = DailyReportCriteria(user=user(), date=DateTimeRange(start=BASE_TIME), limit=5)
        assert first == second
        assert hash(first) == hash(second)

    def test_builders_return_new_instances(self):
        criteria = FeedbackCriteria(status=FeedbackStatus.WAITING)
        paged = criteria.paginate(offset=10, limit=5)
        assert criteria.limit is None
        assert (paged.offset, paged.limit, paged.status) == (10, 5, FeedbackStatus.WAITING)

        sorted_criteria = paged.with_sort("UPDATED_AT_ASC")
        assert sorted_criteria.sort is FeedbackSort.UPDATED_AT_ASC
        assert sorted_criteria.offset == 10

    def test_after_switches_to_keyset_pagination(self):
        criteria = FeedbackCriteria(offset=10, limit=5).after("token")
        assert criteria.offset is None
        assert criteria.cursor == "token"
        assert criteria.limit == 5

    def test_without_pagination_keeps_filters_and_sort(self):
        criteria = FeedbackCriteria(type=FeedbackType.PROBLEM, sort="CREATED_AT_ASC", limit=3, offset=1)
        bare = criteria.without_pagination()
        assert bare == FeedbackCriteria(type=FeedbackType.PROBLEM, sort="CREATED_AT_ASC")


class TestCriteriaFilters:
    def test_feedback_filters(self):
        filters = FeedbackCriteria(status=FeedbackStatus.COMPLETED, type=FeedbackType.QUESTION).filters()
        assert [(f.field, f.operator, f.value) for f in filters] == [
            ("status", QueryOperator.EQUALS, "COMPLETED"),
            ("type", QueryOperator.EQUALS, "QUESTION"),
        ]

    def test_daily_report_filters(self):
        criteria = DailyReportCriteria(
            date=DateTimeRange(start=BASE_TIME, end=BASE_TIME + timedelta(days=1)),
            user=user(3),
            is_submitted=False,
            sort=DailyReportSort.DATE_DESC,
        )
        assert [(f.field, f.operator) for f in criteria.filters()] == [
            ("date", QueryOperator.GREATER_THAN_OR_EQUAL),
            ("date", QueryOperator.LESS_THAN_OR_EQUAL),
            ("user", QueryOperator.EQUALS),
            ("is_submitted", QueryOperator.EQUALS),
        ]

    def test_visit_and_transaction_history_filters(self):
        assert VisitCriteria(user=user(2)).filters()[0].value == str(user(2))
        filters = TransactionHistoryCriteria(user=user(2), customer=customer(4)).filters()
        assert [(f.field, f.value) for f in filters] == [("user", str(user(2))), ("customer", str(customer(4)))]


class TestDateTimeRange:
    def test_end_before_start_is_rejected(self):
        with pytest.raises(InvalidCriteria):
            DateTimeRange(start=BASE_TIME, end=BASE_TIME - timedelta(seconds=1))

    def test_bounds_are_inclusive(self):
        window = DateTimeRange(start=BASE_TIME, end=BASE_TIME + timedelta(hours=1))
        assert window.includes(BASE_TIME)
        assert window.includes(BASE_TIME + timedelta(hours=1))
        assert not window.includes(BASE_TIME + timedelta(hours=1, seconds=1))

    def test_open_bounds(self):
        assert DateTimeRange(start=BASE_TIME).includes(BASE_TIME + timedelta(days=365))
        assert DateTimeRange(end=BASE_TIME).includes(BASE_TIME - timedelta(days=365))
        assert DateTimeRange().filters("date") == []

    def test_naive_datetimes_are_treated_as_utc(self):
        window = DateTimeRange(start=datetime(2024, 1, 15, 9, 0))
        assert window.start == BASE_TIME
        assert window.start.tzinfo == timezone.utc

    def test_offsets_are_converted_to_utc(self):
        tokyo = timezone(timedelta(hours=9))
        window = DateTimeRange(start=datetime(2024, 1, 15, 18, 0, tzinfo=tokyo))
        assert window.start == BASE_TIME
