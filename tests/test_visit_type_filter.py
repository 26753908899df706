"""
Visit type search and paging.
"""

import pytest

from visitflow.domain.entities.visit_type import VisitType
from visitflow.domain.services.visit_type_filter import filter_visit_types, paginate

CATALOG = [
    VisitType("1", "OPD Visit"),
    VisitType("2", "Facility Visit"),
    VisitType("3", "Home Visit"),
    VisitType("4", "Outpatient"),
    VisitType("5", "Inpatient Ward"),
    VisitType("6", "Telehealth"),
    VisitType("7", "Facility Follow-up"),
]


def test_blank_query_returns_whole_catalog_in_order():
    assert filter_visit_types(CATALOG, "") == CATALOG
    assert filter_visit_types(CATALOG, "   ") == CATALOG


def test_filter_is_case_insensitive_substring():
    result = filter_visit_types(CATALOG, "FACILITY")
    assert [v.uuid for v in result] == ["2", "7"]


@pytest.mark.parametrize("query", ["visit", "pat", "e", "zzz"])
def test_every_result_contains_query_and_order_is_kept(query):
    result = filter_visit_types(CATALOG, query)
    assert all(query.lower() in v.display.lower() for v in result)
    positions = [CATALOG.index(v) for v in result]
    assert positions == sorted(positions)


def test_filter_is_idempotent():
    once = filter_visit_types(CATALOG, "visit")
    assert filter_visit_types(once, "visit") == once


def test_empty_catalog():
    assert filter_visit_types([], "opd") == []
    page = paginate([], 1, 5)
    assert page.results == []
    assert page.total_pages == 1
    assert not page.has_next


def test_paginate_splits_into_pages():
    first = paginate(CATALOG, 1, 5)
    second = paginate(CATALOG, 2, 5)
    assert [v.uuid for v in first.results] == ["1", "2", "3", "4", "5"]
    assert [v.uuid for v in second.results] == ["6", "7"]
    assert first.total_pages == 2
    assert first.has_next and not first.has_previous
    assert second.has_previous and not second.has_next


def test_out_of_range_page_is_clamped():
    assert paginate(CATALOG, 9, 5).current_page == 2
    assert paginate(CATALOG, 0, 5).current_page == 1


def test_page_size_must_be_positive():
    with pytest.raises(ValueError):
        paginate(CATALOG, 1, 0)
