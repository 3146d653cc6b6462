"""Tests for pagination helpers."""

from __future__ import annotations

import pytest

from codesearch.utils.pagination import PaginationError, cap_items, count_pages, paginate, sort_for_listing


class TestPaginate:
    def test_first_page(self) -> None:
        page = paginate(list(range(25)), 1, 10)

        assert page.items == list(range(10))
        assert page.total_pages == 3
        assert page.total_items == 25
        assert page.has_more

    def test_last_partial_page(self) -> None:
        page = paginate(list(range(25)), 3, 10)

        assert page.items == [20, 21, 22, 23, 24]
        assert not page.has_more

    def test_exact_multiple_has_no_extra_page(self) -> None:
        page = paginate(list(range(20)), 2, 10)

        assert page.total_pages == 2
        assert not page.has_more

    def test_page_beyond_end_is_empty(self) -> None:
        page = paginate(list(range(5)), 4, 10)

        assert page.items == []
        assert not page.has_more

    def test_empty_input(self) -> None:
        page = paginate([], 1, 10)

        assert page.total_pages == 0
        assert not page.has_more

    @pytest.mark.parametrize(("page", "per_page"), [(0, 10), (1, 0), (-1, 5)])
    def test_invalid_arguments(self, page: int, per_page: int) -> None:
        with pytest.raises(PaginationError):
            paginate([1, 2, 3], page, per_page)

    @pytest.mark.parametrize("total", [0, 1, 9, 10, 11, 99, 100, 101])
    @pytest.mark.parametrize("per_page", [1, 3, 10])
    def test_pages_partition_the_items(self, total: int, per_page: int) -> None:
        items = list(range(total))
        collected: list[int] = []
        for number in range(1, count_pages(total, per_page) + 1):
            page = paginate(items, number, per_page)
            assert len(page.items) <= per_page
            collected.extend(page.items)

        assert collected == items


class TestCapItems:
    def test_no_limit(self) -> None:
        assert cap_items([1, 2, 3], None) == ([1, 2, 3], False)

    def test_under_limit(self) -> None:
        assert cap_items([1, 2, 3], 3) == ([1, 2, 3], False)

    def test_over_limit(self) -> None:
        assert cap_items([1, 2, 3, 4], 2) == ([1, 2], True)


class TestSortForListing:
    def test_by_path(self) -> None:
        assert sort_for_listing(["b", "c", "a"], path=str) == ["a", "b", "c"]

    def test_newest_first_with_missing_last(self) -> None:
        mtimes = {"a": 1.0, "b": 3.0, "c": None, "d": 3.0}

        ordered = sort_for_listing(list(mtimes), path=str, modified=mtimes.get)

        assert ordered == ["b", "d", "a", "c"]

    def test_reverse(self) -> None:
        assert sort_for_listing(["b", "a"], path=str, reverse=True) == ["b", "a"]

    def test_reverse_keeps_missing_mtimes_last(self) -> None:
        mtimes = {"a": 1.0, "b": 3.0, "c": None, "d": 2.0, "e": None}

        ordered = sort_for_listing(list(mtimes), path=str, modified=mtimes.get, reverse=True)

        assert ordered == ["a", "d", "b", "e", "c"]
