"""Tests for the in-memory query engine."""

from credstore.core.types import ListOptions
from credstore.query import (
    count_by,
    filter_records,
    is_date_field,
    is_status_field,
    list_records,
    matches_filter,
    paginate,
    search_records,
    sort_records,
)


def _people(n: int) -> list[dict]:
    return [{"id": f"p{i}", "name": f"Person {i:02d}"} for i in range(1, n + 1)]


class TestListRecords:
    """End-to-end listing."""

    def test_second_page_sorted_by_name(self) -> None:
        records = _people(40)
        records.reverse()
        result = list_records(
            records, ListOptions(sort_by="name", sort_order="asc", page=2, page_size=15)
        )
        assert [r["id"] for r in result.data] == [f"p{i}" for i in range(16, 31)]
        assert result.total_records == 40
        assert result.page == 2
        assert result.page_size == 15

    def test_defaults(self) -> None:
        result = list_records(_people(20))
        assert result.page == 1
        assert result.page_size == 15
        assert len(result.data) == 15

    def test_default_page_size_override(self) -> None:
        result = list_records(_people(30), default_page_size=25)
        assert len(result.data) == 25

    def test_total_counts_filtered_records(self) -> None:
        records = [{"id": str(i), "status": "Open" if i % 2 else "Closed"} for i in range(10)]
        result = list_records(records, ListOptions(filters={"status": "Open"}, page_size=2))
        assert result.total_records == 5
        assert len(result.data) == 2

    def test_page_past_end_is_empty(self) -> None:
        result = list_records(_people(5), ListOptions(page=3, page_size=5))
        assert result.data == []
        assert result.total_records == 5

    def test_options_accept_camel_case(self) -> None:
        options = ListOptions.model_validate(
            {"searchTerm": "x", "sortOrder": "DESC", "pageSize": 5}
        )
        assert options.search_term == "x"
        assert options.sort_order == "desc"
        assert options.page_size == 5


class TestFilter:
    """Exact and set filters."""

    def test_exact(self) -> None:
        assert matches_filter("NY", "NY")
        assert not matches_filter("NY", "NJ")
        assert matches_filter(5, "5")

    def test_comma_separated_set(self) -> None:
        assert matches_filter("NJ", "NY, NJ", split_commas=True)
        assert not matches_filter("CA", "NY,NJ", split_commas=True)

    def test_comma_is_literal_by_default(self) -> None:
        assert matches_filter("Smith, John", "Smith, John")
        assert not matches_filter("Smith", "Smith, John")

    def test_status_fields_accept_comma_sets(self) -> None:
        records = [
            {"status": "New", "name": "Smith, John"},
            {"status": "Closed", "name": "Smith"},
            {"status": "Denied", "name": "John"},
        ]
        assert filter_records(records, {"status": "New,Closed"}) == records[:2]
        assert filter_records(records, {"name": "Smith, John"}) == [records[0]]
        assert is_status_field("licenseStatus")
        assert not is_status_field("state")

    def test_list_set(self) -> None:
        assert matches_filter("NJ", ["NY", "NJ"])

    def test_booleans(self) -> None:
        assert matches_filter(True, True)
        assert matches_filter(True, "true")
        assert not matches_filter(False, True)

    def test_all_filters_must_match(self) -> None:
        records = [
            {"state": "NY", "status": "Active"},
            {"state": "NY", "status": "Inactive"},
            {"state": "NJ", "status": "Active"},
        ]
        kept = filter_records(records, {"state": "NY", "status": "Active"})
        assert kept == [records[0]]

    def test_empty_values_ignored(self) -> None:
        records = [{"state": "NY"}, {"state": "NJ"}]
        assert filter_records(records, {"state": "", "city": None, "zip": []}) == records


class TestSearch:
    """Free-text search."""

    RECORDS = [
        {"name": "Acme Clinic", "city": "Albany"},
        {"name": "Beta Health", "city": "Troy"},
        {"name": "Gamma", "city": None},
    ]

    def test_case_insensitive_substring(self) -> None:
        assert search_records(self.RECORDS, "CLIN", ["name", "city"]) == [self.RECORDS[0]]
        assert search_records(self.RECORDS, "tro", ["name", "city"]) == [self.RECORDS[1]]

    def test_only_listed_fields(self) -> None:
        assert search_records(self.RECORDS, "albany", ["name"]) == []

    def test_blank_term_keeps_everything(self) -> None:
        assert search_records(self.RECORDS, "  ", ["name"]) == self.RECORDS
        assert search_records(self.RECORDS, None, ["name"]) == self.RECORDS

    def test_no_fields_searches_every_field(self) -> None:
        assert search_records(self.RECORDS, "albany", []) == [self.RECORDS[0]]
        assert search_records(self.RECORDS, "zzz", []) == []


class TestSort:
    """Stable text and date sorting."""

    def test_text_is_case_insensitive(self) -> None:
        records = [{"n": "beta"}, {"n": "Alpha"}, {"n": "gamma"}]
        assert [r["n"] for r in sort_records(records, "n")] == ["Alpha", "beta", "gamma"]

    def test_stable_in_both_directions(self) -> None:
        records = [
            {"id": 1, "group": "b"},
            {"id": 2, "group": "a"},
            {"id": 3, "group": "b"},
            {"id": 4, "group": "a"},
        ]
        asc = sort_records(records, "group", "asc")
        desc = sort_records(records, "group", "desc")
        assert [r["id"] for r in asc] == [2, 4, 1, 3]
        assert [r["id"] for r in desc] == [1, 3, 2, 4]

    def test_dates_compare_chronologically(self) -> None:
        records = [
            {"id": "a", "createdAt": "2024-03-01T00:00:00Z"},
            {"id": "b", "createdAt": "2023-12-31T23:00:00-05:00"},
            {"id": "c", "createdAt": ""},
            {"id": "d", "createdAt": "2024-01-01T03:00:00+00:00"},
        ]
        asc = [r["id"] for r in sort_records(records, "createdAt")]
        desc = [r["id"] for r in sort_records(records, "createdAt", "desc")]
        assert asc == ["c", "d", "b", "a"]
        assert desc == ["a", "b", "d", "c"]

    def test_date_field_detection(self) -> None:
        assert is_date_field("createdAt")
        assert is_date_field("expirationDate")
        assert is_date_field("signedOn")
        assert is_date_field("date")
        assert is_date_field("reviewed", ["reviewed"])
        assert not is_date_field("status")

    def test_no_sort_keeps_order(self) -> None:
        records = [{"n": "b"}, {"n": "a"}]
        assert sort_records(records, None) == records


class TestPaginateAndCount:
    """Pagination and histograms."""

    def test_invalid_page_values_fall_back(self) -> None:
        page, number, size = paginate(list(range(40)), 0, -1)
        assert (number, size) == (1, 15)
        assert page == list(range(15))

    def test_count_by(self) -> None:
        records = [{"status": "New"}, {"status": "New"}, {"status": "Closed"}, {}]
        assert count_by(records, "status") == {"New": 2, "Closed": 1, "": 1}
