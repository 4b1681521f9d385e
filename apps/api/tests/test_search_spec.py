"""
Unit tests for SearchSpecification: validation at definition time and the
one-time choice between semantic and metadata matching.
"""

from datetime import datetime, timezone

import pytest

from smartalbums.core.enums import AssetType
from smartalbums.core.errors import SearchSpecValidationError
from smartalbums.domain.matching import MetadataQuery, PersonFilter, SemanticQuery
from smartalbums.schemas.search_spec import SearchSpecification, parse_search_spec


def _dt(year: int, month: int = 1, day: int = 1) -> datetime:
    return datetime(year, month, day, tzinfo=timezone.utc)


class TestStrategySelection:

    def test_given_non_empty_query_when_converting_then_returns_semantic_query_without_metadata_filters(self):
        """Given a query and metadata filters, when converting, then only the semantic variant survives."""
        # Given
        spec = parse_search_spec({
            "query": "sunset beach",
            "personIds": ["p1"],
            "isFavorite": True,
            "takenAfter": "2020-01-01T00:00:00Z",
            "city": "Lisbon",
        })

        # When
        query = spec.to_query()

        # Then
        assert isinstance(query, SemanticQuery)
        assert query.text == "sunset beach"
        assert query.people == PersonFilter(frozenset({"p1"}), False)
        assert not hasattr(query, "filters")

    def test_given_whitespace_query_when_converting_then_returns_metadata_query(self):
        """Given a query of only spaces, when converting, then metadata search is used."""
        # Given
        spec = parse_search_spec({"query": "   ", "personIds": ["p1"]})

        # When
        query = spec.to_query()

        # Then
        assert isinstance(query, MetadataQuery)
        assert query.people.person_ids == frozenset({"p1"})

    def test_given_no_page_settings_when_converting_then_uses_strategy_default_sizes(self):
        """Given no page or size, when converting, then semantic uses 100 and metadata uses 250."""
        # Given
        semantic = parse_search_spec({"query": "dogs"})
        metadata = parse_search_spec({"isFavorite": True})

        # When/Then
        assert semantic.to_query().page.size == 100
        assert metadata.to_query().page.size == 250
        assert semantic.to_query().page.page == 1

    def test_given_explicit_page_and_size_when_converting_then_keeps_them(self):
        """Given page and size, when converting, then both are carried to the query."""
        # Given
        spec = parse_search_spec({"query": "dogs", "page": 2, "size": 10})

        # When
        page = spec.to_query().page

        # Then
        assert (page.page, page.size) == (2, 10)

    def test_given_metadata_spec_when_converting_then_only_set_filters_are_active(self):
        """Given a couple of filters, when converting, then the query exposes exactly those."""
        # Given
        spec = parse_search_spec({"type": "VIDEO", "make": "Canon", "withArchived": True})

        # When
        query = spec.to_query()

        # Then
        assert query.filters.active() == {"type": AssetType.video, "make": "Canon", "with_archived": True}

    def test_given_people_together_when_converting_then_person_filter_requires_all(self):
        """Given peopleTogether, when converting, then the person filter is marked together."""
        # Given
        spec = parse_search_spec({"personIds": ["p1", "p2", "p1"], "peopleTogether": True})

        # When
        people = spec.to_query().people

        # Then
        assert people.together is True
        assert people.person_ids == frozenset({"p1", "p2"})


class TestValidation:

    def test_given_reversed_date_range_when_validating_then_raises_validation_error(self):
        """Given takenAfter later than takenBefore, when validating, then the range is rejected."""
        # When/Then
        with pytest.raises(SearchSpecValidationError) as exc:
            parse_search_spec({"takenAfter": _dt(2021), "takenBefore": _dt(2020)})
        assert any("takenAfter" in e for e in exc.value.errors)

    def test_given_reversed_range_mixing_aware_and_naive_dates_when_validating_then_raises_validation_error(self):
        """Given an aware takenAfter and a naive earlier takenBefore, when validating, then naive is read as UTC."""
        # When/Then
        with pytest.raises(SearchSpecValidationError) as exc:
            parse_search_spec({"takenAfter": "2021-01-01T00:00:00Z", "takenBefore": "2020-01-01T00:00:00"})
        assert any("takenAfter" in e for e in exc.value.errors)

    def test_given_ordered_range_mixing_aware_and_naive_dates_when_validating_then_accepts_it(self):
        """Given an aware takenAfter and a naive later takenBefore, when validating, then the range is accepted."""
        # When
        spec = parse_search_spec({"takenAfter": "2020-01-01T00:00:00Z", "takenBefore": "2021-01-01T00:00:00"})

        # Then
        assert spec.taken_before == datetime(2021, 1, 1)

    def test_given_trashed_range_without_deleted_when_validating_then_raises_validation_error(self):
        """Given trashed filters with withDeleted=false, when validating, then it is rejected."""
        # When/Then
        with pytest.raises(SearchSpecValidationError):
            parse_search_spec({"trashedAfter": _dt(2021), "withDeleted": False})

    def test_given_archived_conflict_when_validating_then_raises_validation_error(self):
        """Given isArchived=true and withArchived=false, when validating, then it is rejected."""
        # When/Then
        with pytest.raises(SearchSpecValidationError):
            parse_search_spec({"isArchived": True, "withArchived": False})

    def test_given_empty_spec_when_validating_then_raises_validation_error(self):
        """Given nothing to match on, when validating, then the album would not be smart and is rejected."""
        # When/Then
        with pytest.raises(SearchSpecValidationError):
            parse_search_spec({"query": ""})

    @pytest.mark.parametrize("field,value", [("page", 0), ("size", 0), ("size", 5000)])
    def test_given_out_of_range_pagination_when_validating_then_raises_validation_error(self, field, value):
        """Given an invalid page or size, when validating, then it is rejected with the field name."""
        # When/Then
        with pytest.raises(SearchSpecValidationError) as exc:
            parse_search_spec({"query": "cats", field: value})
        assert any(field in e for e in exc.value.errors)

    def test_given_snake_case_names_when_validating_then_accepts_them(self):
        """Given python field names instead of camelCase, when validating, then they are accepted."""
        # Given/When
        spec = parse_search_spec({"person_ids": ["p1"], "people_together": True})

        # Then
        assert spec.person_ids == ["p1"]
        assert spec.people_together is True

    def test_given_existing_specification_when_parsing_then_returns_equal_copy(self):
        """Given an already valid specification, when parsing it again, then it validates unchanged."""
        # Given
        spec = SearchSpecification(query="mountains", person_ids=["p1"])

        # When
        again = parse_search_spec(spec)

        # Then
        assert again == spec
