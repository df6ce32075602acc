"""Query builder tests."""
import itertools

import pytest

from zentro.db.query_builder import (
    PLACEHOLDER_PATTERN,
    Filter,
    QueryBuilder,
    normalize_direction,
    pagination_info,
)
from zentro.services.property_service import PUBLIC_FILTERS

SAMPLE_VALUES = {
    "type": "Villa",
    "status": "For Sale",
    "location": "Karen",
    "location_city": "Nairobi",
    "location_area": "Kilimani",
    "search": "pool",
    "min_price": "100",
    "max_price": "900000000",
    "bedrooms": "2",
    "bathrooms": "1",
    "min_size": "50",
    "max_size": "600",
    "furnished": "true",
    "featured": "false",
    "available": "true",
    "published": "true",
}


def placeholder_indexes(sql: str):
    return [int(n) for n in PLACEHOLDER_PATTERN.findall(sql)]


def assert_lockstep(sql: str, params: list):
    indexes = placeholder_indexes(sql)
    first_seen = list(dict.fromkeys(indexes))
    assert first_seen == list(range(1, len(params) + 1))


def test_no_filters_produces_base_clause_with_defaults():
    built = (
        QueryBuilder("*", "properties")
        .order_by(None, None, allowed=("created_at",), default="created_at")
        .paginate()
        .build()
    )
    assert built.sql == "SELECT * FROM properties WHERE 1=1 ORDER BY created_at DESC LIMIT :p1 OFFSET :p2"
    assert built.params == [50, 0]


def test_placeholders_match_params_for_every_filter_subset():
    keys = list(SAMPLE_VALUES)
    for size in (0, 1, 2, 3, len(keys)):
        for subset in itertools.combinations(keys, size):
            values = {k: SAMPLE_VALUES[k] for k in subset}
            builder = QueryBuilder("*", "properties").apply_filters(PUBLIC_FILTERS, values)
            built = builder.order_by("price", "asc", allowed=("price",), default="created_at").paginate(10, 20).build()

            assert_lockstep(built.sql, built.params)
            assert built.params[-2:] == [10, 20]
            assert len(built.params) == len(subset) + 2


def test_params_follow_filter_order_not_input_order():
    values = {"max_price": "500", "type": "Condo", "min_price": "100"}
    built = QueryBuilder("*", "properties").apply_filters(PUBLIC_FILTERS, values).build()
    assert built.params[:3] == ["Condo", 100, 500]
    assert "type = :p1" in built.sql
    assert "price >= :p2" in built.sql
    assert "price <= :p3" in built.sql


def test_empty_values_are_skipped_without_gaps():
    values = {"type": "", "status": None, "search": "   ", "min_price": "10"}
    built = QueryBuilder("*", "properties").apply_filters(PUBLIC_FILTERS, values).build()
    assert "price >= :p1" in built.sql
    assert built.params == [10, 50, 0]


def test_false_flag_is_not_treated_as_empty():
    built = QueryBuilder("*", "properties").apply_filters(PUBLIC_FILTERS, {"featured": "false"}).build()
    assert "featured = :p1" in built.sql
    assert built.params[0] is False


def test_search_across_columns_uses_one_parameter():
    columns = ("title", "description", "location_area")
    built = QueryBuilder("*", "properties").where_search(columns, "Pool").build()

    assert built.params[0] == "%Pool%"
    assert len(built.params) == 3
    assert placeholder_indexes(built.sql).count(1) == len(columns)
    for column in columns:
        assert f"LOWER({column}) LIKE LOWER(:p1)" in built.sql


def test_unknown_sort_field_falls_back_to_default():
    built = (
        QueryBuilder("*", "properties")
        .order_by("password; DROP TABLE properties", "asc", allowed=("price",), default="created_at")
        .build()
    )
    assert "ORDER BY created_at ASC" in built.sql
    assert "DROP" not in built.sql


@pytest.mark.parametrize("direction,expected", [
    ("asc", "ASC"),
    ("ASC", "ASC"),
    (" Asc ", "ASC"),
    ("desc", "DESC"),
    ("sideways", "DESC"),
    (None, "DESC"),
])
def test_direction_normalised(direction, expected):
    assert normalize_direction(direction) == expected


def test_tiebreak_follows_primary_sort():
    built = (
        QueryBuilder("*", "properties")
        .order_by("price", "desc", allowed=("price",), default="created_at", tiebreak="featured DESC")
        .build()
    )
    assert "ORDER BY price DESC, featured DESC LIMIT" in built.sql


def test_count_query_shares_filters_but_not_pagination():
    builder = (
        QueryBuilder("*", "properties")
        .where_equals("type", "Villa")
        .where_search(("title", "description"), "sea")
        .order_by("price", "asc", allowed=("price",), default="created_at")
        .paginate(5, 10)
    )
    built = builder.build()
    count = builder.build_count()

    assert count.sql == (
        "SELECT COUNT(*) FROM properties WHERE 1=1 AND type = :p1 AND "
        "(LOWER(title) LIKE LOWER(:p2) OR LOWER(description) LIKE LOWER(:p2))"
    )
    assert count.params == ["Villa", "%sea%"]
    assert built.params == count.params + [5, 10]


def test_where_raw_adds_no_parameters():
    built = QueryBuilder("*", "properties").where_raw("published = true").where_equals("type", "Villa").build()
    assert "published = true AND type = :p1" in built.sql
    assert built.params == ["Villa", 50, 0]


def test_compare_rejects_unknown_operator():
    with pytest.raises(ValueError):
        QueryBuilder("*", "properties").where_compare("price", "; DELETE", 1)


def test_unknown_filter_kind_rejected():
    with pytest.raises(ValueError):
        QueryBuilder("*", "properties").apply_filters([Filter("x", "regex", ("x",))], {"x": "1"})


def test_bind_params_map_to_numbered_names():
    built = QueryBuilder("*", "properties").where_equals("type", "Villa").build()
    assert built.bind_params() == {"p1": "Villa", "p2": 50, "p3": 0}


def test_pagination_info():
    assert pagination_info(total=25, limit=10, offset=10) == {
        "total": 25, "limit": 10, "offset": 10, "hasNext": True, "hasPrev": True
    }
    assert pagination_info(total=5, limit=10, offset=0)["hasNext"] is False
