import pytest

from bepawa.domain.catalog.filters import ProductFilters, filter_products, sanitize_search_term

PRODUCTS = [
    {"id": "1", "name": "amoxicillin", "description": "Antibiotic", "manufacturer": "Shelys",
     "category": "antibiotics", "price": 4500.0, "stock": 0},
    {"id": "2", "name": "Paracetamol", "description": "Pain relief", "manufacturer": "Kairuki",
     "category": "analgesics", "price": 1000.0, "stock": 8},
    {"id": "3", "name": "Ibuprofen", "description": "Anti-inflammatory", "manufacturer": "Shelys",
     "category": "analgesics", "price": 2500.0, "stock": 40},
    {"id": "4", "name": "Zinc tablets", "description": None, "manufacturer": None,
     "category": "supplements", "price": 3000.0, "stock": 10},
]


def _ids(rows):
    return [row["id"] for row in rows]


@pytest.mark.unit
def test_default_sort_is_case_insensitive_name():
    assert _ids(filter_products(PRODUCTS)) == ["1", "3", "2", "4"]


@pytest.mark.unit
def test_input_is_not_mutated():
    snapshot = [dict(row) for row in PRODUCTS]
    result = filter_products(PRODUCTS, {"sortBy": "price-desc"})
    assert PRODUCTS == snapshot
    assert result is not PRODUCTS


@pytest.mark.unit
def test_search_matches_manufacturer_and_is_sanitized():
    assert _ids(filter_products(PRODUCTS, ProductFilters(search_term="  <shelys> "))) == ["1", "3"]
    assert sanitize_search_term(" <b>para</b> ") == "bpara/b"


@pytest.mark.unit
def test_category_all_means_no_constraint():
    assert len(filter_products(PRODUCTS, {"selectedCategory": "all"})) == len(PRODUCTS)
    assert _ids(filter_products(PRODUCTS, {"category": "analgesics"})) == ["3", "2"]


@pytest.mark.unit
def test_price_range_is_inclusive():
    result = filter_products(PRODUCTS, {"priceRange": [1000, 3000]})
    assert all(1000 <= row["price"] <= 3000 for row in result)
    assert set(_ids(result)) == {"2", "3", "4"}


@pytest.mark.unit
def test_malformed_price_range_is_ignored():
    assert len(filter_products(PRODUCTS, {"price_range": ["cheap", "dear"]})) == len(PRODUCTS)
    assert len(filter_products(PRODUCTS, {"price_range": [1]})) == len(PRODUCTS)


@pytest.mark.unit
@pytest.mark.parametrize("bucket,expected", [
    ("out-of-stock", {"1"}),
    ("low-stock", {"2", "4"}),
    ("in-stock", {"3"}),
    ("backorder", {"1", "2", "3", "4"}),
])
def test_stock_buckets_use_fixed_thresholds(bucket, expected):
    assert set(_ids(filter_products(PRODUCTS, {"stockFilter": bucket}))) == expected


@pytest.mark.unit
def test_out_of_stock_filter_only_returns_empty_lines():
    assert all(row["stock"] == 0 for row in filter_products(PRODUCTS, {"stock_filter": "out-of-stock"}))


@pytest.mark.unit
def test_price_desc_reverses_price_on_distinct_prices():
    ascending = _ids(filter_products(PRODUCTS, {"sort_by": "price"}))
    descending = _ids(filter_products(PRODUCTS, {"sort_by": "price-desc"}))
    assert descending == list(reversed(ascending))


@pytest.mark.unit
def test_unknown_sort_falls_back_to_name():
    assert _ids(filter_products(PRODUCTS, {"sort_by": "popularity"})) == _ids(filter_products(PRODUCTS))


@pytest.mark.unit
def test_sort_is_stable_for_ties():
    rows = [{"id": str(i), "name": "Same", "price": 1.0, "stock": 1} for i in range(5)]
    assert _ids(filter_products(rows, {"sort_by": "stock-desc"})) == ["0", "1", "2", "3", "4"]
