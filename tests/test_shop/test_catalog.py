"""
Tests for the product catalog view-model.

These tests verify search, visibility filtering, ordering and the
sort-toggle behaviour of the dashboard product list.
"""

import pytest
from pydantic import ValidationError

from shop.catalog import (
    CatalogQuery,
    ProductCatalogView,
    SortDirection,
    VisibilityFilter,
    filter_products,
    locale_key,
    matches_search,
    sort_products,
)
from shop.data_store import DataStore
from shop.models import DigitalProduct, PhysicalProduct


def names(products) -> list[str]:
    return [p.name for p in products]


class TestSearch:
    """Tests for the search term."""

    @pytest.mark.parametrize("term", ["robe", "ROBE", "coton", "été", "ÉTÉ", "cuir", "écharpe"])
    def test_every_result_contains_term(self, sample_products, term: str):
        results = filter_products(sample_products, CatalogQuery(search_term=term))

        assert results
        needle = term.casefold()
        for product in results:
            haystacks = [product.name, product.description, *product.tags]
            assert any(needle in h.casefold() for h in haystacks)

    def test_matches_tags(self, sample_products):
        results = filter_products(sample_products, CatalogQuery(search_term="accessoires"))
        assert names(results) == ["Sac"]

    def test_empty_term_returns_everything(self, sample_products):
        results = filter_products(sample_products, CatalogQuery(search_term=""))
        assert len(results) == len(sample_products)

    def test_no_match(self, sample_products):
        assert filter_products(sample_products, CatalogQuery(search_term="vélo")) == []

    def test_category_is_not_searched(self, sample_products):
        # Chapeau's category is Accessoires but it has no such tag
        assert not matches_search(sample_products[3], "accessoires")


class TestVisibilityFilter:
    """Tests for the published/unpublished filter."""

    def test_visible_only(self, sample_products):
        results = filter_products(sample_products, CatalogQuery(visibility=VisibilityFilter.VISIBLE))
        assert all(p.is_visible for p in results)
        assert len(results) == 3

    def test_hidden_only(self, sample_products):
        results = filter_products(sample_products, CatalogQuery(visibility=VisibilityFilter.HIDDEN))
        assert names(results) == ["Sac"]

    def test_cycle(self):
        assert VisibilityFilter.ANY.cycle() is VisibilityFilter.VISIBLE
        assert VisibilityFilter.VISIBLE.cycle() is VisibilityFilter.HIDDEN
        assert VisibilityFilter.HIDDEN.cycle() is VisibilityFilter.ANY

    def test_empty_term_with_filter_returns_filtered_collection(self, sample_products):
        results = filter_products(
            sample_products,
            CatalogQuery(search_term="", visibility=VisibilityFilter.HIDDEN),
        )
        assert [p.id for p in results] == ["p-2"]


class TestOrdering:
    """Tests for sorting."""

    def test_example_visible_by_price(self):
        products = [
            PhysicalProduct(id="a", name="Robe", price=10000, is_visible=True),
            PhysicalProduct(id="b", name="Sac", price=5000, is_visible=False),
        ]
        query = CatalogQuery(
            visibility=VisibilityFilter.VISIBLE,
            sort_field="price",
            sort_direction=SortDirection.ASC,
        )

        results = filter_products(products, query)

        assert [(p.name, p.price) for p in results] == [("Robe", 10000)]

    def test_price_is_numeric(self):
        products = [
            PhysicalProduct(id="a", name="A", price=900),
            PhysicalProduct(id="b", name="B", price=10000),
            PhysicalProduct(id="c", name="C", price=50),
        ]
        assert names(sort_products(products, "price")) == ["C", "A", "B"]

    def test_name_is_locale_aware(self, sample_products):
        ordered = sort_products(sample_products, "name", SortDirection.ASC)
        # Accented lowercase "écharpe" sorts with the e's, not after Z
        assert names(ordered) == ["Chapeau", "écharpe tutoriel", "Robe", "Sac"]

    def test_locale_key_ignores_accents_and_case(self):
        assert locale_key("Été")[0] == locale_key("ete")[0]
        assert locale_key("Zèbre") > locale_key("éclair")

    def test_created_at_descending_is_default(self, sample_products):
        results = filter_products(sample_products, CatalogQuery())
        assert [p.id for p in results] == ["p-4", "p-3", "p-1", "p-2"]

    def test_ties_broken_by_id(self, sample_products):
        # Sac and Chapeau share price 5000
        ordered = sort_products(sample_products, "price", SortDirection.ASC)
        assert [p.id for p in ordered] == ["p-3", "p-2", "p-4", "p-1"]

    def test_boolean_field_sorts_as_text(self, sample_products):
        ordered = sort_products(sample_products, "is_visible", SortDirection.ASC)
        assert ordered[0].id == "p-2"  # "false" < "true"

    def test_missing_values_sort_first(self, sample_products):
        # Only the physical products have a stock count
        ordered = sort_products(sample_products, "in_stock", SortDirection.ASC)
        assert [p.id for p in ordered] == ["p-3", "p-2", "p-1", "p-4"]

    @pytest.mark.parametrize(
        "field",
        ["name", "price", "is_visible", "created_at", "category", "in_stock", "tags", "description"],
    )
    def test_descending_is_exact_reverse(self, sample_products, field: str):
        ascending = sort_products(sample_products, field, SortDirection.ASC)
        descending = sort_products(sample_products, field, SortDirection.DESC)

        assert [p.id for p in descending] == [p.id for p in reversed(ascending)]

    def test_default_sub_kind_sorts_by_value(self):
        products = [
            DigitalProduct(id="a", name="Guide", price=1),
            DigitalProduct(id="b", name="Roman", price=1, digital_product_type="ebook"),
        ]

        ordered = sort_products(products, "digital_product_type", SortDirection.ASC)

        # "ebook" < "pdf"
        assert [p.id for p in ordered] == ["b", "a"]

    def test_unknown_sort_field_rejected(self):
        with pytest.raises(ValidationError):
            CatalogQuery(sort_field="colour")


class TestToggleSort:
    """Tests for clicking column headers."""

    def test_same_field_flips_direction(self):
        query = CatalogQuery(sort_field="price", sort_direction=SortDirection.ASC)

        assert query.toggle_sort("price").sort_direction is SortDirection.DESC

    def test_toggle_twice_restores_direction(self):
        query = CatalogQuery(sort_field="name", sort_direction=SortDirection.DESC)

        again = query.toggle_sort("name").toggle_sort("name")

        assert again.sort_field == "name"
        assert again.sort_direction is SortDirection.DESC

    @pytest.mark.parametrize("direction", [SortDirection.ASC, SortDirection.DESC])
    def test_new_field_starts_ascending(self, direction: SortDirection):
        query = CatalogQuery(sort_field="created_at", sort_direction=direction)

        toggled = query.toggle_sort("price")

        assert toggled.sort_field == "price"
        assert toggled.sort_direction is SortDirection.ASC

    def test_toggle_keeps_other_inputs(self):
        query = CatalogQuery(search_term="robe", visibility=VisibilityFilter.HIDDEN)
        toggled = query.toggle_sort("name")

        assert toggled.search_term == "robe"
        assert toggled.visibility is VisibilityFilter.HIDDEN

    def test_toggle_to_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            CatalogQuery().toggle_sort("colour")


class TestProductCatalogView:
    """Tests for the live view bound to a store."""

    def test_recomputes_on_every_input(self, sample_products):
        view = ProductCatalogView(sample_products)
        assert view.count == 4
        assert view.is_filtered is False

        view.set_search_term("sac")
        assert names(view.products) == ["Sac"]
        assert view.is_filtered is True

        view.set_search_term("")
        view.set_visibility(VisibilityFilter.VISIBLE)
        assert view.count == 3

        view.sort_by("price")
        assert [p.price for p in view.products] == [2000, 5000, 10000]

        view.sort_by("price")
        assert [p.price for p in view.products] == [10000, 5000, 2000]

    def test_cycle_visibility(self, sample_products):
        view = ProductCatalogView(sample_products)

        assert view.cycle_visibility() is VisibilityFilter.VISIBLE
        assert view.cycle_visibility() is VisibilityFilter.HIDDEN
        assert names(view.products) == ["Sac"]
        assert view.cycle_visibility() is VisibilityFilter.ANY
        assert view.count == 4

    def test_set_products(self, sample_products):
        view = ProductCatalogView(sample_products[:1])
        view.set_products(sample_products)
        assert view.count == 4

    def test_for_store(self, data_store: DataStore, fashion_store_id: str):
        view = ProductCatalogView.for_store(data_store, fashion_store_id)

        assert view.count == 5
        # Newest first
        assert view.products[0].id == "prod-004"

    def test_for_unknown_store(self, data_store: DataStore):
        assert ProductCatalogView.for_store(data_store, "nowhere") is None

    def test_delete_requires_confirmation(self, data_store: DataStore, fashion_store_id: str, bag_product_id: str):
        view = ProductCatalogView.for_store(data_store, fashion_store_id)

        assert view.delete_product(bag_product_id) is False
        assert view.count == 5
        assert data_store.get_store(fashion_store_id).get_product(bag_product_id) is not None

    def test_confirmed_delete(self, data_store: DataStore, fashion_store_id: str, bag_product_id: str):
        view = ProductCatalogView.for_store(data_store, fashion_store_id)

        assert view.delete_product(bag_product_id, confirmed=True) is True
        assert view.count == 4
        assert bag_product_id not in [p.id for p in view.products]

    def test_delete_on_unbound_view(self, sample_products):
        view = ProductCatalogView(sample_products)
        with pytest.raises(RuntimeError):
            view.delete_product("p-1", confirmed=True)
