"""
Unit tests for the Search/Filter Engine
"""
from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError

from marketplace_api.database.models import ReviewStatus
from marketplace_api.engines.search import SearchEngine, contains_pattern, rating_bucket
from marketplace_api.schemas.search import SearchQuery


def ids(products):
    return [product.id for product in products]


@pytest.fixture
async def catalog(seed):
    birds = await seed.category("Birds")
    feed = await seed.category("Feed")
    acme = await seed.brand("Acme")
    zen = await seed.brand("Zen")
    vendor = await seed.user()
    return {
        "birds": birds,
        "feed": feed,
        "acme": acme,
        "zen": zen,
        "parrot": await seed.product(
            birds, acme, name="Grey Parrot", mrp=5000, images=["parrot-1.jpg", "parrot-2.jpg"]
        ),
        "finch": await seed.product(
            birds, zen, name="Zebra Finch", description="Small and PARROT-friendly", mrp=800,
            selling_percentage=50,
        ),
        "seed_mix": await seed.product(
            feed, acme, name="Seed Mix", mrp=300, is_prime=True, prime_vendor=vendor,
        ),
        "hidden": await seed.product(feed, zen, name="Parrot Pellets", mrp=200, is_active=False),
    }


async def rate(seed, product, ratings):
    owner = await seed.user()
    order = await seed.order(owner.id, [(product, 1)])
    for rating in ratings:
        await seed.review(product, await seed.user(), order, rating)


class TestAdvancedSearch:

    @pytest.mark.unit
    async def test_text_matches_name_or_description_case_insensitive(self, db_session, search_engine, catalog):
        """Text search covers name and description, any case"""
        result = await search_engine.advanced_search(db_session, SearchQuery(q="parrot"))

        # Inactive "Parrot Pellets" is never returned
        assert ids(result.products) == [catalog["finch"].id, catalog["parrot"].id]
        assert result.pagination.total == 2
        assert result.pagination.pages == 1

    @pytest.mark.unit
    async def test_price_bounds_are_inclusive(self, db_session, search_engine, catalog):
        """Products priced exactly at a bound are kept"""
        query = SearchQuery(min_price=300, max_price=400, sort_by="price_asc")
        result = await search_engine.advanced_search(db_session, query)
        # Finch sells at 400, Seed Mix at 300
        assert ids(result.products) == [catalog["seed_mix"].id, catalog["finch"].id]

    @pytest.mark.unit
    async def test_brand_set_and_prime_flag(self, db_session, search_engine, catalog):
        """Several brands and the prime flag filter together"""
        by_brand = await search_engine.advanced_search(
            db_session, SearchQuery(brand_id=[catalog["zen"].id], sort_by="newest")
        )
        assert ids(by_brand.products) == [catalog["finch"].id]

        prime = await search_engine.advanced_search(db_session, SearchQuery(is_prime=True))
        assert ids(prime.products) == [catalog["seed_mix"].id]

    @pytest.mark.unit
    async def test_category_filter_and_sorts(self, db_session, search_engine, catalog):
        """Price and discount sorts order a category"""
        desc = await search_engine.advanced_search(
            db_session, SearchQuery(category_id=catalog["birds"].id, sort_by="price_desc")
        )
        assert ids(desc.products) == [catalog["parrot"].id, catalog["finch"].id]

        discount = await search_engine.advanced_search(db_session, SearchQuery(sort_by="discount"))
        assert discount.products[0].id == catalog["finch"].id
        assert discount.products[0].discount == 50

    @pytest.mark.unit
    async def test_pagination(self, db_session, search_engine, catalog):
        """Pages slice the sorted result"""
        result = await search_engine.advanced_search(db_session, SearchQuery(page=2, limit=2, sort_by="newest"))
        assert ids(result.products) == [catalog["parrot"].id]
        assert result.pagination.model_dump() == {"total": 3, "page": 2, "pages": 2, "limit": 2}

    @pytest.mark.unit
    async def test_rating_sort_and_min_rating_within_page(self, db_session, seed, search_engine, catalog):
        """Rating sort and floor act on the enriched page"""
        await rate(seed, catalog["parrot"], [5, 4])
        await rate(seed, catalog["seed_mix"], [3])

        by_rating = await search_engine.advanced_search(db_session, SearchQuery(sort_by="rating"))
        assert ids(by_rating.products) == [catalog["parrot"].id, catalog["seed_mix"].id, catalog["finch"].id]
        assert by_rating.products[0].average_rating == 4.5
        assert by_rating.products[0].review_count == 2

        floored = await search_engine.advanced_search(db_session, SearchQuery(min_rating=3.5))
        assert ids(floored.products) == [catalog["parrot"].id]
        # Total reflects the filtered page only
        assert floored.pagination.total == 1

    @pytest.mark.unit
    async def test_fail_soft_returns_empty_shape(self):
        """A failing search returns an empty page"""
        db = AsyncMock()
        db.execute.side_effect = RuntimeError("boom")

        result = await SearchEngine(fail_soft=True).advanced_search(db, SearchQuery(page=3, limit=5))

        assert result.products == []
        assert result.pagination.model_dump() == {"total": 0, "page": 3, "pages": 0, "limit": 5}

    @pytest.mark.unit
    async def test_fail_loud_propagates(self):
        """With fail-soft off the error surfaces"""
        db = AsyncMock()
        db.execute.side_effect = RuntimeError("boom")
        with pytest.raises(RuntimeError):
            await SearchEngine(fail_soft=False).get_popular_searches(db)


    @pytest.mark.unit
    async def test_wildcards_in_query_match_literally(self, db_session, seed, search_engine, catalog):
        """Percent and underscore in the query are not LIKE wildcards"""
        sale = await seed.product(catalog["feed"], catalog["acme"], name="Millet 50% Extra")
        await seed.product(catalog["feed"], catalog["acme"], name="Millet 500g")
        bath = await seed.product(catalog["birds"], catalog["zen"], name="bird_bath")
        await seed.product(catalog["birds"], catalog["zen"], name="birdXbath")

        percent = await search_engine.advanced_search(db_session, SearchQuery(q="50%"))
        underscore = await search_engine.advanced_search(db_session, SearchQuery(q="d_b"))

        assert ids(percent.products) == [sale.id]
        assert ids(underscore.products) == [bath.id]

    @pytest.mark.unit
    def test_unknown_sort_is_rejected(self):
        """Only the six supported sort orders validate"""
        with pytest.raises(ValidationError):
            SearchQuery(sort_by="popularity")

    @pytest.mark.unit
    def test_contains_pattern_escapes_wildcards(self):
        """Backslash, percent and underscore are escaped inside the pattern"""
        assert contains_pattern(" 10%_off\\ ") == r"%10\%\_off\\%"


class TestSuggestions:

    @pytest.mark.unit
    async def test_short_query_is_empty(self, db_session, search_engine, catalog):
        """Queries under two characters suggest nothing"""
        assert await search_engine.get_suggestions(db_session, "p") == []
        assert await search_engine.get_suggestions(db_session, None) == []

    @pytest.mark.unit
    async def test_wildcards_match_literally(self, db_session, seed, search_engine, catalog):
        """A percent sign in the prefix only matches names that contain it"""
        await seed.product(catalog["feed"], catalog["acme"], name="Millet 50% Extra")
        await seed.product(catalog["feed"], catalog["acme"], name="Millet 500g")

        result = await search_engine.get_suggestions(db_session, "50%")

        assert [s.name for s in result] == ["Millet 50% Extra"]

    @pytest.mark.unit
    async def test_sorted_by_name_with_first_image(self, db_session, seed, search_engine, catalog):
        """Suggestions are sorted by name and carry the first image"""
        await seed.product(catalog["birds"], catalog["zen"], name="Parrot Cage")

        result = await search_engine.get_suggestions(db_session, "PARROT")

        # Inactive "Parrot Pellets" is excluded
        assert [s.name for s in result] == ["Grey Parrot", "Parrot Cage"]
        assert result[0].image == "parrot-1.jpg"
        assert result[1].image is None


class TestFilterOptions:

    @pytest.mark.unit
    async def test_brands_and_price_range_scoped_to_matches(self, db_session, search_engine, catalog):
        """Facets only describe matching products"""
        options = await search_engine.get_filter_options(db_session, category_id=catalog["birds"].id)

        assert [brand.name for brand in options.brands] == ["Acme", "Zen"]
        assert options.price_range.min == 400
        assert options.price_range.max == 5000

    @pytest.mark.unit
    async def test_no_matches(self, db_session, search_engine, catalog):
        """No matches gives empty facets and a zero price range"""
        options = await search_engine.get_filter_options(db_session, q="nothing-matches")

        assert options.brands == []
        assert (options.price_range.min, options.price_range.max) == (0, 0)
        assert [bucket.count for bucket in options.ratings] == [0, 0, 0, 0, 0]

    @pytest.mark.unit
    async def test_rating_histogram_scope(self, db_session, seed, catalog):
        """The histogram follows the filter unless configured global"""
        await rate(seed, catalog["parrot"], [5, 5])
        await rate(seed, catalog["finch"], [3, 4])
        await rate(seed, catalog["seed_mix"], [1])

        scoped = await SearchEngine(fail_soft=False, scope_rating_facets=True).get_filter_options(
            db_session, category_id=catalog["birds"].id
        )
        assert [(b.min, b.max, b.count) for b in scoped.ratings] == [
            (0, 1, 0), (1, 2, 0), (2, 3, 0), (3, 4, 1), (4, 5, 1),
        ]

        unscoped = await SearchEngine(fail_soft=False, scope_rating_facets=False).get_filter_options(
            db_session, category_id=catalog["birds"].id
        )
        assert [b.count for b in unscoped.ratings] == [0, 1, 0, 1, 1]

    @pytest.mark.unit
    async def test_rejected_reviews_are_ignored(self, db_session, seed, search_engine, catalog):
        """Rejected reviews never reach the histogram"""
        order = await seed.order((await seed.user()).id, [(catalog["parrot"], 1)])
        await seed.review(catalog["parrot"], await seed.user(), order, 1, status=ReviewStatus.REJECTED)

        options = await search_engine.get_filter_options(db_session)
        assert sum(bucket.count for bucket in options.ratings) == 0

    @pytest.mark.unit
    def test_rating_bucket_edges(self):
        """Averages floor into five buckets, five joins the top one"""
        assert rating_bucket(0.0) == 0
        assert rating_bucket(0.99) == 0
        assert rating_bucket(3.99) == 3
        assert rating_bucket(4.0) == 4
        assert rating_bucket(5.0) == 4


class TestPopularSearches:

    @pytest.mark.unit
    async def test_categories_by_active_product_count(self, db_session, seed, search_engine, catalog):
        """Popular terms are categories ranked by active products"""
        await seed.product(catalog["birds"], catalog["acme"], name="Budgie")

        result = await search_engine.get_popular_searches(db_session)

        assert [(item.term, item.count) for item in result] == [("Birds", 3), ("Feed", 1)]

