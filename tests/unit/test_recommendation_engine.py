"""
Unit tests for the Recommendation Engine strategies and fallbacks
"""
from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest

from marketplace_api.database.models import OrderStatus, ReviewStatus
from marketplace_api.engines.recommendation import RecommendationEngine, enrich_with_ratings


def ids(products):
    return [product.id for product in products]


@pytest.fixture
async def catalog(seed):
    """Two categories, two brands and a handful of products"""
    birds = await seed.category("Birds")
    feed = await seed.category("Feed")
    acme = await seed.brand("Acme")
    zen = await seed.brand("Zen")
    products = {
        "parrot": await seed.product(birds, acme, name="Parrot"),
        "finch": await seed.product(birds, zen, name="Finch"),
        "seed_mix": await seed.product(feed, acme, name="Seed Mix"),
        "pellets": await seed.product(feed, zen, name="Pellets"),
        "retired": await seed.product(birds, acme, name="Retired", is_active=False),
    }
    return products


class TestFeaturedAndSimilar:

    @pytest.mark.unit
    async def test_featured_is_newest_active_first(self, recommendation_engine, catalog):
        """Featured lists active products newest first"""
        result = await recommendation_engine.get_featured(limit=10)
        assert ids(result) == [
            catalog["pellets"].id,
            catalog["seed_mix"].id,
            catalog["finch"].id,
            catalog["parrot"].id,
        ]

    @pytest.mark.unit
    async def test_similar_shares_category_or_brand(self, recommendation_engine, catalog):
        """Similar products share a category or a brand"""
        result = await recommendation_engine.get_similar(catalog["parrot"].id)
        # Finch shares the category, Seed Mix the brand; Pellets shares neither
        assert ids(result) == [catalog["seed_mix"].id, catalog["finch"].id]

    @pytest.mark.unit
    async def test_similar_unknown_product(self, recommendation_engine, catalog):
        """An unknown product has no similar items"""
        assert await recommendation_engine.get_similar(9999) == []


class TestTrending:

    @pytest.mark.unit
    async def test_ranked_by_order_count_then_quantity(self, recommendation_engine, seed, catalog):
        """Order count ranks first, quantity breaks ties"""
        customer = await seed.user()
        parrot, finch, seed_mix = catalog["parrot"], catalog["finch"], catalog["seed_mix"]

        for _ in range(3):
            await seed.order(customer.id, [(parrot, 1)])
        await seed.order(customer.id, [(finch, 10)])
        await seed.order(customer.id, [(finch, 10)])
        await seed.order(customer.id, [(seed_mix, 1)])
        await seed.order(customer.id, [(seed_mix, 5)])
        # Excluded: cancelled, rejected and outside the window
        for status in (OrderStatus.CANCELLED, OrderStatus.REJECTED):
            for _ in range(5):
                await seed.order(customer.id, [(catalog["pellets"], 1)], status=status)
        for _ in range(5):
            await seed.order(customer.id, [(catalog["pellets"], 1)], created_at=datetime.utcnow() - timedelta(days=45))

        result = await recommendation_engine.get_trending(limit=10)

        assert ids(result) == [parrot.id, finch.id, seed_mix.id]

    @pytest.mark.unit
    async def test_inactive_products_are_skipped(self, recommendation_engine, seed, catalog):
        """Inactive products drop out of the ranking"""
        customer = await seed.user()
        await seed.order(customer.id, [(catalog["retired"], 1)])
        await seed.order(customer.id, [(catalog["retired"], 1)])
        await seed.order(customer.id, [(catalog["finch"], 1)])

        result = await recommendation_engine.get_trending()
        assert ids(result) == [catalog["finch"].id]

    @pytest.mark.unit
    async def test_falls_back_to_featured(self, recommendation_engine, catalog):
        """With nothing ranked the featured list is returned"""
        result = await recommendation_engine.get_trending(limit=2)
        assert ids(result) == [catalog["pellets"].id, catalog["seed_mix"].id]


class TestTopRated:

    @pytest.mark.unit
    async def test_requires_minimum_reviews_and_orders_by_average(self, recommendation_engine, seed, catalog):
        """Only well-reviewed products rank, best average first"""
        parrot, finch, seed_mix = catalog["parrot"], catalog["finch"], catalog["seed_mix"]
        order_owner = await seed.user()
        order = await seed.order(order_owner.id, [(parrot, 1), (finch, 1), (seed_mix, 1)])

        async def rate(product, ratings, status=ReviewStatus.APPROVED):
            for rating in ratings:
                reviewer = await seed.user()
                await seed.review(product, reviewer, order, rating, status=status)

        await rate(parrot, [4, 4, 4, 4])
        await rate(finch, [5, 5, 4])
        await rate(seed_mix, [5, 5])  # too few reviews
        await rate(seed_mix, [5], status=ReviewStatus.PENDING)  # pending does not count

        result = await recommendation_engine.get_top_rated()

        assert ids(result) == [finch.id, parrot.id]
        assert result[0].average_rating == 4.7
        assert result[0].review_count == 3
        assert result[1].average_rating == 4.0
        assert result[1].review_count == 4

    @pytest.mark.unit
    async def test_falls_back_to_featured(self, recommendation_engine, catalog):
        """With nothing ranked the featured list is returned"""
        result = await recommendation_engine.get_top_rated(limit=1)
        assert ids(result) == [catalog["pellets"].id]


class TestPersonalized:

    @pytest.mark.unit
    async def test_recommends_related_unpurchased_products(self, recommendation_engine, seed, catalog):
        """Picks share a category or brand with past purchases"""
        customer = await seed.user()
        await seed.order(customer.id, [(catalog["parrot"], 1)])

        result = await recommendation_engine.get_personalized(customer.id)

        # Parrot is Birds/Acme: Finch (Birds) and Seed Mix (Acme) qualify
        assert ids(result) == [catalog["seed_mix"].id, catalog["finch"].id]

    @pytest.mark.unit
    async def test_no_history_returns_newest(self, recommendation_engine, seed, catalog):
        """Customers without orders get the newest products"""
        customer = await seed.user()
        result = await recommendation_engine.get_personalized(customer.id, limit=1)
        assert ids(result) == [catalog["pellets"].id]


class TestFrequentlyBoughtTogether:

    @pytest.mark.unit
    async def test_counts_co_occurrence_in_delivered_orders(self, recommendation_engine, seed, catalog):
        """Only delivered orders contribute co-occurrences"""
        customer = await seed.user()
        parrot, finch, seed_mix, pellets = (
            catalog["parrot"], catalog["finch"], catalog["seed_mix"], catalog["pellets"]
        )
        await seed.order(customer.id, [(parrot, 1), (seed_mix, 1)])
        await seed.order(customer.id, [(parrot, 1), (seed_mix, 2), (pellets, 1)])
        await seed.order(customer.id, [(parrot, 1), (finch, 1)], status=OrderStatus.PENDING)

        result = await recommendation_engine.get_frequently_bought_together(parrot.id)

        assert ids(result) == [seed_mix.id, pellets.id]

    @pytest.mark.unit
    async def test_repeated_lines_count_separately(self, recommendation_engine, seed, catalog):
        """A product on two lines of one order outranks one seen once"""
        customer = await seed.user()
        parrot, finch, pellets = catalog["parrot"], catalog["finch"], catalog["pellets"]
        await seed.order(customer.id, [(parrot, 1), (finch, 1)])
        await seed.order(customer.id, [(parrot, 1), (pellets, 1), (pellets, 2)])

        result = await recommendation_engine.get_frequently_bought_together(parrot.id)

        assert ids(result) == [pellets.id, finch.id]

    @pytest.mark.unit
    async def test_falls_back_to_similar(self, recommendation_engine, catalog):
        """With no co-purchases similar products are returned"""
        result = await recommendation_engine.get_frequently_bought_together(catalog["parrot"].id)
        assert ids(result) == [catalog["seed_mix"].id, catalog["finch"].id]


class TestHomepage:

    @pytest.mark.unit
    async def test_anonymous_homepage_uses_featured(self, session_factory, catalog):
        """Anonymous visitors get featured picks"""
        engine = RecommendationEngine(session_factory, fail_soft=False, homepage_size=2)
        result = await engine.get_homepage()

        assert set(result) == {"trending", "top_rated", "for_you"}
        assert ids(result["for_you"]) == [catalog["pellets"].id, catalog["seed_mix"].id]
        # No orders or reviews: both ranked lists fall back to featured
        assert ids(result["trending"]) == ids(result["for_you"])
        assert ids(result["top_rated"]) == ids(result["for_you"])

    @pytest.mark.unit
    async def test_authenticated_homepage_is_personalized(self, session_factory, seed, catalog):
        """Signed-in customers get personal picks"""
        customer = await seed.user()
        await seed.order(customer.id, [(catalog["pellets"], 1)])
        engine = RecommendationEngine(session_factory, fail_soft=False, homepage_size=8)

        result = await engine.get_homepage(customer.id)

        assert catalog["pellets"].id not in ids(result["for_you"])
        assert ids(result["trending"]) == [catalog["pellets"].id]


class TestFailSoft:

    @pytest.fixture
    def broken_factory(self):
        return MagicMock(side_effect=RuntimeError("database unavailable"))

    @pytest.mark.unit
    async def test_fail_soft_returns_empty(self, broken_factory):
        """A failing strategy yields an empty list"""
        engine = RecommendationEngine(broken_factory, fail_soft=True)
        assert await engine.get_trending() == []
        assert await engine.get_similar(1) == []
        homepage = await engine.get_homepage("customer")
        assert homepage == {"trending": [], "top_rated": [], "for_you": []}

    @pytest.mark.unit
    async def test_fail_loud_propagates(self, broken_factory):
        """With fail-soft off the error surfaces"""
        engine = RecommendationEngine(broken_factory, fail_soft=False)
        with pytest.raises(RuntimeError):
            await engine.get_featured()


class TestRatingEnrichment:

    @pytest.mark.unit
    async def test_defaults_and_aggregates(self, db_session, seed, catalog):
        """Unrated products default to zero, approved reviews only"""
        parrot, finch = catalog["parrot"], catalog["finch"]
        order = await seed.order((await seed.user()).id, [(parrot, 1)])
        await seed.review(parrot, await seed.user(), order, 5)
        await seed.review(parrot, await seed.user(), order, 2)
        await seed.review(parrot, await seed.user(), order, 1, status=ReviewStatus.REJECTED)

        enriched = await enrich_with_ratings(db_session, [finch, parrot])

        assert ids(enriched) == [finch.id, parrot.id]
        assert (enriched[0].average_rating, enriched[0].review_count) == (0, 0)
        assert (enriched[1].average_rating, enriched[1].review_count) == (3.5, 2)
        # Stored rows are untouched
        assert not hasattr(parrot, "average_rating")

    @pytest.mark.unit
    async def test_empty_input(self, db_session):
        """No products means no queries and no output"""
        assert await enrich_with_ratings(db_session, []) == []
