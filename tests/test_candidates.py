"""Tests for candidate generation and merging."""
import pytest

from app.domain.models.product import Product
from app.domain.services.candidates import (
    collaborative_candidates, collaborative_product_ids, content_based_candidates, merge_candidates,
)
from app.domain.services.similarity import SimilarityScore

from conftest import FakeProductRepo, make_product


def _p(pid, **kw):
    return Product.model_validate(make_product(pid, **kw))


@pytest.mark.asyncio
async def test_content_candidates_match_hair_type_and_skip_inactive(product_repo):
    products = await content_based_candidates(product_repo, "dry", limit=10)

    assert [p.product_id for p in products] == ["P3", "P1", "P4"]  # best rated first, P9 inactive
    assert all("dry" in p.hair_types and p.is_active for p in products)


@pytest.mark.asyncio
async def test_content_candidates_without_hair_type_are_empty(product_repo):
    assert await content_based_candidates(product_repo, None, limit=10) == []
    assert await content_based_candidates(product_repo, "", limit=10) == []


@pytest.mark.asyncio
async def test_content_candidates_respect_limit(product_repo):
    assert len(await content_based_candidates(product_repo, "dry", limit=2)) == 2


def test_collaborative_ids_exclude_owned_products():
    requester = {"P1", "P2"}
    ranked = [SimilarityScore(peer_id="U3", score=2), SimilarityScore(peer_id="U2", score=1)]
    purchases = {"U3": ["P2", "P3", "P4", "P3"], "U2": ["P1", "P5", "P4"]}

    ids = collaborative_product_ids(requester, ranked, purchases)

    assert ids == ["P3", "P4", "P5"]
    assert not requester & set(ids)


@pytest.mark.asyncio
async def test_collaborative_candidates_keep_order_and_drop_inactive(product_repo):
    products = await collaborative_candidates(product_repo, ["P4", "P9", "P3", "PX"], limit=10)
    assert [p.product_id for p in products] == ["P4", "P3"]


@pytest.mark.asyncio
async def test_collaborative_candidates_respect_limit(product_repo):
    products = await collaborative_candidates(product_repo, ["P1", "P2", "P3", "P4"], limit=2)
    assert [p.product_id for p in products] == ["P1", "P2"]


def test_merge_keeps_first_position_and_latest_attributes():
    content = [_p("A", price=10.0), _p("B"), _p("C")]
    collaborative = [_p("D"), _p("A", price=11.0), _p("E")]

    merged = merge_candidates(content, collaborative)

    assert [p.product_id for p in merged] == ["A", "B", "C", "D", "E"]
    assert merged[0].price == 11.0


@pytest.mark.asyncio
async def test_merged_pool_is_bounded_and_unique():
    docs = [make_product(f"P{i:02d}", hair_types=["dry"], average_rating=i % 5) for i in range(40)]
    repo = FakeProductRepo(docs)
    content_limit, collaborative_limit = 20, 20

    content = await content_based_candidates(repo, "dry", content_limit)
    collaborative = await collaborative_candidates(repo, [f"P{i:02d}" for i in range(39, 0, -1)], collaborative_limit)
    merged = merge_candidates(content, collaborative)

    ids = [p.product_id for p in merged]
    assert len(ids) <= content_limit + collaborative_limit
    assert len(ids) == len(set(ids))
