"""Tests for the recommendation modes over in-memory repositories."""
import pytest

from app.core.errors import NotFound, PreconditionFailed, RecommendationServiceUnavailable
from app.domain.models.user import Preferences
from app.domain.services.constants import (
    MODE_AI, MODE_COLLABORATIVE, MODE_CONTENT, MODE_HYBRID, SOURCE_FALLBACK,
)
from app.domain.services.recommendation_svc import (
    ai_recommendations, collaborative_recommendations, content_based_recommendations, hybrid_recommendations,
)

from conftest import ScriptedOracle


def _ids(result):
    return [p.product_id for p in result.recommended_products]


@pytest.mark.asyncio
async def test_content_based_uses_declared_hair_type(user_repo, product_repo):
    res = await content_based_recommendations("U1", user_repo=user_repo, product_repo=product_repo)

    assert _ids(res) == ["P3", "P1", "P4"]
    assert res.recommendation_source == MODE_CONTENT


@pytest.mark.asyncio
async def test_content_based_requires_preferences(user_repo, product_repo):
    with pytest.raises(PreconditionFailed):
        await content_based_recommendations("U2", user_repo=user_repo, product_repo=product_repo)


@pytest.mark.asyncio
async def test_content_based_overrides_win(user_repo, product_repo):
    res = await content_based_recommendations(
        "U2", user_repo=user_repo, product_repo=product_repo, overrides=Preferences(hair_type="oily"),
    )
    assert _ids(res) == ["P2"]


@pytest.mark.asyncio
async def test_unknown_user_is_not_found(user_repo, product_repo):
    with pytest.raises(NotFound):
        await collaborative_recommendations("nobody", user_repo=user_repo, product_repo=product_repo)


@pytest.mark.asyncio
async def test_collaborative_excludes_owned_products(user_repo, product_repo):
    res = await collaborative_recommendations("U1", user_repo=user_repo, product_repo=product_repo)

    assert _ids(res) == ["P3", "P4"]
    assert res.recommendation_source == MODE_COLLABORATIVE
    assert not {"P1", "P2"} & set(_ids(res))


@pytest.mark.asyncio
async def test_collaborative_without_history_is_empty(user_repo, product_repo):
    res = await collaborative_recommendations("U4", user_repo=user_repo, product_repo=product_repo)
    assert _ids(res) == []


@pytest.mark.asyncio
async def test_hybrid_follows_oracle_ranking(user_repo, product_repo):
    oracle = ScriptedOracle('{"product_ids": ["P4", "P3"]}')
    res = await hybrid_recommendations("U1", user_repo=user_repo, product_repo=product_repo, oracle=oracle)

    assert _ids(res) == ["P4", "P3"]
    assert res.recommendation_source == MODE_HYBRID
    assert len(oracle.calls) == 1


@pytest.mark.asyncio
async def test_hybrid_garbage_falls_back_to_merge_order(user_repo, product_repo):
    res = await hybrid_recommendations(
        "U1", user_repo=user_repo, product_repo=product_repo, oracle=ScriptedOracle("<html>oops</html>"),
    )
    # content pool first (P3, P1, P4), collaborative adds nothing new
    assert _ids(res) == ["P3", "P1", "P4"]
    assert res.recommendation_source == SOURCE_FALLBACK


@pytest.mark.asyncio
async def test_hybrid_without_candidates_skips_oracle(user_repo, product_repo):
    oracle = ScriptedOracle('{"product_ids": ["P1"]}')
    res = await hybrid_recommendations("U4", user_repo=user_repo, product_repo=product_repo, oracle=oracle)

    assert _ids(res) == []
    assert oracle.calls == []


@pytest.mark.asyncio
async def test_hybrid_surfaces_service_outage(user_repo, product_repo):
    oracle = ScriptedOracle(error=RecommendationServiceUnavailable("Recommendation service unavailable"))
    with pytest.raises(RecommendationServiceUnavailable):
        await hybrid_recommendations("U1", user_repo=user_repo, product_repo=product_repo, oracle=oracle)


@pytest.mark.asyncio
async def test_ai_picks_from_active_catalog(user_repo, product_repo):
    oracle = ScriptedOracle('["P5", "P9", "P2"]')
    res = await ai_recommendations("U1", user_repo=user_repo, product_repo=product_repo, oracle=oracle)

    assert _ids(res) == ["P5", "P2"]  # P9 is inactive, never offered
    assert res.recommendation_source == MODE_AI


@pytest.mark.asyncio
async def test_ai_fallback_is_newest_first(user_repo, product_repo):
    res = await ai_recommendations("U1", user_repo=user_repo, product_repo=product_repo, oracle=ScriptedOracle(""))

    assert _ids(res) == ["P5", "P4", "P3", "P2", "P1"]
    assert res.recommendation_source == SOURCE_FALLBACK
