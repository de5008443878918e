import logging
import time
from typing import List, Optional

from app.core.errors import NotFound, PreconditionFailed
from app.domain.models.product import Product, RecommendationResult
from app.domain.models.user import Preferences, UserProfile
from app.domain.repositories.product_repo import ProductRepo
from app.domain.repositories.user_repo import UserRepo
from app.domain.services.candidates import (
    collaborative_candidates, collaborative_product_ids, content_based_candidates, merge_candidates,
)
from app.domain.services.constants import (
    AI_CATALOG_POOL,
    COLLABORATIVE_LIMIT, COLLABORATIVE_LIMIT_BLENDED,
    CONTENT_LIMIT, CONTENT_LIMIT_BLENDED,
    MODE_AI, MODE_COLLABORATIVE, MODE_CONTENT, MODE_HYBRID,
    PEER_POOL, PEER_POOL_BLENDED,
    RERANK_MAX,
    TOP_K_PEERS, TOP_K_PEERS_BLENDED,
)
from app.domain.services.rerank_svc import RankingOracle, build_user_context, rerank
from app.domain.services.similarity import rank_similar_peers

logger = logging.getLogger(__name__)

# --- helpers ---------------------------------------------------------------

async def _load_user(user_repo: UserRepo, user_id: str) -> UserProfile:
    user = await user_repo.get_by_user_id(user_id)
    if user is None:
        logger.warning("User not found: user_id=%s", user_id)
        raise NotFound("User not found", details={"user_id": user_id})
    return user

async def _collaborative_pool(
    user: UserProfile,
    user_repo: UserRepo,
    product_repo: ProductRepo,
    *,
    peer_pool: int,
    top_k: int,
    limit: int,
) -> List[Product]:
    """Peers -> overlap ranking -> their purchases minus the user's own -> active products."""
    peers = await user_repo.list_peers(user.user_id, peer_pool)
    peer_purchases = {p.user_id: [r.product_id for r in p.purchase_history] for p in peers}
    owned = user.purchased_ids()

    ranked = rank_similar_peers(owned, {pid: set(ids) for pid, ids in peer_purchases.items()}, top_k)
    ids = collaborative_product_ids(owned, ranked, peer_purchases)
    logger.info(
        "collaborative user_id=%s peers=%s similar=%s candidate_ids=%s",
        user.user_id, len(peers), [(s.peer_id, s.score) for s in ranked], len(ids),
    )
    return await collaborative_candidates(product_repo, ids, limit)

async def _user_context(user: UserProfile, product_repo: ProductRepo, prefs: Preferences) -> dict:
    purchased = await product_repo.get_many_by_product_ids(
        [r.product_id for r in user.purchase_history], active_only=False,
    )
    return build_user_context(user.model_copy(update={"preferences": prefs}), purchased)

# --- public API ------------------------------------------------------------

async def content_based_recommendations(
    user_id: str,
    *,
    user_repo: UserRepo,
    product_repo: ProductRepo,
    overrides: Optional[Preferences] = None,
) -> RecommendationResult:
    user = await _load_user(user_repo, user_id)
    prefs = user.preferences.merged(overrides)
    if not prefs.hair_type:
        raise PreconditionFailed("User preferences not set", details={"missing": "hair_type"})

    products = await content_based_candidates(product_repo, prefs.hair_type, CONTENT_LIMIT)
    logger.info("content_based user_id=%s hair_type=%s count=%s", user_id, prefs.hair_type, len(products))
    return RecommendationResult(recommended_products=products, recommendation_source=MODE_CONTENT)


async def collaborative_recommendations(
    user_id: str,
    *,
    user_repo: UserRepo,
    product_repo: ProductRepo,
) -> RecommendationResult:
    user = await _load_user(user_repo, user_id)
    products = await _collaborative_pool(
        user, user_repo, product_repo,
        peer_pool=PEER_POOL, top_k=TOP_K_PEERS, limit=COLLABORATIVE_LIMIT,
    )
    return RecommendationResult(recommended_products=products, recommendation_source=MODE_COLLABORATIVE)


async def hybrid_recommendations(
    user_id: str,
    *,
    user_repo: UserRepo,
    product_repo: ProductRepo,
    oracle: RankingOracle,
    overrides: Optional[Preferences] = None,
) -> RecommendationResult:
    """
    Blended pipeline:
      1) content-based pool (hair type; skipped silently when unset)
      2) collaborative pool (top-3 peers out of 50)
      3) merge by identity, content first
      4) external rerank, capped at 10, with deterministic fallback
    """
    t0 = time.perf_counter()
    user = await _load_user(user_repo, user_id)
    prefs = user.preferences.merged(overrides)

    content = await content_based_candidates(product_repo, prefs.hair_type, CONTENT_LIMIT_BLENDED)
    collaborative = await _collaborative_pool(
        user, user_repo, product_repo,
        peer_pool=PEER_POOL_BLENDED, top_k=TOP_K_PEERS_BLENDED, limit=COLLABORATIVE_LIMIT_BLENDED,
    )
    candidates = merge_candidates(content, collaborative)
    logger.info(
        "hybrid user_id=%s content=%s collaborative=%s merged=%s",
        user_id, len(content), len(collaborative), len(candidates),
    )

    outcome = await rerank(
        candidates, await _user_context(user, product_repo, prefs), oracle, mode=MODE_HYBRID, limit=RERANK_MAX,
    )
    logger.info(
        "hybrid done user_id=%s source=%s count=%s time=%.3fs",
        user_id, outcome.source, len(outcome.products), time.perf_counter() - t0,
    )
    return RecommendationResult(recommended_products=outcome.products, recommendation_source=outcome.source)


async def ai_recommendations(
    user_id: str,
    *,
    user_repo: UserRepo,
    product_repo: ProductRepo,
    oracle: RankingOracle,
) -> RecommendationResult:
    """Let the ranking service pick directly from a bounded slice of the active catalog."""
    t0 = time.perf_counter()
    user = await _load_user(user_repo, user_id)
    catalog = await product_repo.list_active(limit=AI_CATALOG_POOL)

    outcome = await rerank(
        catalog, await _user_context(user, product_repo, user.preferences), oracle, mode=MODE_AI, limit=RERANK_MAX,
    )
    logger.info(
        "ai done user_id=%s pool=%s source=%s count=%s time=%.3fs",
        user_id, len(catalog), outcome.source, len(outcome.products), time.perf_counter() - t0,
    )
    return RecommendationResult(recommended_products=outcome.products, recommendation_source=outcome.source)
