# app/domain/services/candidates.py
from __future__ import annotations
from typing import AbstractSet, Dict, Iterable, List, Mapping, Optional, Sequence
import logging

from app.domain.models.product import Product
from app.domain.repositories.product_repo import ProductRepo
from app.domain.services.similarity import SimilarityScore

logger = logging.getLogger(__name__)


async def content_based_candidates(product_repo: ProductRepo, hair_type: Optional[str], limit: int) -> List[Product]:
    """Active products tagged with the user's hair type. No hair type -> nothing."""
    if not hair_type or limit <= 0:
        return []
    products = await product_repo.find_by_hair_type(hair_type, limit)
    logger.debug("content candidates hair_type=%s n=%s", hair_type, len(products))
    return products[:limit]


def collaborative_product_ids(
    requester_ids: AbstractSet[str],
    ranked_peers: Sequence[SimilarityScore],
    peer_purchases: Mapping[str, Sequence[str]],
) -> List[str]:
    """
    Products bought by the ranked peers that the requester does not own yet.
    Order: peer rank, then each peer's purchase order.
    """
    seen = set(requester_ids)
    out: List[str] = []
    for peer in ranked_peers:
        for pid in peer_purchases.get(peer.peer_id, ()):
            if pid not in seen:
                seen.add(pid)
                out.append(pid)
    return out


async def collaborative_candidates(product_repo: ProductRepo, product_ids: Sequence[str], limit: int) -> List[Product]:
    """Hydrate ids from the active catalog, keeping their order."""
    if not product_ids or limit <= 0:
        return []
    products = await product_repo.get_many_by_product_ids(list(product_ids), active_only=True)
    logger.debug("collaborative candidates ids=%s active=%s", len(product_ids), len(products))
    return products[:limit]


def merge_candidates(*sources: Iterable[Product]) -> List[Product]:
    """
    Union by product id. The first occurrence fixes the position, the last
    occurrence supplies the attributes.
    """
    merged: Dict[str, Product] = {}
    for source in sources:
        for p in source:
            merged[p.product_id] = p
    return list(merged.values())
