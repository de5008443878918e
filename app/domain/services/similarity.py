# app/domain/services/similarity.py
from __future__ import annotations
from typing import AbstractSet, List, Mapping, Optional
import logging

from pydantic import BaseModel, Field

from app.core.errors import InvalidInput

logger = logging.getLogger(__name__)


class SimilarityScore(BaseModel):
    peer_id: str
    score: int = Field(ge=0)
    model_config = {"frozen": True}


def overlap_score(a: AbstractSet[str], b: AbstractSet[str]) -> int:
    """Number of product ids both users purchased."""
    return len(a & b)


def rank_similar_peers(
    requester_ids: Optional[AbstractSet[str]],
    peers: Mapping[str, AbstractSet[str]],
    top_k: int,
) -> List[SimilarityScore]:
    """
    Rank peers by purchase overlap with the requester.

    - Sorted by score desc, ties broken by peer id asc.
    - Peers sharing nothing with the requester are not "similar" and are dropped,
      so an empty requester history always yields [].
    """
    if requester_ids is None:
        raise InvalidInput("Requester purchase history is undefined")
    if not requester_ids or top_k <= 0:
        return []

    scores = [
        SimilarityScore(peer_id=peer_id, score=overlap_score(requester_ids, ids))
        for peer_id, ids in peers.items()
    ]
    scores = [s for s in scores if s.score > 0]
    scores.sort(key=lambda s: (-s.score, s.peer_id))
    top = scores[:top_k]
    logger.debug("similarity peers=%s scored=%s top=%s", len(peers), len(scores), [(s.peer_id, s.score) for s in top])
    return top
