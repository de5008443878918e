# app/domain/services/rerank_svc.py

from __future__ import annotations
from typing import Any, Dict, List, Optional, Protocol, Sequence
import asyncio
import json
import re
import logging
from time import monotonic as _now

import openai
from openai import AsyncOpenAI
from pydantic import BaseModel

from app.core.config import Settings, get_settings
from app.core.errors import MalformedUpstreamResponse, RecommendationServiceUnavailable
from app.domain.models.product import Product
from app.domain.models.user import UserProfile
from app.domain.services.constants import RERANK_MAX, SOURCE_FALLBACK
from app.domain.services.prompts import system_prompt, user_task

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 512

# =============================================================================
#                               RESPONSE PARSING
# =============================================================================

# Regex to strip code fences (``` or ```json) from LLM output
_CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.MULTILINE)
# First flat bracketed array anywhere in the text
_ARRAY_RE = re.compile(r"\[[^\[\]]*\]", re.DOTALL)
# Object keys under which a JSON-mode answer may carry the id list
_ID_LIST_KEYS = ("product_ids", "ids", "results")

def _strip_fences(s: str) -> str:
    """Remove ``` or ```json fences the LLM might add."""
    return _CODE_FENCE_RE.sub("", s).strip()

def _ids_from(parsed: Any) -> Optional[List[str]]:
    if isinstance(parsed, dict):
        for key in _ID_LIST_KEYS:
            if isinstance(parsed.get(key), list):
                parsed = parsed[key]
                break
        else:
            return None
    if not isinstance(parsed, list):
        return None
    ids: List[str] = []
    for it in parsed:
        if isinstance(it, dict):
            it = it.get("product_id") or it.get("id")
        if isinstance(it, (str, int)) and not isinstance(it, bool):
            ids.append(str(it))
    return ids

def _dedupe(ids: Sequence[str]) -> List[str]:
    seen = set()
    out: List[str] = []
    for i in ids:
        if i not in seen:
            seen.add(i)
            out.append(i)
    return out

def parse_ranked_ids(text: str) -> List[str]:
    """
    Extract an ordered list of product ids from free-form model output.
    Tries, in order: fenced/bare JSON, then the first bracketed array in the text.
    Raises MalformedUpstreamResponse when neither yields a list.
    """
    raw = _strip_fences(text or "")
    try:
        ids = _ids_from(json.loads(raw))
        if ids is not None:
            return _dedupe(ids)
    except json.JSONDecodeError:
        pass

    for match in _ARRAY_RE.finditer(raw):
        try:
            ids = _ids_from(json.loads(match.group(0)))
        except json.JSONDecodeError:
            continue
        if ids is not None:
            return _dedupe(ids)

    raise MalformedUpstreamResponse("Ranking response contains no id array", details={"preview": raw[:200]})

def parse_json_object(text: str) -> Dict[str, Any]:
    """
    Extract a JSON object from free-form model output: fenced/bare JSON first,
    then the outermost {...} span. Raises MalformedUpstreamResponse otherwise.
    """
    raw = _strip_fences(text or "")
    spans = [raw]
    start, end = raw.find("{"), raw.rfind("}")
    if 0 <= start < end:
        spans.append(raw[start:end + 1])
    for span in spans:
        try:
            parsed = json.loads(span)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    raise MalformedUpstreamResponse("Model response contains no JSON object", details={"preview": raw[:200]})

# =============================================================================
#                               JSON PRUNING
# =============================================================================

def prune_empty(obj):
    """
    Recursively remove None, blank strings and empty lists/dicts.
    Keep 0 and False.
    """
    if isinstance(obj, dict):
        out = {}
        for k, v in obj.items():
            pv = prune_empty(v)
            if pv is None or (isinstance(pv, (list, dict)) and len(pv) == 0):
                continue
            out[k] = pv
        return out
    if isinstance(obj, list):
        out = []
        for v in obj:
            pv = prune_empty(v)
            if pv is None or (isinstance(pv, (list, dict)) and len(pv) == 0):
                continue
            out.append(pv)
        return out
    if isinstance(obj, str):
        s = obj.strip()
        return s if s != "" else None
    return obj

def json_minify(obj: Dict[str, Any]) -> str:
    """Prune empty/null fields and serialize to compact JSON (no spaces)."""
    return json.dumps(prune_empty(obj), ensure_ascii=False, separators=(',', ':'), default=str)

# =============================================================================
#                               COMPACT HELPERS
# =============================================================================

def compact_product(p: Product) -> Dict[str, Any]:
    """Reduce a product to the fields the ranking model needs."""
    data = {
        "id": p.product_id,
        "name": p.name,
        "category": p.category,
        "hair_types": p.hair_types[:8],
        "skin_types": p.skin_types[:8],
        "price": p.price,
        "rating": p.average_rating,
        "desc": p.description or "",
    }
    data = prune_empty(data)
    if "desc" in data:
        data["desc"] = data["desc"][:200]
    return data

def build_user_context(profile: UserProfile, purchased: Sequence[Product]) -> Dict[str, Any]:
    """
    Compact user summary: preferences plus purchase history joined with
    product name, category and attributes.
    """
    by_id = {p.product_id: p for p in purchased}
    history = []
    for rec in profile.purchase_history:
        p = by_id.get(rec.product_id)
        if p is None:
            continue
        history.append({
            "name": p.name,
            "category": p.category,
            "hair_types": p.hair_types,
            "skin_types": p.skin_types,
            "quantity": rec.quantity,
        })
    return prune_empty({
        "preferences": profile.preferences.model_dump(exclude_none=True),
        "purchase_history": history,
    })

# =============================================================================
#                               ORACLE
# =============================================================================

class RankingOracle(Protocol):
    """Black-box ranking service: takes prompts, returns free-form text."""

    async def complete(self, system: str, user: str, *, max_tokens: int = DEFAULT_MAX_TOKENS) -> str: ...


class OpenAIRankingOracle:
    """
    Chat-completions oracle. Single attempt; transport errors, API errors and
    timeouts all surface as RecommendationServiceUnavailable.
    """

    def __init__(self, settings: Optional[Settings] = None, client: Optional[AsyncOpenAI] = None):
        self.settings = settings or get_settings()
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.settings.OPENAI_API_KEY:
                raise RecommendationServiceUnavailable("Ranking service is not configured")
            self._client = AsyncOpenAI(api_key=self.settings.OPENAI_API_KEY)
        return self._client

    async def complete(self, system: str, user: str, *, max_tokens: int = DEFAULT_MAX_TOKENS) -> str:
        client = self._get_client()
        model = self.settings.OPENAI_RERANK_MODEL
        timeout_s = self.settings.openai_timeout_s
        t0 = _now()
        try:
            resp = await asyncio.wait_for(
                client.chat.completions.create(
                    model=model,
                    messages=[
                        {"role": "system", "content": system},
                        {"role": "user", "content": user},
                    ],
                    max_tokens=max_tokens,
                    temperature=0.0,
                    timeout=timeout_s,
                    response_format={"type": "json_object"},
                ),
                timeout=timeout_s + 5,
            )
        except (openai.OpenAIError, asyncio.TimeoutError) as e:
            logger.error(f"Ranking call failed model={model} after {_now() - t0:.3f}s: {e!r}")
            raise RecommendationServiceUnavailable("Recommendation service unavailable", details={"reason": type(e).__name__}) from e

        dt = _now() - t0
        u = getattr(resp, "usage", None)
        logger.info(
            f"LLM call model={getattr(resp, 'model', model)} duration={dt:.3f}s "
            f"tokens(prompt={getattr(u, 'prompt_tokens', None)}, completion={getattr(u, 'completion_tokens', None)})"
        )
        choices = getattr(resp, "choices", None) or []
        if not choices:
            logger.warning(f"LLM call model={model} returned no choices")
            return ""
        return choices[0].message.content or ""

# =============================================================================
#                               PUBLIC API
# =============================================================================

class RerankOutcome(BaseModel):
    products: List[Product]
    source: str


async def rerank(
    candidates: Sequence[Product],
    user_context: Dict[str, Any],
    oracle: RankingOracle,
    *,
    mode: str,
    limit: int = RERANK_MAX,
) -> RerankOutcome:
    """
    Ask the oracle to order `candidates` for the user.

    - Oracle failure propagates (RecommendationServiceUnavailable).
    - Unparseable answer -> first `limit` candidates in merge order.
    - Ids the oracle invented are dropped; order follows the oracle.
      An answer with no known id at all is treated like an unparseable one.
    """
    limit = min(limit, RERANK_MAX)
    if not candidates:
        logger.info("No candidates provided for reranking.")
        return RerankOutcome(products=[], source=mode)

    user_json = json_minify({
        "user": user_context,
        "candidates": [compact_product(p) for p in candidates],
        "task": user_task(mode, limit),
    })
    logger.info(f"LLM request JSON size={(len(user_json)/1024):.1f}KB candidates={len(candidates)} mode={mode}")
    logger.debug(f"LLM user JSON preview: {user_json[:2000]}{'…' if len(user_json)>2000 else ''}")

    text = await oracle.complete(system_prompt(mode), user_json)

    try:
        ranked_ids = parse_ranked_ids(text)
    except MalformedUpstreamResponse as e:
        logger.warning(f"Ranking response unusable, serving fallback order: {e.message}")
        return RerankOutcome(products=list(candidates[:limit]), source=SOURCE_FALLBACK)

    by_id = {p.product_id: p for p in candidates}
    ordered = [by_id[i] for i in ranked_ids if i in by_id][:limit]
    dropped = [i for i in ranked_ids if i not in by_id]
    if dropped:
        logger.warning(f"Ranking response referenced {len(dropped)} unknown ids: {dropped[:10]}")
    if not ordered:
        logger.warning("Ranking response matched no candidate, serving fallback order")
        return RerankOutcome(products=list(candidates[:limit]), source=SOURCE_FALLBACK)
    logger.info(f"Reranking succeeded mode={mode}, returned={len(ordered)}")
    return RerankOutcome(products=ordered, source=mode)
