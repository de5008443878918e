"""
Pytest configuration and fixtures for the store tests.

The fakes below mirror the repository interfaces over plain lists of dicts,
so services and routes run without Mongo, Redis or OpenAI.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Union
import uuid

import pytest

from app.domain.models.product import Product
from app.domain.models.review import Review, ReviewStats
from app.domain.models.search import QueryPlan
from app.domain.models.user import Preferences, PurchaseRecord, UserProfile

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


# ---------- factories --------------------------------------------------------

def make_product(product_id: str, **fields) -> Dict[str, Any]:
    doc = {
        "product_id": product_id,
        "name": f"Product {product_id}",
        "category": "Hair Care",
        "subcategory": "Shampoo",
        "description": "",
        "price": 20.0,
        "hair_types": [],
        "skin_types": [],
        "ingredients": [],
        "stock": 5,
        "review_count": 0,
        "average_rating": 0.0,
        "is_active": True,
        "created_at": BASE_TIME,
    }
    doc.update(fields)
    return doc


def make_user(user_id: str, purchased: Optional[List[str]] = None, **fields) -> UserProfile:
    data: Dict[str, Any] = {
        "user_id": user_id,
        "name": f"User {user_id}",
        "email": f"{user_id.lower()}@example.com",
        "purchase_history": [PurchaseRecord(product_id=pid) for pid in (purchased or [])],
    }
    data.update(fields)
    return UserProfile(**data)


# ---------- in-memory repositories -------------------------------------------

def _sort_docs(docs: List[Dict[str, Any]], keys) -> List[Dict[str, Any]]:
    out = list(docs)
    for field, direction in reversed(list(keys)):
        out.sort(key=lambda d: d.get(field), reverse=direction == -1)
    return out


class FakeProductRepo:
    def __init__(self, docs: Optional[List[Dict[str, Any]]] = None):
        self.docs: List[Dict[str, Any]] = list(docs or [])
        self.search_plans: List[QueryPlan] = []

    def _active(self) -> List[Dict[str, Any]]:
        return [d for d in self.docs if d.get("is_active", True)]

    def _find(self, product_id: str) -> Optional[Dict[str, Any]]:
        return next((d for d in self.docs if d["product_id"] == product_id), None)

    async def get_by_product_id(self, product_id):
        doc = self._find(product_id)
        return Product.model_validate(doc) if doc else None

    async def get_many_by_product_ids(self, ids, *, active_only=True):
        pool = self._active() if active_only else self.docs
        by_id = {d["product_id"]: Product.model_validate(d) for d in pool}
        return [by_id[i] for i in ids if i in by_id]

    async def list_active(self, limit=0, skip=0):
        docs = _sort_docs(self._active(), [("created_at", -1), ("product_id", 1)])[skip:]
        if limit:
            docs = docs[:limit]
        return [Product.model_validate(d) for d in docs]

    async def find_by_hair_type(self, hair_type, limit):
        docs = [d for d in self._active() if hair_type in d.get("hair_types", [])]
        docs = _sort_docs(docs, [("average_rating", -1), ("product_id", 1)])[:limit]
        return [Product.model_validate(d) for d in docs]

    async def find_by_category(self, category):
        docs = _sort_docs([d for d in self._active() if d.get("category") == category], [("product_id", 1)])
        return [Product.model_validate(d) for d in docs]

    async def search(self, plan: QueryPlan):
        self.search_plans.append(plan)
        matched = _sort_docs([d for d in self.docs if plan.matches(d)], plan.sort.as_list())
        page = matched[plan.window.skip:plan.window.skip + plan.window.take]
        return [Product.model_validate(d) for d in page], len(matched)

    async def distinct_values(self, field):
        values = set()
        for d in self._active():
            v = d.get(field)
            values.update(v if isinstance(v, list) else [v])
        return sorted(v for v in values if v not in (None, ""))

    async def price_envelope(self):
        prices = [d["price"] for d in self._active()]
        return {"minPrice": min(prices), "maxPrice": max(prices)} if prices else {"minPrice": 0, "maxPrice": 0}

    async def suggest_names(self, term, limit):
        return [d["name"] for d in self._active() if term.lower() in d["name"].lower()][:limit]

    async def suggest_categories(self, term, limit):
        values = {d["category"] for d in self._active() if d.get("category") and term.lower() in d["category"].lower()}
        return sorted(values)[:limit]

    async def suggest_ingredients(self, term, limit):
        values = {i for d in self._active() for i in d.get("ingredients", []) if term.lower() in i.lower()}
        return sorted(values)[:limit]

    async def create(self, fields):
        fields = dict(fields)
        doc = make_product(fields.pop("product_id", None) or uuid.uuid4().hex, **fields)
        doc.update(review_count=0, average_rating=0.0)
        self.docs.append(doc)
        return Product.model_validate(doc)

    async def update(self, product_id, fields):
        doc = self._find(product_id)
        if doc is None:
            return None
        doc.update(fields)
        return Product.model_validate(doc)

    async def delete(self, product_id):
        doc = self._find(product_id)
        if doc is None:
            return False
        self.docs.remove(doc)
        return True

    async def set_review_stats(self, stats: ReviewStats):
        doc = self._find(stats.product_id)
        if doc is not None:
            doc.update(review_count=stats.review_count, average_rating=stats.average_rating)


class FakeUserRepo:
    def __init__(self, users: Optional[List[UserProfile]] = None):
        self.users: Dict[str, UserProfile] = {u.user_id: u for u in (users or [])}

    async def get_by_user_id(self, user_id):
        return self.users.get(user_id)

    async def list_peers(self, exclude_user_id, limit):
        peers = [u for uid, u in sorted(self.users.items()) if uid != exclude_user_id and u.purchase_history]
        return peers[:limit]

    async def list_profiles(self, limit):
        return [u for _, u in sorted(self.users.items())][:limit]

    async def update_preferences(self, user_id, prefs: Preferences):
        user = self.users.get(user_id)
        if user is None:
            return None
        self.users[user_id] = user.model_copy(update={"preferences": prefs})
        return self.users[user_id]


class FakeReviewRepo:
    def __init__(self, reviews: Optional[List[Review]] = None):
        self.reviews: List[Review] = list(reviews or [])

    async def find_for_user(self, user_id, product_id):
        return next((r for r in self.reviews if r.user_id == user_id and r.product_id == product_id), None)

    async def insert(self, review):
        self.reviews.append(review)
        return review

    async def list_for_product(self, product_id):
        return sorted((r for r in self.reviews if r.product_id == product_id), key=lambda r: r.created_at, reverse=True)

    async def latest(self, limit):
        return sorted(self.reviews, key=lambda r: r.created_at, reverse=True)[:limit]

    async def compute_stats(self, product_id):
        ratings = [r.rating for r in self.reviews if r.product_id == product_id]
        if not ratings:
            return None
        return ReviewStats(product_id=product_id, review_count=len(ratings), average_rating=round(sum(ratings) / len(ratings), 1))


class ScriptedOracle:
    """
    Oracle that replays canned answers and records the prompts it saw.
    A list of answers is replayed call by call, the last one repeating.
    """

    def __init__(self, answer: Union[str, List[str]] = "", error: Optional[Exception] = None):
        self.answer = answer
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def complete(self, system, user, *, max_tokens=None):
        self.calls.append({"system": system, "user": user, "max_tokens": max_tokens})
        if self.error is not None:
            raise self.error
        if isinstance(self.answer, list):
            return self.answer[min(len(self.calls), len(self.answer)) - 1]
        return self.answer


# ---------- fixtures ---------------------------------------------------------

@pytest.fixture
def catalog():
    """Small mixed catalog: dry/oily/curly hair products plus one inactive item."""
    return [
        make_product("P1", name="Argan Repair Shampoo", hair_types=["dry"], price=18.0, average_rating=4.5,
                     ingredients=["argan oil", "keratin"], created_at=BASE_TIME + timedelta(days=1)),
        make_product("P2", name="Clarifying Shampoo", hair_types=["oily"], price=12.0, average_rating=3.9,
                     ingredients=["tea tree"], created_at=BASE_TIME + timedelta(days=2)),
        make_product("P3", name="Curl Cream", subcategory="Styling", hair_types=["curly", "dry"], price=24.0,
                     average_rating=4.8, ingredients=["shea butter"], created_at=BASE_TIME + timedelta(days=3)),
        make_product("P4", name="Hydrating Mask", subcategory="Treatment", hair_types=["dry"], price=30.0,
                     average_rating=4.1, ingredients=["argan oil"], created_at=BASE_TIME + timedelta(days=4)),
        make_product("P5", name="Glow Serum", category="Skin Care", subcategory="Serum", skin_types=["dry"],
                     price=45.0, average_rating=4.6, ingredients=["vitamin c"], created_at=BASE_TIME + timedelta(days=5)),
        make_product("P9", name="Retired Argan Oil", hair_types=["dry"], price=15.0, average_rating=5.0,
                     is_active=False, created_at=BASE_TIME + timedelta(days=6)),
    ]


@pytest.fixture
def product_repo(catalog):
    return FakeProductRepo(catalog)


@pytest.fixture
def users():
    return [
        make_user("U1", ["P1", "P2"], preferences=Preferences(hair_type="dry", skin_type="normal")),
        make_user("U2", ["P1", "P3"]),
        make_user("U3", ["P2", "P3", "P4"]),
        make_user("U4", []),
    ]


@pytest.fixture
def user_repo(users):
    return FakeUserRepo(users)


@pytest.fixture
def review_repo():
    return FakeReviewRepo()
