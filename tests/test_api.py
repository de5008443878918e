"""Route tests: FastAPI app with repositories and the ranking oracle overridden in memory."""
import logging

import pytest
from fastapi.testclient import TestClient

from app.api import deps
from app.api.v1.routers import admin as admin_router
from app.core.errors import RecommendationServiceUnavailable
from app.main import app

from conftest import ScriptedOracle


@pytest.fixture
def oracle():
    return ScriptedOracle('{"product_ids": ["P4", "P3"]}')


@pytest.fixture
def client(product_repo, user_repo, review_repo, oracle):
    app.dependency_overrides[deps.product_repo_dep] = lambda: product_repo
    app.dependency_overrides[deps.user_repo_dep] = lambda: user_repo
    app.dependency_overrides[deps.review_repo_dep] = lambda: review_repo
    app.dependency_overrides[deps.ranking_oracle_dep] = lambda: oracle
    app.dependency_overrides[deps.redis_dep] = lambda: None
    yield TestClient(app)
    app.dependency_overrides.clear()


def _as(user_id):
    return {"X-User-Id": user_id}


# ---------- recommendations --------------------------------------------------

def test_content_based_envelope(client):
    r = client.get("/api/recommendations/content-based", headers=_as("U1"))

    assert r.status_code == 200
    body = r.json()
    assert body["recommendationSource"] == "content-based"
    assert [p["product_id"] for p in body["recommendedProducts"]] == ["P3", "P1", "P4"]


def test_missing_user_header_is_bad_request(client):
    r = client.get("/api/recommendations/collaborative")
    assert r.status_code == 400
    assert r.json()["message"] == "Missing X-User-Id header"


def test_preferences_not_set_is_bad_request(client):
    r = client.get("/api/recommendations/content-based", headers=_as("U2"))
    assert r.status_code == 400
    assert r.json()["message"] == "User preferences not set"


def test_unknown_user_is_not_found(client):
    r = client.get("/api/recommendations/hybrid", headers=_as("ghost"))
    assert r.status_code == 404
    assert r.json() == {"message": "User not found", "details": {"user_id": "ghost"}}


def test_collaborative(client):
    r = client.get("/api/recommendations/collaborative", headers=_as("U1"))
    assert r.status_code == 200
    assert [p["product_id"] for p in r.json()["recommendedProducts"]] == ["P3", "P4"]


def test_hybrid_ranked_by_oracle(client, oracle):
    r = client.get("/api/recommendations/hybrid", headers=_as("U1"))

    assert r.status_code == 200
    assert r.json()["recommendationSource"] == "hybrid-ai"
    assert [p["product_id"] for p in r.json()["recommendedProducts"]] == ["P4", "P3"]
    assert len(oracle.calls) == 1


def test_hybrid_with_preference_overrides(client, oracle):
    oracle.answer = '{"product_ids": ["P2"]}'
    r = client.post("/api/recommendations/hybrid", headers=_as("U2"), json={"hairType": "oily"})

    assert r.status_code == 200
    assert [p["product_id"] for p in r.json()["recommendedProducts"]] == ["P2"]


def test_ranking_outage_is_service_unavailable(client, oracle):
    oracle.error = RecommendationServiceUnavailable("Recommendation service unavailable")
    r = client.get("/api/recommendations/ai", headers=_as("U1"))

    assert r.status_code == 503
    assert r.json()["message"] == "Recommendation service unavailable"


def test_unparseable_ranking_is_not_an_error(client, oracle):
    oracle.answer = "Sorry, I can't do that."
    r = client.get("/api/recommendations/hybrid", headers=_as("U1"))

    assert r.status_code == 200
    assert r.json()["recommendationSource"] == "fallback"
    assert len(r.json()["recommendedProducts"]) > 0


# ---------- products ---------------------------------------------------------

def test_search_envelope(client):
    r = client.get("/api/products/search", params={"minPrice": "10", "hairType": "dry", "sortBy": "price"})

    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert [p["product_id"] for p in body["data"]["products"]] == ["P1", "P3", "P4"]
    assert body["data"]["pagination"]["totalProducts"] == 3
    assert body["data"]["filters"]["sortBy"] == "price"


def test_search_tolerates_bad_paging(client):
    r = client.get("/api/products/search", params={"page": "zero", "limit": "-1"})

    assert r.status_code == 200
    pagination = r.json()["data"]["pagination"]
    assert (pagination["currentPage"], pagination["limit"]) == (1, 10)
    assert pagination["totalProducts"] == 5


def test_suggestions_and_filters(client):
    r = client.get("/api/products/search/suggestions", params={"q": "curl"})
    assert {"type": "product", "value": "Curl Cream"} in r.json()["data"]["suggestions"]

    r = client.get("/api/products/filters")
    assert r.json()["data"]["subcategories"] == ["Serum", "Shampoo", "Styling", "Treatment"]


def test_product_lookup(client):
    assert client.get("/api/products/P1").json()["name"] == "Argan Repair Shampoo"

    r = client.get("/api/products/P404")
    assert r.status_code == 404
    assert r.json()["message"] == "Product not found"


def test_empty_category_is_not_found(client):
    assert client.get("/api/products/category/Hair Care").status_code == 200
    assert client.get("/api/products/category/Nails").status_code == 404


def test_product_crud(client, product_repo):
    r = client.post("/api/products", json={"name": "Scalp Tonic", "price": 16.5, "hair_types": ["oily"]})
    assert r.status_code == 201
    pid = r.json()["product_id"]
    assert r.json()["review_count"] == 0

    r = client.put(f"/api/products/{pid}", json={"price": 14.0})
    assert r.status_code == 200
    assert r.json()["price"] == 14.0

    assert client.put(f"/api/products/{pid}", json={}).status_code == 400
    assert client.delete(f"/api/products/{pid}").status_code == 200
    assert client.delete(f"/api/products/{pid}").status_code == 404


# ---------- reviews & users --------------------------------------------------

def test_review_flow(client):
    r = client.post("/api/reviews", headers=_as("U1"), json={"productId": "P1", "rating": 4, "comment": "Soft hair"})
    assert r.status_code == 201
    assert r.json()["verified_purchase"] is True

    dup = client.post("/api/reviews", headers=_as("U1"), json={"productId": "P1", "rating": 2})
    assert dup.status_code == 400

    reviews = client.get("/api/reviews/product/P1").json()
    assert [rv["rating"] for rv in reviews] == [4]
    assert client.get("/api/products/P1").json()["review_count"] == 1


def test_update_preferences(client):
    r = client.put(
        "/api/users/me/preferences",
        headers=_as("U2"),
        json={"hairType": "curly", "priceRange": {"min": 5, "max": 40}},
    )
    assert r.status_code == 200
    assert r.json()["preferences"]["hair_type"] == "curly"

    r = client.get("/api/recommendations/content-based", headers=_as("U2"))
    assert [p["product_id"] for p in r.json()["recommendedProducts"]] == ["P3"]


def test_me_requires_known_user(client):
    assert client.get("/api/users/me", headers=_as("U1")).json()["user_id"] == "U1"
    assert client.get("/api/users/me", headers=_as("ghost")).status_code == 404


# ---------- health -----------------------------------------------------------

def test_health_reports_checks_without_backends(client):
    r = client.get("/health")

    assert r.status_code == 200
    checks = r.json()["checks"]
    assert checks["redis"] == "skipped"
    assert "openai_api_key_set" in checks


# ---------- generated concepts -----------------------------------------------

def test_suggest_new_products(client, oracle):
    oracle.answer = '{"products": [{"name": "Scalp Balance Serum", "hairType": ["dry"]}]}'
    r = client.get("/api/recommendations/suggest-new-products", headers=_as("U1"))

    assert r.status_code == 200
    assert r.json()["suggestedProducts"][0]["name"] == "Scalp Balance Serum"
    assert r.json()["recommendationSource"] == "ai-product-suggestion"


def test_create_custom_product_accepts_camel_case(client, oracle):
    oracle.answer = '{"name": "Frizz Shield Cream", "targetPrice": "$25"}'
    r = client.post(
        "/api/recommendations/create-custom-product",
        headers=_as("U2"),
        json={"specificNeeds": ["frizz"], "budget": 30, "preferences": {"hairType": "curly"}},
    )

    assert r.status_code == 200
    assert r.json()["createdFor"]["hairType"] == "curly"
    assert r.json()["customProduct"]["targetPrice"] == "$25"


@pytest.mark.parametrize("answer,error", [
    ("I'd rather not.", None),
    ("", RecommendationServiceUnavailable("Recommendation service unavailable")),
])
def test_market_analysis_failures_are_service_unavailable(client, oracle, answer, error):
    oracle.answer, oracle.error = answer, error
    r = client.get("/api/recommendations/market-analysis", headers=_as("U1"))
    assert r.status_code == 503


# ---------- admin ------------------------------------------------------------

def test_admin_orders_logs_request_and_timing(client, monkeypatch, caplog):
    async def _orders(db):
        return [{"user_id": "U1", "product_id": "P1"}]

    monkeypatch.setattr(admin_router, "list_orders", _orders)
    app.dependency_overrides[deps.mongo_db] = lambda: None

    with caplog.at_level(logging.INFO, logger=admin_router.__name__):
        r = client.get("/api/admin/orders")

    assert r.status_code == 200
    assert r.json() == [{"user_id": "U1", "product_id": "P1"}]
    messages = [rec.getMessage() for rec in caplog.records if rec.name == admin_router.__name__]
    assert messages[0] == "Request: orders"
    assert messages[1].startswith("Response: orders count=1 elapsed_time=")
