
# Recommendation modes
MODE_CONTENT = "content-based"
MODE_COLLABORATIVE = "collaborative"
MODE_HYBRID = "hybrid-ai"
MODE_AI = "ai"
SOURCE_FALLBACK = "fallback"

# Candidate source limits (pure mode vs blended mode)
CONTENT_LIMIT = 10
CONTENT_LIMIT_BLENDED = 20
COLLABORATIVE_LIMIT = 10
COLLABORATIVE_LIMIT_BLENDED = 20

# Top-K similar peers
TOP_K_PEERS = 5
TOP_K_PEERS_BLENDED = 3

# Bounded peer pools read from the profile store
PEER_POOL = 100
PEER_POOL_BLENDED = 50

# Whole-catalog reranking reads at most this many products
AI_CATALOG_POOL = 50

# Maximum number of items the reranker may return
RERANK_MAX = 10

# Search
SORT_FIELDS = {
    "price": "price",
    "rating": "average_rating",
    "name": "name",
}
SORT_NEWEST = ("created_at", -1)
SORT_OLDEST = ("created_at", 1)
SORT_POPULAR = ("review_count", -1)
SORT_TIEBREAK = ("product_id", 1)
TEXT_SEARCH_FIELDS = ("name", "description", "ingredients")
MAX_SKIP = 2**63 - 1

# Suggestions
SUGGEST_MIN_CHARS = 2
SUGGEST_PRODUCTS = 5
SUGGEST_CATEGORIES = 3
SUGGEST_INGREDIENTS = 5

# Reviews
LATEST_REVIEWS = 6

# Admin analytics
ANALYTICS_WINDOW_DAYS = 30
ANALYTICS_TOP_N = 5

# Product concepts (generated, never stored)
SOURCE_PRODUCT_SUGGESTION = "ai-product-suggestion"
CONCEPT_MAX_TOKENS = 2048
CONCEPT_RETRIES = 1
SUGGEST_NEW_MIN = 8
SUGGEST_NEW_MAX = 10
CONCEPT_CATALOG_POOL = 100
MARKET_USER_POOL = 100
RECENT_PURCHASES_SHOWN = 3
