import json

from app.domain.services.constants import MODE_AI, MODE_HYBRID

def system_prompt(mode: str) -> str:
    if mode == MODE_HYBRID:
        return "You are a ranking model for a hair and beauty store. Rank pre-selected CANDIDATES for one shopper. Return strict JSON only."
    if mode == MODE_AI:
        return "You are a recommendation model for a hair and beauty store. Pick the best CATALOG products for one shopper. Return strict JSON only."
    raise ValueError(f"Unknown mode for system prompt: {mode}")

def user_task(mode: str, limit: int) -> str:
    output_format = '{"product_ids":["<candidate.id>", "..."]}'

    constraints = (
        "RULES:\n"
        "- Use ONLY ids present in the provided list\n"
        f"- At most {limit} ids, most recommended first, no duplicates\n"
        "- Format: strict JSON"
    )

    if mode == MODE_HYBRID:
        return (
            f"Rank the top {limit} CANDIDATES (from content-based and collaborative filtering) for the USER.\n\n"
            "CONSIDER:\n"
            "- Hair type and skin type compatibility\n"
            "- Stated beauty goals and price range\n"
            "- Patterns in past purchases (do not repeat owned items)\n"
            "- Product rating\n\n" +
            constraints + "\n\n" +
            "OUTPUT FORMAT: " + output_format
        )

    if mode == MODE_AI:
        return (
            f"Recommend the {limit} most suitable CATALOG products for the USER.\n\n"
            "CONSIDER:\n"
            "1. Hair type compatibility\n"
            "2. Past purchase patterns\n"
            "3. Product ratings and quality\n"
            "4. Price range preferences\n\n" +
            constraints + "\n\n" +
            "OUTPUT FORMAT: " + output_format
        )

    raise ValueError(f"Unknown mode for user task: {mode}")


# ---- product concepts (free generation, no catalog ids) ----------------------

CONCEPT_SYSTEM = (
    "You are a product development expert for a hair and beauty store. "
    "Invent realistic, commercially viable products. Return strict JSON only."
)

def new_products_task(count_min: int, count_max: int) -> str:
    return (
        f"Suggest {count_min}-{count_max} NEW products that are NOT in CATALOG but would suit the USER.\n\n"
        "CONSIDER:\n"
        "- Hair type, skin type and beauty goals\n"
        "- Gaps in the user's purchase history\n"
        "- Complementary products for the current routine\n"
        "- Realistic ingredients and price points\n\n"
        "RULES:\n"
        "- Never repeat a CATALOG product name\n"
        "- Format: strict JSON\n\n"
        'OUTPUT FORMAT: {"products":[{"name":"","category":"","description":"","keyIngredients":[""],'
        '"benefits":[""],"hairType":[""],"priceRange":"$X-$Y","brand":"","why":""}]}'
    )

def market_analysis_task() -> str:
    return (
        "Analyse USERS (preferences and purchases) against CATALOG and find market gaps.\n\n"
        "IDENTIFY:\n"
        "1. Product categories customers want but the catalog lacks\n"
        "2. Hair types with few matching products\n"
        "3. Missing budget or premium price points\n"
        "4. Trending beauty needs not yet covered\n\n"
        "RULES:\n"
        "- Priority is one of high, medium, low\n"
        "- Format: strict JSON\n\n"
        'OUTPUT FORMAT: {"missingCategories":[""],"underservedHairTypes":[""],'
        '"priceGaps":{"budget":"","premium":""},"trendingOpportunities":[""],'
        '"recommendations":[{"category":"","reason":"","priority":"high","estimatedDemand":""}]}'
    )

def custom_product_task() -> str:
    return (
        "Design ONE custom product for the USER, addressing SPECIFIC_NEEDS within BUDGET.\n\n"
        "CONSIDER:\n"
        "- Hair type, skin type and beauty goals\n"
        "- What the purchase history says about their routine\n"
        "- Ingredients that target their concerns\n\n"
        "RULES:\n"
        "- targetPrice must fit BUDGET when one is given\n"
        "- Format: strict JSON\n\n"
        'OUTPUT FORMAT: {"name":"","tagline":"","category":"","description":"",'
        '"keyIngredients":[{"name":"","why":""}],"benefits":[""],"usage":"","targetPrice":"",'
        '"packaging":"","marketingAngle":"","whyPerfect":""}'
    )

def schema_reminder(schema: dict, error: str) -> str:
    """Appended on retry when the previous answer did not validate."""
    return (
        "\n\nYOUR PREVIOUS ANSWER WAS REJECTED: " + error[:300] + "\n"
        "Return ONLY a JSON object that validates against this JSON Schema:\n" + json.dumps(schema, separators=(',', ':'))
    )
