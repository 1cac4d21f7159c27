"""Storefront view of products. Pure functions, no database access."""

CATEGORY_IMAGES = {
    "fruits": "🍌",
    "vegetables": "🥕",
    "grains": "🌾",
    "legumes": "🫘",
    "nuts": "🥜",
    "oils": "🫒",
    "spices": "🌶️",
    "sweeteners": "🍯",
    "beverages": "☕",
    "dairy": "🥛",
    "pantry": "🏺",
}

DEFAULT_CATEGORY = "pantry"


def normalize_category(category) -> str:
    """Map a stored category onto one of the storefront categories."""
    key = (category or "").strip().lower()
    return key if key in CATEGORY_IMAGES else DEFAULT_CATEGORY


def popularity_score(sold_units) -> int:
    """Popularity between 50 and 95, dropping by 2 points per unit sold."""
    return min(95, max(50, 100 - (sold_units or 0) * 2))


def star_rating(popularity: int) -> int:
    """Convert a 0-100 popularity into 0-5 stars."""
    return round(popularity / 20)


def to_inventory_item(product) -> dict:
    """Build the storefront representation of a product."""
    category = normalize_category(product.category)
    remaining_stock = (product.total_units or 0) - (product.sold_units or 0)
    popularity = popularity_score(product.sold_units)

    return {
        "id": product.id,
        "name": product.name,
        "category": category,
        "price": float(product.unit_price),
        "unit": product.unit_size or "unit",
        "image": CATEGORY_IMAGES[category],
        "description": product.description,
        "in_stock": remaining_stock > 0,
        "stock_quantity": remaining_stock,
        "supplier": "Community Food Network",
        "origin": "Local & Imported",
        "nutrition_info": "Quality assured products",
        "storage_instructions": "Store according to product type",
        "popularity": popularity,
        "stars": star_rating(popularity),
        "tags": [product.category or category, "bulk", "community"],
    }
