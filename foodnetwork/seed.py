"""
Populate a fresh database with demo users, products, requests and news.

Usage:
    python -m foodnetwork.seed

Safe to run more than once: users are matched by email, and products,
requests and news are only created when their tables are empty.
"""
import logging
from decimal import Decimal

from foodnetwork.database import SessionLocal, engine, Base
from foodnetwork.models.news import News
from foodnetwork.models.order import Order  # noqa: F401 (mapper registry)
from foodnetwork.models.product import Product, ProductMovement, MovementType
from foodnetwork.models.product_request import ProductRequest, RequestSupport, RequestStatus
from foodnetwork.models.user import User, UserRole

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

USERS = [
    {"email": "admin@foodnetwork.com", "name": "Admin User", "password": "admin123", "role": UserRole.ADMIN},
    {"email": "john@example.com", "name": "John Doe", "password": "member123", "role": UserRole.MEMBER},
    {"email": "jane@example.com", "name": "Jane Smith", "password": "member123", "role": UserRole.MEMBER},
]

PRODUCTS = [
    {"name": "Organic Brown Rice", "description": "25 lb bag of organic brown rice", "category": "grains",
     "unit_price": Decimal("24.99"), "current_stock": 50, "unit_size": "25 lb bag", "total_units": 50, "sold_units": 12},
    {"name": "Raw Almonds", "description": "Premium raw almonds, 10 lb bag", "category": "nuts",
     "unit_price": Decimal("89.99"), "current_stock": 25, "unit_size": "10 lb bag", "total_units": 25, "sold_units": 8},
    {"name": "Quinoa", "description": "Organic tri-color quinoa, 5 lb bag", "category": "grains",
     "unit_price": Decimal("32.99"), "current_stock": 30, "unit_size": "5 lb bag", "total_units": 30, "sold_units": 15},
    {"name": "Coconut Oil", "description": "Cold-pressed coconut oil, 1 gallon", "category": "oils",
     "unit_price": Decimal("45.99"), "current_stock": 20, "unit_size": "1 gallon", "total_units": 20, "sold_units": 5},
    {"name": "Black Beans", "description": "Dried organic black beans, 25 lb bag", "category": "legumes",
     "unit_price": Decimal("39.99"), "current_stock": 15, "unit_size": "25 lb bag", "total_units": 15, "sold_units": 3},
    {"name": "Chia Seeds", "description": "Organic chia seeds, 5 lb bag", "category": "pantry",
     "unit_price": Decimal("59.99"), "current_stock": 12, "unit_size": "5 lb bag", "total_units": 12, "sold_units": 7},
]

REQUESTS = [
    {"product_name": "Raw Cashews", "description": "Looking for bulk raw cashews, unsalted",
     "price_range": "$8-12 per pound", "amount_wanted": 5.5, "requester": "john@example.com",
     "supporters": ["jane@example.com"]},
    {"product_name": "Maple Syrup", "description": "Pure maple syrup in bulk containers",
     "price_range": "$15-20 per gallon", "amount_wanted": 2.0, "requester": "jane@example.com",
     "supporters": []},
]

NEWS = {
    "title": "Welcome to Community Food Network!",
    "content": (
        "We're excited to launch our community-driven bulk food purchasing platform. "
        "Members can now browse our inventory, place orders, and request new products. "
        "Together, we can access quality bulk foods at better prices!"
    ),
}


def seed_users(session) -> dict:
    """Create the demo users that don't exist yet. Returns users by email."""
    users = {}
    for data in USERS:
        user = session.query(User).filter(User.email == data["email"]).first()
        if user is None:
            user = User(email=data["email"], name=data["name"], role=data["role"])
            user.set_password(data["password"])
            session.add(user)
            session.flush()
            logger.info(f"Created {data['role'].value} {data['email']}")
        users[data["email"]] = user
    return users


def seed_products(session, admin: User) -> int:
    if session.query(Product).count() > 0:
        logger.info("Products already present, skipping")
        return 0

    for data in PRODUCTS:
        product = Product(units_per_case=1, **data)
        session.add(product)
        session.flush()
        session.add(ProductMovement(
            product_id=product.id,
            movement_type=MovementType.STOCK_ADDED,
            quantity=product.current_stock,
            user_id=admin.id,
            notes="Initial stock from seed data",
        ))
    logger.info(f"Created {len(PRODUCTS)} products")
    return len(PRODUCTS)


def seed_requests(session, users: dict) -> int:
    if session.query(ProductRequest).count() > 0:
        logger.info("Product requests already present, skipping")
        return 0

    for data in REQUESTS:
        product_request = ProductRequest(
            user_id=users[data["requester"]].id,
            product_name=data["product_name"],
            description=data["description"],
            price_range=data["price_range"],
            amount_wanted=data["amount_wanted"],
            status=RequestStatus.PENDING,
        )
        session.add(product_request)
        session.flush()
        for email in data["supporters"]:
            session.add(RequestSupport(user_id=users[email].id, request_id=product_request.id))
    logger.info(f"Created {len(REQUESTS)} product requests")
    return len(REQUESTS)


def seed_news(session, admin: User) -> int:
    if session.query(News).count() > 0:
        logger.info("News already present, skipping")
        return 0

    session.add(News(author_id=admin.id, published=True, **NEWS))
    logger.info("Created welcome news article")
    return 1


def seed(session) -> None:
    users = seed_users(session)
    seed_products(session, users["admin@foodnetwork.com"])
    seed_requests(session, users)
    seed_news(session, users["admin@foodnetwork.com"])
    session.commit()


def main():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        seed(session)
        logger.info("Seed complete")
    except Exception:
        session.rollback()
        logger.exception("Seed failed")
        raise
    finally:
        session.close()


if __name__ == "__main__":
    main()
