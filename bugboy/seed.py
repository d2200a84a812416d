"""
Seed fixtures for the mock store.

Every MockStore (and every reset) gets fresh deep copies of these, so
handlers mutating records in place never leak into the next test.

A few records are deliberately incomplete: an SSO user whose profile was
never synced, a product still pending categorisation. Handlers must cope.
"""

from datetime import datetime, timezone


def _utc(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, tzinfo=timezone.utc)


USERS = [
    {
        "id": "usr_1a2b3c",
        "email": "sarah.chen@company.com",
        "name": "Sarah Chen",
        "role": "admin",
        "profile": {
            "avatar_url": "https://i.pravatar.cc/150?u=sarah",
            "department": "Engineering",
        },
        "created_at": _utc(2023, 1, 15),
        "last_login_at": _utc(2024, 1, 20),
    },
    {
        "id": "usr_4d5e6f",
        "email": "marcus.johnson@company.com",
        "name": "Marcus Johnson",
        "role": "user",
        "profile": {
            "avatar_url": "https://i.pravatar.cc/150?u=marcus",
            "department": "Marketing",
        },
        "created_at": _utc(2023, 3, 22),
        "last_login_at": _utc(2024, 1, 19),
    },
    {
        "id": "usr_7g8h9i",
        "email": "alex.rivera@company.com",
        "name": "Alex Rivera",
        "role": "user",
        "profile": None,  # SSO user, profile not yet synced
        "created_at": _utc(2023, 6, 10),
        "last_login_at": None,
    },
]

PRODUCTS = [
    {
        "id": "prod_001",
        "sku": "WDG-PRO-001",
        "name": "Pro Widget",
        "description": "Professional-grade widget for enterprise use",
        "price": 299.99,
        "inventory": 150,
        "category": {"id": "cat_widgets", "name": "Widgets"},
        "created_at": _utc(2023, 2, 1),
    },
    {
        "id": "prod_002",
        "sku": "WDG-STD-002",
        "name": "Standard Widget",
        "description": "Reliable widget for everyday use",
        "price": 149.99,
        "inventory": 500,
        "category": {"id": "cat_widgets", "name": "Widgets"},
        "created_at": _utc(2023, 3, 15),
    },
    {
        "id": "prod_003",
        "sku": "ACC-CBL-001",
        "name": "Premium Cable Kit",
        "description": "High-speed cable kit with gold connectors",
        "price": 49.99,
        "inventory": 1000,
        "category": {"id": "cat_accessories", "name": "Accessories"},
        "created_at": _utc(2023, 4, 10),
    },
    {
        "id": "prod_004",
        "sku": "MISC-PROTO-001",
        "name": "Prototype Sensor Array",
        "description": "Experimental multi-spectrum sensor for R&D",
        "price": 899.99,
        "inventory": 12,
        "category": None,  # new product, pending categorisation
        "created_at": _utc(2024, 1, 5),
    },
]

ORDERS = [
    {
        "id": "ord_1001",
        "user_id": "usr_1a2b3c",
        "customer": {"name": "Sarah Chen", "email": "sarah.chen@company.com"},
        "items": [
            {"product_id": "prod_001", "name": "Pro Widget", "quantity": 2, "price": 299.99},
            {"product_id": "prod_003", "name": "Premium Cable Kit", "quantity": 1, "price": 49.99},
        ],
        "total": 649.97,
        "status": "completed",
        "created_at": _utc(2024, 1, 10),
    },
    {
        "id": "ord_1002",
        "user_id": "usr_4d5e6f",
        "customer": {"name": "Marcus Johnson", "email": "marcus.johnson@company.com"},
        "items": [
            {"product_id": "prod_002", "name": "Standard Widget", "quantity": 5, "price": 149.99},
        ],
        "total": 749.95,
        "status": "processing",
        "created_at": _utc(2024, 1, 18),
    },
    {
        "id": "ord_1003",
        "user_id": "usr_7g8h9i",
        "customer": {"name": "Alex Rivera", "email": "alex.rivera@company.com"},
        "items": [
            {"product_id": "prod_004", "name": "Prototype Sensor Array", "quantity": 1, "price": 899.99},
        ],
        "total": 899.99,
        "status": "pending",
        "created_at": _utc(2024, 1, 20),
    },
]

NOTIFICATIONS = [
    {
        "id": "notif_001",
        "user_id": "usr_1a2b3c",
        "type": "info",
        "title": "Welcome!",
        "message": "Thanks for joining our platform.",
        "read": True,
        "created_at": _utc(2024, 1, 15),
        "expires_at": None,
    },
    {
        "id": "notif_002",
        "user_id": "usr_1a2b3c",
        "type": "warning",
        "title": "Password Expiring",
        "message": "Your password will expire in 7 days.",
        "read": False,
        "created_at": _utc(2024, 1, 20),
        "expires_at": _utc(2024, 2, 20),
    },
    {
        "id": "notif_003",
        "user_id": "usr_4d5e6f",
        "type": "success",
        "title": "Order Shipped",
        "message": "Your order #12345 has been shipped.",
        "read": False,
        "created_at": _utc(2024, 1, 21),
        "expires_at": None,
    },
]

COMMENTS = [
    {
        "id": "cmt_001",
        "parent_id": None,
        "entity_type": "product",
        "entity_id": "prod_001",
        "author_id": "usr_1a2b3c",
        "content": "Great product! Highly recommend.",
        "created_at": _utc(2024, 1, 15),
        "updated_at": None,
        "likes": 5,
        "liked_by": [],
    },
    {
        "id": "cmt_002",
        "parent_id": "cmt_001",
        "entity_type": "product",
        "entity_id": "prod_001",
        "author_id": "usr_4d5e6f",
        "content": "Agreed! Best purchase I made.",
        "created_at": _utc(2024, 1, 16),
        "updated_at": None,
        "likes": 2,
        "liked_by": [],
    },
]

DEFAULT_SETTINGS = {
    "theme": "system",
    "language": "en-US",
    "timezone": "UTC",
    "notifications": {
        "email": True,
        "push": False,
        "sms": False,
        "marketing": False,
    },
    "privacy": {
        "profile_visible": True,
        "show_email": False,
        "show_activity": True,
    },
    "preferences": {},
}

SETTINGS = [
    {
        "user_id": "usr_1a2b3c",
        "theme": "dark",
        "language": "en-US",
        "timezone": "America/Los_Angeles",
        "notifications": {
            "email": True,
            "push": True,
            "sms": False,
            "marketing": False,
        },
        "privacy": {
            "profile_visible": True,
            "show_email": False,
            "show_activity": True,
        },
        "preferences": {
            "itemsPerPage": 25,
            "defaultView": "grid",
        },
        "updated_at": _utc(2024, 1, 15),
    },
]

PAGE_VIEWS = [
    {"page_id": "/", "count": 1420, "last_viewed_at": _utc(2024, 1, 20)},
    {"page_id": "/products", "count": 873, "last_viewed_at": _utc(2024, 1, 20)},
    {"page_id": "/dashboard", "count": 2104, "last_viewed_at": _utc(2024, 1, 20)},
]

# Plaintext on purpose: this is a demo fixture, not an auth system.
PASSWORDS = {
    "sarah.chen@company.com": "admin123",
    "marcus.johnson@company.com": "user456",
    "alex.rivera@company.com": "guest789",
}

# Monthly baselines used by the analytics comparison.
HISTORICAL_METRICS = {
    "2024-01": {"users": 150, "revenue": 45000},
    "2024-02": {"users": 180, "revenue": 52000},
    "2024-03": {"users": 210, "revenue": 48000},
}
