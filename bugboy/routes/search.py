"""
GET /api/search -- Term search across users and products.

Scoring is deliberately simple: a user scores the fraction of query terms
found in their name or email; a product scores 1.0 for a name match and
0.5 for a description-only match. Records missing the searched fields are
skipped rather than crashing the whole search.
"""

import logging
from typing import Literal

from fastapi import APIRouter, Depends, Query

from bugboy.capture import with_error_capture
from bugboy.deps import get_store
from bugboy.errors import BadRequest
from bugboy.responses import ok
from bugboy.routes.products import category_name
from bugboy.store import MockStore

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def parse_limit(raw: str | None) -> int:
    try:
        limit = int(raw) if raw else DEFAULT_LIMIT
    except ValueError:
        limit = DEFAULT_LIMIT
    return max(1, min(MAX_LIMIT, limit))


def search_users(users: list[dict], terms: list[str]) -> list[dict]:
    results = []
    for user in users:
        name = (user.get("name") or "").lower()
        email = (user.get("email") or "").lower()
        if not name or not email:
            continue
        hits = sum(1 for t in terms if t in name or t in email)
        if hits:
            results.append({
                "type": "user",
                "id": user["id"],
                "title": user["name"],
                "description": f"{user.get('role') or 'user'} - {user['email']}",
                "score": hits / len(terms),
            })
    return results


def search_products(products: list[dict], terms: list[str]) -> list[dict]:
    results = []
    for product in products:
        name = (product.get("name") or "").lower()
        description = (product.get("description") or "").lower()
        if not name or not description:
            continue
        name_match = any(t in name for t in terms)
        desc_match = any(t in description for t in terms)
        if name_match or desc_match:
            results.append({
                "type": "product",
                "id": product["id"],
                "title": product["name"],
                "description": f"${product.get('price') or 0:.2f} - {category_name(product) or 'Uncategorized'}",
                "score": 1.0 if name_match else 0.5,
            })
    return results


@router.get(
    "/api/search",
    summary="Search users and products",
    tags=["Search"],
)
@with_error_capture
async def search(
    q: str | None = Query(default=None, description="Space-separated search terms."),
    type: Literal["user", "product"] | None = Query(default=None),
    limit: str | None = Query(default=None, description="Max results, clamped to 1-100."),
    store: MockStore = Depends(get_store),
):
    if not q or not q.strip():
        raise BadRequest("Search query is required and cannot be empty")

    terms = [t for t in q.lower().split() if t]
    page_size = parse_limit(limit)

    results = []
    if type in (None, "user"):
        results.extend(search_users(await store.users.find_many() or [], terms))
    if type in (None, "product"):
        results.extend(search_products(await store.products.find_many() or [], terms))

    results.sort(key=lambda r: r["score"], reverse=True)
    returned = results[:page_size]
    logger.debug("Search %r: %d results, %d returned", q, len(results), len(returned))

    return ok(
        {
            "query": q,
            "results": returned,
            "total": len(results),
            "returned": len(returned),
        },
        timestamp=True,
    )
