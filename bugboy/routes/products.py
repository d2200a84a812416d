"""
/api/products -- Catalogue listing, detail and update.

Product ids look like `prod_001`. Clients may also address a product by its
bare number (`/api/products/1`). Anything else is a 400, checked up front
rather than letting a bad id fall through to a misleading 404.
"""

import logging
import re
from datetime import datetime, timezone

from fastapi import APIRouter, Body, Depends, Query

from bugboy.capture import with_error_capture
from bugboy.deps import get_inventory, get_store
from bugboy.errors import BadRequest, NotFound
from bugboy.models.schemas import ProductUpdate
from bugboy.responses import ok
from bugboy.services import InventoryService
from bugboy.store import MockStore

logger = logging.getLogger(__name__)

router = APIRouter()

PRODUCT_ID_RE = re.compile(r"^(?:prod_)?(\d{1,9})$")
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
LOW_STOCK_THRESHOLD = 10


def parse_product_id(raw: str) -> str | None:
    """`prod_001`, `prod_1` and `1` all mean `prod_001`. None if unparseable."""
    match = PRODUCT_ID_RE.match(str(raw).strip())
    if not match:
        return None
    return f"prod_{int(match.group(1)):03d}"


def category_name(product: dict) -> str | None:
    category = product.get("category")
    return category.get("name") if category else None


def parse_limit(raw: str | None) -> int:
    if raw is None or raw == "":
        return DEFAULT_PAGE_SIZE
    try:
        limit = int(raw)
    except ValueError:
        raise BadRequest("limit must be an integer", limit=raw)
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise BadRequest(f"limit must be between 1 and {MAX_PAGE_SIZE}", limit=raw)
    return limit


@router.get(
    "/api/products",
    summary="List products",
    description=(
        "Cursor-paginated product listing, newest first. Pass the returned "
        "nextCursor as ?cursor= to get the following page."
    ),
    tags=["Products"],
)
@with_error_capture
async def list_products(
    cursor: str | None = Query(default=None, description="Id of the first product on the page."),
    limit: str | None = Query(default=None, description="Page size, 1-100 (default 20)."),
    store: MockStore = Depends(get_store),
):
    page_size = parse_limit(limit)

    products = await store.products.find_many(
        order_by=("created_at", "desc"),
        cursor=cursor,
        take=page_size + 1,
    )
    products = products or []

    has_more = len(products) > page_size
    items = products[:page_size]
    next_cursor = products[page_size]["id"] if has_more else None

    return ok({
        "items": [
            {
                "id": p["id"],
                "name": p["name"],
                "price": p["price"],
                "category": category_name(p),
                "inStock": p.get("inventory", 0) > 0,
            }
            for p in items
        ],
        "nextCursor": next_cursor,
        "hasMore": has_more,
    })


def _shape_product(product: dict) -> dict:
    return {
        "id": product["id"],
        "sku": product["sku"],
        "name": product["name"],
        "description": product["description"],
        "price": product["price"],
        "formattedPrice": f"${product['price']:.2f}",
        "category": product.get("category"),
        "inventoryCount": product.get("inventory", 0),
        "createdAt": product["created_at"],
    }


async def _load_product(store: MockStore, raw_id: str) -> dict:
    product_id = parse_product_id(raw_id)
    if product_id is None:
        raise BadRequest("Invalid product ID", productId=raw_id)

    product = await store.products.find_unique(product_id)
    if product is None:
        raise NotFound("Product not found", productId=product_id)
    return product


@router.get(
    "/api/products/{product_id}",
    summary="Get a product",
    description="One product. Add ?inventory=true for a live stock check.",
    tags=["Products"],
)
@with_error_capture
async def get_product(
    product_id: str,
    inventory: bool = Query(default=False, description="Include stock status."),
    store: MockStore = Depends(get_store),
    inventory_service: InventoryService = Depends(get_inventory),
):
    product = await _load_product(store, product_id)
    data = _shape_product(product)

    if inventory:
        status = inventory_service.check_availability(product["id"], 1)
        data["inventory"] = {
            "inStock": status.available,
            "quantity": status.current_stock,
            "lowStock": status.current_stock < LOW_STOCK_THRESHOLD,
        }

    return ok(data, timestamp=True)


@router.patch(
    "/api/products/{product_id}",
    summary="Update a product",
    description="Partial update. Top-level fields replace stored values; the id cannot change.",
    tags=["Products"],
)
@with_error_capture
async def update_product(
    product_id: str,
    update: ProductUpdate = Body(...),
    store: MockStore = Depends(get_store),
):
    product = await _load_product(store, product_id)

    changes = update.model_dump(exclude_unset=True)
    if not changes:
        raise BadRequest("No updatable fields provided")

    changes["updated_at"] = datetime.now(timezone.utc)
    updated = await store.products.update(product["id"], changes)
    logger.info("Product %s updated: %s", product["id"], ", ".join(sorted(changes)))

    data = _shape_product(updated)
    data["updatedAt"] = updated["updated_at"]
    return ok(data, timestamp=True)
