"""
GET /api/orders -- Recent orders with a revenue summary.

An empty result (no orders with that status) is normal and must produce a
zero summary, not a division by zero or a lookup on a missing first order.
"""

from fastapi import APIRouter, Depends, Query

from bugboy.capture import with_error_capture
from bugboy.deps import get_store
from bugboy.models.schemas import OrderStatus
from bugboy.responses import ok
from bugboy.store import MockStore

router = APIRouter()

MAX_ORDERS = 50


def shape_order(order: dict) -> dict:
    return {
        "id": order["id"],
        "customer": order.get("customer"),
        "items": [
            {
                "productId": i["product_id"],
                "name": i.get("name"),
                "quantity": i["quantity"],
                "price": i["price"],
            }
            for i in order.get("items") or []
        ],
        "total": order["total"],
        "status": order["status"],
        "createdAt": order["created_at"],
    }


def summarise(orders: list[dict]) -> dict:
    revenue = sum(o["total"] for o in orders)
    top = max(orders, key=lambda o: o["total"], default=None)
    return {
        "totalRevenue": round(revenue, 2),
        "averageOrderValue": round(revenue / len(orders), 2) if orders else 0,
        "topCustomer": (top.get("customer") or {}).get("name") if top else None,
    }


@router.get(
    "/api/orders",
    summary="List orders",
    description="Up to 50 orders, newest first, with total revenue, average value and top customer.",
    tags=["Orders"],
)
@with_error_capture
async def list_orders(
    status: OrderStatus | None = Query(default=None, description="Only orders in this status."),
    store: MockStore = Depends(get_store),
):
    orders = await store.orders.find_many(
        where={"status": status} if status else None,
        order_by=("created_at", "desc"),
        take=MAX_ORDERS,
    )
    orders = orders or []

    return ok({"orders": [shape_order(o) for o in orders], **summarise(orders)})
