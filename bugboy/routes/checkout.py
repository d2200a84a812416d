"""
POST /api/checkout -- Turn a cart into an order.

Steps, in order, each one a possible early exit:
  1. customer must exist                       (404)
  2. every product must exist                  (404)
  3. each product must have enough stock for   (409)
     all of its lines combined
  4. reserve stock, then take payment          (402 if declined)
  5. write the order and return a receipt

The payment call is awaited before its result is read. A declined payment
does not release the reservations (they are receipts only).
"""

import asyncio
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from bugboy.capture import with_error_capture
from bugboy.deps import get_inventory, get_payments, get_store
from bugboy.errors import BadRequest, Conflict, NotFound, PaymentRequired
from bugboy.models.schemas import CheckoutRequest
from bugboy.responses import ok
from bugboy.routes.products import parse_product_id
from bugboy.services import InventoryService, PaymentService
from bugboy.store import MockStore

logger = logging.getLogger(__name__)

router = APIRouter()

TAX_RATE = 0.08
CURRENCY = "USD"


@router.post(
    "/api/checkout",
    summary="Check out a cart",
    description="Validates the cart, reserves stock, charges the customer and creates an order.",
    tags=["Orders"],
)
@with_error_capture
async def checkout(
    request: CheckoutRequest,
    store: MockStore = Depends(get_store),
    inventory: InventoryService = Depends(get_inventory),
    payments: PaymentService = Depends(get_payments),
):
    customer = await store.users.find_unique(request.customer_id)
    if customer is None:
        raise NotFound("Customer not found", customerId=request.customer_id)

    order_items = []
    subtotal = 0.0

    for item in request.items:
        product_id = parse_product_id(item.product_id)
        if product_id is None:
            raise BadRequest("Invalid product ID", productId=item.product_id)

        product = await store.products.find_unique(product_id)
        if product is None:
            raise NotFound(f"Product {item.product_id} not found", productId=item.product_id)

        order_items.append({
            "product_id": product_id,
            "name": product["name"],
            "quantity": item.quantity,
            "price": product["price"],
        })
        subtotal += product["price"] * item.quantity

    # Repeated lines for one product draw on the same stock.
    requested: dict[str, int] = {}
    for i in order_items:
        requested[i["product_id"]] = requested.get(i["product_id"], 0) + i["quantity"]

    for product_id, quantity in requested.items():
        availability = inventory.check_availability(product_id, quantity)
        if not availability.available:
            raise Conflict(
                "Insufficient inventory",
                details={
                    "productId": product_id,
                    "requested": quantity,
                    "available": availability.current_stock,
                },
            )

    tax = subtotal * TAX_RATE
    total = subtotal + tax

    reservations = await asyncio.gather(*(
        inventory.reserve_stock(i["product_id"], i["quantity"]) for i in order_items
    ))

    payment = await payments.process_payment(
        amount=round(total, 2),
        currency=CURRENCY,
        customer_id=request.customer_id,
    )
    if not payment.success:
        logger.warning("Checkout for %s stopped: payment declined", request.customer_id)
        raise PaymentRequired("Payment failed", details=payment.error)

    order = await store.orders.create({
        "user_id": customer["id"],
        "customer": {"name": customer["name"], "email": customer["email"]},
        "items": order_items,
        "total": round(total, 2),
        "status": "processing",
        "payment_method": request.payment_method,
        "shipping_address": (
            request.shipping_address.model_dump() if request.shipping_address else None
        ),
        "transaction_id": payment.transaction_id,
        "reservations": list(reservations),
        "created_at": datetime.now(timezone.utc),
    })
    logger.info("Order %s created for %s (%.2f %s)", order["id"], customer["id"], total, CURRENCY)

    return ok(
        {
            "orderId": order["id"],
            "status": order["status"],
            "items": [
                {
                    "productId": i["product_id"],
                    "quantity": i["quantity"],
                    "unitPrice": i["price"],
                    "lineTotal": round(i["price"] * i["quantity"], 2),
                }
                for i in order_items
            ],
            "summary": {
                "subtotal": f"{subtotal:.2f}",
                "tax": f"{tax:.2f}",
                "total": f"{total:.2f}",
            },
            "transactionId": payment.transaction_id,
        },
        timestamp=True,
    )
