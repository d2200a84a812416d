"""
Mock external services: payment, inventory, notification delivery.

None of these talk to anything real. They wait a bit (through the shared
FaultInjector) and return canned or randomised results.

The payment call is a coroutine and MUST be awaited. Reading `.success` off
an un-awaited coroutine is the classic checkout bug this demo is built
around.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from bugboy.faults import FaultInjector
from bugboy.store import MockStore

logger = logging.getLogger(__name__)


@dataclass
class PaymentResult:
    success: bool
    transaction_id: str | None = None
    error: str | None = None
    amount: float = 0.0
    currency: str = "USD"


@dataclass
class Availability:
    available: bool
    current_stock: int
    requested: int


@dataclass
class Delivery:
    id: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class PaymentService:
    """Approves roughly (1 - decline_rate) of payments."""

    def __init__(self, faults: FaultInjector, decline_rate: float = 0.1):
        self.faults = faults
        self.decline_rate = decline_rate

    async def process_payment(self, amount: float, currency: str, customer_id: str) -> PaymentResult:
        if amount <= 0:
            raise ValueError(f"payment amount must be positive, got {amount}")

        await self.faults.sleep(scale=2.0)

        if self.faults.roll(self.decline_rate):
            logger.info("Payment declined for %s (%.2f %s)", customer_id, amount, currency)
            return PaymentResult(success=False, error="Card declined", amount=amount, currency=currency)

        transaction_id = f"txn_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"
        logger.info("Payment %s approved for %s (%.2f %s)", transaction_id, customer_id, amount, currency)
        return PaymentResult(success=True, transaction_id=transaction_id, amount=amount, currency=currency)


class InventoryService:
    """Stock checks against the store's product table.

    Reservations are receipts only: stock is never decremented.
    """

    def __init__(self, store: MockStore):
        self.store = store

    def check_availability(self, product_id: str, quantity: int) -> Availability:
        product = self.store.products.get(product_id)
        stock = product.get("inventory", 0) if product else 0
        return Availability(available=stock >= quantity, current_stock=stock, requested=quantity)

    async def reserve_stock(self, product_id: str, quantity: int) -> str:
        await self.store.faults.sleep()
        reservation_id = f"res_{product_id}_{uuid.uuid4().hex[:8]}"
        logger.debug("Reserved %d x %s as %s", quantity, product_id, reservation_id)
        return reservation_id


class NotificationService:
    """Fire a message at a user. No retries, no delivery guarantee."""

    def __init__(self, faults: FaultInjector):
        self.faults = faults

    async def send(self, email: str, message: str, channel: str) -> Delivery:
        await self.faults.sleep(scale=6.0)
        delivery = Delivery(id=f"msg_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}")
        logger.info("Delivered %s via %s to %s", delivery.id, channel, email)
        return delivery
