"""
/api/analytics -- Dashboard metrics, custom events and page views.

Metrics are computed from whatever the store returns. A dropped read comes
back as None and counts as an empty table, so the numbers dip instead of
the endpoint crashing.

Revenue here is simulated (10% of each product's inventory value): there is
no sales ledger in the demo.
"""

import json
import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Query

from bugboy.capture import with_error_capture
from bugboy.deps import get_store
from bugboy.errors import BadRequest, NotFound
from bugboy.models.schemas import AnalyticsEventIn, PageViewIn
from bugboy.responses import now_iso, ok
from bugboy.seed import HISTORICAL_METRICS
from bugboy.store import MockStore

logger = logging.getLogger(__name__)

router = APIRouter()

COMPARISON_PERIOD = "2024-02"
CURRENT_PERIOD = "current"
VALID_PERIODS = (CURRENT_PERIOD, *HISTORICAL_METRICS)
ACTIVE_WINDOW = timedelta(days=30)


def _growth(current: float, previous: float) -> float:
    if not previous:
        return 0.0
    return round((current - previous) / previous * 100, 2)


@router.get(
    "/api/analytics",
    summary="Get analytics metrics",
    description=(
        "Live user, product and revenue totals. period must be \"current\" or a month with "
        "historical metrics; it labels the response and does not change the totals. "
        "?compare=true adds growth against the previous period."
    ),
    tags=["Analytics"],
)
@with_error_capture
async def get_analytics(
    period: str = Query(default=CURRENT_PERIOD),
    compare: bool = Query(default=False),
    store: MockStore = Depends(get_store),
):
    if period not in VALID_PERIODS:
        raise BadRequest("Unknown period", period=period, validPeriods=list(VALID_PERIODS))

    users = await store.users.find_many() or []
    products = await store.products.find_many() or []

    cutoff = datetime.now(timezone.utc) - ACTIVE_WINDOW
    active_users = sum(1 for u in users if u.get("last_login_at") and u["last_login_at"] > cutoff)

    total_revenue = sum(p["price"] * p.get("inventory", 0) * 0.1 for p in products)
    average_order_value = total_revenue / len(users) if users else 0

    trends = {"userGrowth": 0.0, "revenueGrowth": 0.0}
    if compare:
        previous = HISTORICAL_METRICS.get(COMPARISON_PERIOD)
        if previous:
            trends = {
                "userGrowth": _growth(len(users), previous["users"]),
                "revenueGrowth": _growth(total_revenue, previous["revenue"]),
            }

    return ok(
        {
            "period": period,
            "metrics": {
                "totalUsers": len(users),
                "activeUsers": active_users,
                "totalProducts": len(products),
                "totalRevenue": round(total_revenue, 2),
                "averageOrderValue": round(average_order_value, 2),
            },
            "trends": trends,
        },
        generatedAt=now_iso(),
    )


@router.post(
    "/api/analytics",
    summary="Track a custom event",
    tags=["Analytics"],
)
@with_error_capture
async def track_event(
    body: AnalyticsEventIn,
    store: MockStore = Depends(get_store),
):
    try:
        properties = json.dumps(body.properties or {}, sort_keys=True)
    except (TypeError, ValueError):
        raise BadRequest("properties must be JSON-serialisable")

    event = await store.events.create({
        "name": body.event_name,
        "properties": properties,
        "user_id": body.user_id or "anonymous",
        "timestamp": datetime.now(timezone.utc),
    })
    logger.info("Analytics event %s tracked: %s", event["id"], body.event_name)

    return ok({"eventId": event["id"]})


@router.post(
    "/api/analytics/track",
    summary="Record a page view",
    description="Increments the view counter for pageId, creating it on first view.",
    tags=["Analytics"],
)
@with_error_capture
async def track_page_view(
    body: PageViewIn,
    store: MockStore = Depends(get_store),
):
    now = datetime.now(timezone.utc)
    view = await store.page_views.upsert(
        body.page_id,
        create={"page_id": body.page_id, "count": 1, "last_viewed_at": now},
        update={"last_viewed_at": now},
        increment={"count": 1},
    )
    return ok({"pageId": view["page_id"], "views": view["count"]})


@router.get(
    "/api/analytics/track",
    summary="Get page views",
    tags=["Analytics"],
)
@with_error_capture
async def get_page_views(
    page_id: str | None = Query(default=None, alias="pageId"),
    store: MockStore = Depends(get_store),
):
    if not page_id:
        raise BadRequest("pageId is required")

    view = await store.page_views.find_unique(page_id)
    if view is None:
        raise NotFound("No views recorded for page", pageId=page_id)

    return ok({"pageId": view["page_id"], "views": view["count"], "lastViewedAt": view["last_viewed_at"]})
