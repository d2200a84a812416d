"""
BugBoy Demo API -- Application entry point.

Run with:
    uvicorn bugboy.main:app --reload

Then open http://localhost:8000/docs for the interactive Swagger UI.

This file:
  1. Builds the mock store and the mock external services
  2. Initialises the error capture client (unless BUGSTACK_ENABLED=false)
  3. Registers the exception handlers that render the JSON error envelope
  4. Mounts all route modules
  5. Defines the health check endpoint

Everything is built inside create_app() so tests can hand in their own
store, fault injector or services. `app` at the bottom is the instance
uvicorn serves.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from bugboy.capture import capture
from bugboy.config import Settings
from bugboy.errors import ApiError, RecordNotFound, UniqueConstraintError
from bugboy.exporter import ExportRunner
from bugboy.faults import FaultInjector
from bugboy.responses import error_response, ok
from bugboy.routes import (
    analytics,
    auth,
    checkout,
    comments,
    example,
    export,
    notifications,
    orders,
    products,
    search,
    settings as settings_routes,
    upload,
    users,
)
from bugboy.services import InventoryService, NotificationService, PaymentService
from bugboy.store import MockStore

logger = logging.getLogger(__name__)

VERSION = "0.1.0"

ROUTERS = (
    users.router,
    products.router,
    checkout.router,
    orders.router,
    notifications.router,
    settings_routes.router,
    comments.router,
    analytics.router,
    export.router,
    upload.router,
    auth.router,
    search.router,
    example.router,
)


# ---------------------------------------------------------------------------
# Exception handlers
#
# Every error leaves the API as {"success": false, "error": "..."} plus any
# extra fields the raiser attached. Handlers are matched by class, most
# specific first, so ApiError wins over the generic HTTPException handler.
# ---------------------------------------------------------------------------

async def api_error_handler(request: Request, exc: ApiError):
    return error_response(exc.status_code, exc.message, **exc.extra)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail))


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())[1:]),
            "message": err.get("msg", "Invalid value"),
        }
        for err in errors
    ]
    first = details[0] if details else None
    if first and first["field"]:
        message = f"{first['field']}: {first['message']}"
    else:
        message = first["message"] if first else "Invalid request"
    return error_response(400, message, details=details)


async def record_not_found_handler(request: Request, exc: RecordNotFound):
    return error_response(404, "Record not found")


async def unique_constraint_handler(request: Request, exc: UniqueConstraintError):
    return error_response(409, "Record already exists")


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return error_response(500, "Internal server error")


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------

def create_app(
    settings: Settings | None = None,
    store: MockStore | None = None,
    faults: FaultInjector | None = None,
    payments: PaymentService | None = None,
    inventory: InventoryService | None = None,
    notifier: NotificationService | None = None,
) -> FastAPI:
    settings = settings or Settings.from_env()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    if faults is None:
        faults = store.faults if store is not None else FaultInjector(
            drop_rate=settings.drop_rate,
            min_delay=settings.min_delay,
            max_delay=settings.max_delay,
        )
    store = store or MockStore(faults)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.exports.shutdown()

    app = FastAPI(
        lifespan=lifespan,
        title="BugBoy Demo API",
        version=VERSION,
        description=(
            "A demo storefront API backed by an in-memory mock store.\n\n"
            "The store and the mock payment, inventory and notification "
            "services add latency and can fail on purpose, so unexpected "
            "errors reach the error capture endpoint.\n\n"
            "Every response uses the envelope "
            "`{success, data | error, message?, timestamp?}`."
        ),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.store = store
    app.state.payments = payments or PaymentService(faults, decline_rate=settings.payment_decline_rate)
    app.state.inventory = inventory or InventoryService(store)
    app.state.notifier = notifier or NotificationService(faults)
    app.state.exports = ExportRunner(store)

    if settings.capture_enabled:
        capture.init(
            api_key=settings.capture_api_key,
            endpoint=settings.capture_endpoint,
            project_id=settings.capture_project_id,
        )

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(RecordNotFound, record_not_found_handler)
    app.add_exception_handler(UniqueConstraintError, unique_constraint_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    for router in ROUTERS:
        app.include_router(router)

    # -----------------------------------------------------------------------
    # Health check
    # -----------------------------------------------------------------------

    @app.get(
        "/api/health",
        summary="Health check",
        description="Returns the current status of the API. Use this for uptime monitoring.",
        tags=["System"],
    )
    async def health(request: Request):
        """Simple health check for load balancers and monitoring."""
        return ok(
            {
                "status": "healthy",
                "version": VERSION,
                "errorCapture": capture.is_initialized(),
                "store": request.app.state.store.stats(),
            },
            timestamp=True,
        )

    logger.info("BugBoy API ready (%d routers, faults=%r)", len(ROUTERS), faults)
    return app


app = create_app()
