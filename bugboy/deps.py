"""
FastAPI dependencies: hand each route the store and services that belong
to the running app (set up in `create_app`, kept on `app.state`).
"""

from fastapi import Request

from bugboy.exporter import ExportRunner
from bugboy.services import InventoryService, NotificationService, PaymentService
from bugboy.store import MockStore


def get_store(request: Request) -> MockStore:
    return request.app.state.store


def get_payments(request: Request) -> PaymentService:
    return request.app.state.payments


def get_inventory(request: Request) -> InventoryService:
    return request.app.state.inventory


def get_notifier(request: Request) -> NotificationService:
    return request.app.state.notifier


def get_exports(request: Request) -> ExportRunner:
    return request.app.state.exports
