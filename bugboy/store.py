"""
In-memory data store.

Mimics a Prisma-like ORM over plain Python dicts. Nothing is persisted:
data lives as long as the MockStore object that owns it. The app builds one
store at startup and hangs it on `app.state`; tests build a fresh one per
test, so there are no module-level tables to reset.

Every async call awaits the FaultInjector's latency first, and find_many can
come back as None (a simulated dropped connection) instead of a list.
Callers normalise that with `rows or []`.

Records handed out are deep copies. Writing back goes through update/upsert,
which merge SHALLOWLY: a top-level key in the patch replaces the stored value
wholesale, nested dicts included.
"""

import copy
import itertools
import logging
import time
from typing import Any, Iterable, Literal

from bugboy import seed
from bugboy.errors import RecordNotFound, UniqueConstraintError
from bugboy.faults import FaultInjector

logger = logging.getLogger(__name__)

Direction = Literal["asc", "desc"]


class Collection:
    """One table: an insertion-ordered dict of records keyed by `key`.

    generate_ids: synthesise `<prefix>_<epoch ms>` ids on create. When False
        the caller supplies the key and duplicates are a unique-constraint
        failure.
    required: fields create() refuses to go without.
    """

    def __init__(
        self,
        name: str,
        faults: FaultInjector,
        rows: Iterable[dict] = (),
        key: str = "id",
        prefix: str | None = None,
        generate_ids: bool = True,
        required: tuple[str, ...] = (),
    ):
        self.name = name
        self.faults = faults
        self.key = key
        self.prefix = prefix or name
        self.generate_ids = generate_ids
        self.required = required
        self._seed = [copy.deepcopy(r) for r in rows]
        self._rows: dict[str, dict] = {}
        self._counter = itertools.count(1)
        self.reset()

    def reset(self) -> None:
        self._rows = {r[self.key]: copy.deepcopy(r) for r in self._seed}

    # -- synchronous peeks (no latency, no faults) ---------------------------

    def get(self, key: str) -> dict | None:
        row = self._rows.get(key)
        return copy.deepcopy(row) if row is not None else None

    def all(self) -> list[dict]:
        return [copy.deepcopy(r) for r in self._rows.values()]

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, key: object) -> bool:
        return key in self._rows

    # -- queries --------------------------------------------------------------

    async def find_many(
        self,
        where: dict[str, Any] | None = None,
        order_by: tuple[str, Direction] | None = None,
        cursor: str | None = None,
        skip: int | None = None,
        take: int | None = None,
    ) -> list[dict] | None:
        """Exact-equality filter, optional sort, cursor, skip and take.

        Returns None, not [], when the fault injector drops the call.
        """
        await self.faults.sleep()
        if self.faults.should_drop():
            logger.warning("Simulated dropped connection on %s.find_many", self.name)
            return None

        results = list(self._rows.values())

        if where:
            results = [
                r for r in results
                if all(r.get(field) == value for field, value in where.items())
            ]

        if order_by:
            field, direction = order_by
            # Records missing the sort field always go last.
            present = [r for r in results if r.get(field) is not None]
            missing = [r for r in results if r.get(field) is None]
            present.sort(key=lambda r: r[field], reverse=(direction == "desc"))
            results = present + missing

        if cursor is not None:
            for index, row in enumerate(results):
                if row[self.key] == cursor:
                    results = results[index:]
                    break

        if skip:
            results = results[skip:]

        if take is not None:
            results = results[:take]

        return [copy.deepcopy(r) for r in results]

    async def find_unique(self, key: str) -> dict | None:
        await self.faults.sleep()
        return self.get(key)

    # -- writes ---------------------------------------------------------------

    def _new_id(self) -> str:
        candidate = f"{self.prefix}_{int(time.time() * 1000)}"
        while candidate in self._rows:
            candidate = f"{self.prefix}_{int(time.time() * 1000)}_{next(self._counter)}"
        return candidate

    async def create(self, data: dict) -> dict:
        await self.faults.sleep()

        missing = [f for f in self.required if data.get(f) in (None, "")]
        if missing:
            raise ValueError(f"{self.name}.create: {', '.join(missing)} required")

        row = copy.deepcopy(data)
        if self.generate_ids:
            row[self.key] = self._new_id()
        else:
            key = row.get(self.key)
            if key is None:
                raise ValueError(f"{self.name}.create: {self.key} required")
            if key in self._rows:
                raise UniqueConstraintError(self.name, self.key, key)

        self._rows[row[self.key]] = row
        return copy.deepcopy(row)

    async def update(self, key: str, data: dict) -> dict:
        """Shallow merge `data` into the stored record."""
        await self.faults.sleep()
        existing = self._rows.get(key)
        if existing is None:
            raise RecordNotFound(self.name, key)
        updated = {**existing, **copy.deepcopy(data), self.key: key}
        self._rows[key] = updated
        return copy.deepcopy(updated)

    async def upsert(
        self,
        key: str,
        create: dict,
        update: dict | None = None,
        increment: dict[str, int | float] | None = None,
    ) -> dict:
        """Update when present (shallow merge plus numeric increments), else insert."""
        await self.faults.sleep()
        existing = self._rows.get(key)
        if existing is None:
            row = {**copy.deepcopy(create), self.key: key}
            self._rows[key] = row
            return copy.deepcopy(row)

        updated = {**existing, **copy.deepcopy(update or {})}
        for field, amount in (increment or {}).items():
            updated[field] = (existing.get(field) or 0) + amount
        updated[self.key] = key
        self._rows[key] = updated
        return copy.deepcopy(updated)

    async def delete(self, key: str) -> dict | None:
        await self.faults.sleep()
        return self._rows.pop(key, None)

    async def delete_many(self, where: dict[str, Any]) -> int:
        await self.faults.sleep()
        doomed = [
            k for k, r in self._rows.items()
            if all(r.get(field) == value for field, value in where.items())
        ]
        for k in doomed:
            del self._rows[k]
        return len(doomed)

    def __repr__(self) -> str:
        return f"Collection({self.name!r}, rows={len(self._rows)})"


class MockStore:
    """All tables for one running app (or one test)."""

    def __init__(self, faults: FaultInjector | None = None):
        self.faults = faults or FaultInjector()
        f = self.faults

        self.users = Collection("users", f, seed.USERS, prefix="usr")
        self.products = Collection("products", f, seed.PRODUCTS, prefix="prod")
        self.orders = Collection("orders", f, seed.ORDERS, prefix="ord")
        self.notifications = Collection("notifications", f, seed.NOTIFICATIONS, prefix="notif")
        self.notification_logs = Collection(
            "notification_logs", f, prefix="log",
            required=("delivered_at", "message_id"),
        )
        self.comments = Collection("comments", f, seed.COMMENTS, prefix="cmt")
        self.settings = Collection("settings", f, seed.SETTINGS, key="user_id", generate_ids=False)
        self.page_views = Collection("page_views", f, seed.PAGE_VIEWS, key="page_id", generate_ids=False)
        self.events = Collection("events", f, prefix="evt")
        self.uploads = Collection("uploads", f, prefix="file")
        self.export_jobs = Collection("export_jobs", f, prefix="export")
        self.sessions = Collection("sessions", f, key="token", generate_ids=False)

        # email -> list of login attempts; read and pruned at request time only
        self.login_attempts: dict[str, list[dict]] = {}
        self.passwords: dict[str, str] = dict(seed.PASSWORDS)

    @property
    def collections(self) -> list[Collection]:
        return [v for v in vars(self).values() if isinstance(v, Collection)]

    def reset(self) -> None:
        for collection in self.collections:
            collection.reset()
        self.login_attempts.clear()
        self.passwords = dict(seed.PASSWORDS)

    def stats(self) -> dict[str, int]:
        return {c.name: len(c) for c in self.collections}
