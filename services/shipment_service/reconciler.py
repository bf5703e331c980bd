"""
Periodic shipment status reconciliation.

Every order the courier still has to move (LABEL_CREATED or SHIPPED with a
courier shipment id) is looked up, the courier's numeric status is mapped
onto ``OrderStatus`` and the order is written only when the status changed.
One order failing never stops the others and a run never raises.
"""
import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.observability import (
    books_reconciler_duration_seconds,
    books_reconciler_runs_total,
    books_reconciler_updates_total,
)
from services.order_service.models import TERMINAL_STATUSES, OrderStatus
from services.order_service.repository import OrderRepository
from services.order_service.service import status_fields
from .courier import CourierClient, CourierError, CourierSession

logger = structlog.get_logger(__name__)

# Courier shipment_status_id values
COURIER_DELIVERED = 6
COURIER_CANCELLED = (7, 8)  # cancelled, RTO
COURIER_IN_TRANSIT_FROM = 4


def map_courier_status(code: int, current: OrderStatus) -> OrderStatus:
    current = OrderStatus(current)
    if current in TERMINAL_STATUSES:
        return current
    if code == COURIER_DELIVERED:
        return OrderStatus.DELIVERED
    if code in COURIER_CANCELLED:
        return OrderStatus.CANCELLED
    if code >= COURIER_IN_TRANSIT_FROM:
        return OrderStatus.SHIPPED
    return current


@dataclass(frozen=True)
class _Tracked:
    order_id: str
    shipment_id: str
    status: OrderStatus
    shipped_at: datetime | None
    delivered_at: datetime | None


@dataclass
class ReconcileReport:
    checked: int = 0
    updated: int = 0
    failed: int = 0


class ShipmentReconciler:
    def __init__(self, session_factory: Callable[[], AsyncSession], courier: CourierClient):
        self.session_factory = session_factory
        self.courier = courier
        self.last_report: ReconcileReport | None = None

    async def run(self) -> None:
        started = time.perf_counter()
        report = self.last_report = ReconcileReport()
        try:
            async with self.session_factory() as db:
                await self._reconcile(db, report)
        except Exception as e:
            books_reconciler_runs_total.labels(outcome="aborted").inc()
            logger.error("reconcile_aborted", error=str(e), checked=report.checked)
        finally:
            books_reconciler_duration_seconds.observe(time.perf_counter() - started)

    async def _reconcile(self, db: AsyncSession, report: ReconcileReport) -> None:
        orders = await OrderRepository.get_orders_awaiting_delivery(db)
        if not orders:
            books_reconciler_runs_total.labels(outcome="idle").inc()
            logger.info("reconcile_no_active_shipments")
            return

        tracked = [
            _Tracked(o.id, o.courier_shipment_id, OrderStatus(o.status), o.shipped_at, o.delivered_at)
            for o in orders
        ]
        report.checked = len(tracked)
        logger.info("reconcile_started", orders=len(tracked))

        async with self.courier.session() as courier:
            codes = await asyncio.gather(*(self._lookup(courier, t) for t in tracked))

        # Writes are sequential; an AsyncSession is not safe for concurrent use
        for item, code in zip(tracked, codes):
            if code is None:
                report.failed += 1
                continue
            new_status = map_courier_status(code, item.status)
            if new_status == item.status:
                continue
            if await self._write(db, item, new_status):
                report.updated += 1
            else:
                report.failed += 1

        books_reconciler_runs_total.labels(outcome="completed").inc()
        logger.info("reconcile_completed", checked=report.checked, updated=report.updated, failed=report.failed)

    async def _lookup(self, courier: CourierSession, item: _Tracked) -> int | None:
        try:
            return await courier.shipment_status_code(item.shipment_id)
        except CourierError as e:
            logger.warning("reconcile_lookup_failed", order_id=item.order_id, shipment_id=item.shipment_id, error=str(e))
            return None

    async def _write(self, db: AsyncSession, item: _Tracked, new_status: OrderStatus) -> bool:
        fields = status_fields(new_status, datetime.now(timezone.utc))
        # Only the first entry into a state is stamped
        if item.shipped_at is not None:
            fields.pop("shipped_at", None)
        if item.delivered_at is not None:
            fields.pop("delivered_at", None)
        try:
            await OrderRepository.update_fields(db, item.order_id, **fields)
        except Exception as e:
            await db.rollback()
            logger.error("reconcile_write_failed", order_id=item.order_id, status=new_status.value, error=str(e))
            return False
        books_reconciler_updates_total.labels(status=new_status.value).inc()
        logger.info("order_status_reconciled", order_id=item.order_id, old=item.status.value, new=new_status.value)
        return True
