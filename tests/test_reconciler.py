import asyncio

import pytest

from conftest import FakeCourier, make_order
from services.order_service.models import OrderStatus
from services.shipment_service.reconciler import ShipmentReconciler, map_courier_status
from services.shipment_service.scheduler import ReconcilerScheduler


@pytest.mark.parametrize("code,current,expected", [
    (6, OrderStatus.LABEL_CREATED, OrderStatus.DELIVERED),
    (6, OrderStatus.SHIPPED, OrderStatus.DELIVERED),
    (7, OrderStatus.SHIPPED, OrderStatus.CANCELLED),
    (8, OrderStatus.LABEL_CREATED, OrderStatus.CANCELLED),
    (4, OrderStatus.LABEL_CREATED, OrderStatus.SHIPPED),
    (5, OrderStatus.LABEL_CREATED, OrderStatus.SHIPPED),
    (42, OrderStatus.LABEL_CREATED, OrderStatus.SHIPPED),
    (2, OrderStatus.LABEL_CREATED, OrderStatus.LABEL_CREATED),
    (3, OrderStatus.SHIPPED, OrderStatus.SHIPPED),
    (7, OrderStatus.DELIVERED, OrderStatus.DELIVERED),
    (5, OrderStatus.DELIVERED, OrderStatus.DELIVERED),
    (6, OrderStatus.CANCELLED, OrderStatus.CANCELLED),
])
def test_map_courier_status(code, current, expected):
    assert map_courier_status(code, current) is expected


async def shipment(db, shipment_id, status=OrderStatus.LABEL_CREATED, **fields):
    return await make_order(db, "alice", "bob", status=status, courier_shipment_id=shipment_id, **fields)


async def status_of(db, order):
    await db.refresh(order)
    return OrderStatus(order.status)


async def test_failed_lookups_do_not_stop_the_batch(db, session_factory):
    delivered = await shipment(db, "s1", OrderStatus.SHIPPED)
    cancelled = await shipment(db, "s2")
    in_transit = await shipment(db, "s3")
    broken = await shipment(db, "s4")
    malformed = await shipment(db, "s5")
    courier = FakeCourier({"s1": 6, "s2": 8, "s3": 5, "s4": "error", "s5": "malformed"})

    reconciler = ShipmentReconciler(session_factory, courier.client())
    assert await reconciler.run() is None
    report = reconciler.last_report

    assert (report.checked, report.updated, report.failed) == (5, 3, 2)
    assert await status_of(db, delivered) is OrderStatus.DELIVERED
    assert await status_of(db, cancelled) is OrderStatus.CANCELLED
    assert await status_of(db, in_transit) is OrderStatus.SHIPPED
    assert await status_of(db, broken) is OrderStatus.LABEL_CREATED
    assert await status_of(db, malformed) is OrderStatus.LABEL_CREATED


async def test_one_login_per_run(db, session_factory):
    for i in range(3):
        await shipment(db, f"s{i}")
    courier = FakeCourier({"s0": 2, "s1": 2, "s2": 2})

    await ShipmentReconciler(session_factory, courier.client()).run()

    assert len(courier.calls_to("/auth/login")) == 1
    assert len([p for p in courier.paths() if "/courier/track/shipment/" in p]) == 3


async def test_unchanged_status_is_not_written(db, session_factory):
    order = await shipment(db, "s1", OrderStatus.SHIPPED)
    reconciler = ShipmentReconciler(session_factory, FakeCourier({"s1": 5}).client())
    assert await reconciler.run() is None
    report = reconciler.last_report

    assert report.updated == 0
    await db.refresh(order)
    assert order.updated_at is None


async def test_first_entry_stamps_timestamps(db, session_factory):
    order = await shipment(db, "s1")
    await ShipmentReconciler(session_factory, FakeCourier({"s1": 4}).client()).run()

    await db.refresh(order)
    assert order.status == OrderStatus.SHIPPED.value
    assert order.shipped_at is not None
    assert order.updated_at is not None
    assert order.delivered_at is None


async def test_only_active_shipments_are_polled(db, session_factory):
    await make_order(db, "alice", "bob", status=OrderStatus.PAID, courier_shipment_id="paid")
    await make_order(db, "alice", "bob", status=OrderStatus.DELIVERED, courier_shipment_id="done")
    await make_order(db, "alice", "bob", status=OrderStatus.LABEL_CREATED)  # no shipment id
    courier = FakeCourier()

    reconciler = ShipmentReconciler(session_factory, courier.client())
    assert await reconciler.run() is None
    report = reconciler.last_report

    assert report.checked == 0
    assert courier.requests == []


async def test_login_failure_never_raises(db, session_factory):
    order = await shipment(db, "s1")
    courier = FakeCourier({"s1": 6}, login_ok=False)

    reconciler = ShipmentReconciler(session_factory, courier.client())
    assert await reconciler.run() is None
    report = reconciler.last_report

    assert report.updated == 0
    assert await status_of(db, order) is OrderStatus.LABEL_CREATED


async def test_scheduler_ticks_until_stopped():
    runs = []

    class CountingReconciler:
        async def run(self):
            runs.append(1)

    scheduler = ReconcilerScheduler(CountingReconciler(), interval=0.01)
    scheduler.start()
    assert scheduler.running
    await asyncio.sleep(0.1)
    await scheduler.stop()

    assert len(runs) >= 1
    assert not scheduler.running
