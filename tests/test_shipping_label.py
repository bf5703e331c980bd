import os

from conftest import RecordingObjectStore, make_order
from shared.result import ErrorKind, Failure, Success
from shared.storage import LocalObjectStore
from services.order_service.models import OrderStatus
from services.order_service.schemas import OrderResponse
from services.order_service.service import OrderService
from services.order_service.shipping_label import ShippingLabelGenerator, label_storage_key


async def paid_order(db, address, seller_address, status=OrderStatus.PAID):
    return await make_order(
        db,
        "alice",
        "bob",
        status=status,
        buyer_address=address.model_dump(),
        seller_address=seller_address.model_dump(),
    )


async def test_label_is_uploaded_under_order_key(db, tmp_path, address, seller_address):
    store = RecordingObjectStore()
    order = await paid_order(db, address, seller_address)
    generator = ShippingLabelGenerator(store, str(tmp_path))

    result = await generator.generate(OrderResponse.model_validate(order))

    key = f"shipping_labels/{order.id}.pdf"
    assert result == Success(f"https://storage.test/{key}")
    assert label_storage_key(order.id) == key
    assert store.blobs[key].startswith(b"%PDF")
    assert not os.path.exists(store.local_paths[0])
    assert os.listdir(tmp_path) == []


async def test_missing_address_never_touches_storage(db, tmp_path, address):
    store = RecordingObjectStore()
    order = await make_order(db, "alice", "bob", status=OrderStatus.PAID, buyer_address=address.model_dump())

    result = await ShippingLabelGenerator(store, str(tmp_path)).generate(OrderResponse.model_validate(order))

    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.MISSING_ADDRESS
    assert store.local_paths == []
    assert os.listdir(tmp_path) == []


async def test_upload_failure_is_remote_failure_and_cleans_up(db, tmp_path, address, seller_address):
    store = RecordingObjectStore(fail=True)
    order = await paid_order(db, address, seller_address)

    result = await ShippingLabelGenerator(store, str(tmp_path)).generate(OrderResponse.model_validate(order))

    assert result.kind is ErrorKind.REMOTE_FAILURE
    assert result.message.startswith("Failed to generate shipping label")
    assert "bucket unavailable" in result.message
    assert os.listdir(tmp_path) == []


async def test_generate_shipping_label_requires_paid_order(db, tmp_path, address, seller_address):
    store = RecordingObjectStore()
    order = await paid_order(db, address, seller_address, status=OrderStatus.PENDING)

    result = await OrderService.generate_shipping_label(
        db, "bob", order.id, ShippingLabelGenerator(store, str(tmp_path))
    )

    assert result.kind is ErrorKind.FAILED_PRECONDITION
    assert store.blobs == {}


async def test_generate_shipping_label_attaches_url(db, tmp_path, address, seller_address):
    store = RecordingObjectStore()
    order = await paid_order(db, address, seller_address)
    generator = ShippingLabelGenerator(store, str(tmp_path))

    first = await OrderService.generate_shipping_label(db, "bob", order.id, generator)
    again = await OrderService.generate_shipping_label(db, "alice", order.id, generator)

    assert isinstance(first, Success)
    assert first == again
    assert list(store.blobs) == [f"shipping_labels/{order.id}.pdf"]
    await db.refresh(order)
    assert order.shipping_label_url == first.value
    assert order.status == OrderStatus.LABEL_CREATED.value


async def test_generate_shipping_label_hides_from_strangers(db, tmp_path, address, seller_address):
    order = await paid_order(db, address, seller_address)
    result = await OrderService.generate_shipping_label(
        db, "eve", order.id, ShippingLabelGenerator(RecordingObjectStore(), str(tmp_path))
    )
    assert result.kind is ErrorKind.PERMISSION_DENIED


async def test_local_object_store_serves_under_public_url(tmp_path):
    source = tmp_path / "label.pdf"
    source.write_bytes(b"%PDF-1.4 test")
    store = LocalObjectStore(str(tmp_path / "media"), "http://localhost:8000/media/")

    url = await store.upload_file(str(source), "shipping_labels/o1.pdf", "application/pdf")

    assert url == "http://localhost:8000/media/shipping_labels/o1.pdf"
    assert (tmp_path / "media" / "shipping_labels" / "o1.pdf").read_bytes() == b"%PDF-1.4 test"

    await store.delete("shipping_labels/o1.pdf")
    assert not (tmp_path / "media" / "shipping_labels" / "o1.pdf").exists()


async def test_label_is_discarded_when_it_cannot_be_attached(db, tmp_path, address, seller_address, monkeypatch):
    store = RecordingObjectStore()
    order = await paid_order(db, address, seller_address)

    async def lost(db, order_id, label_url):
        return Failure(ErrorKind.REMOTE_FAILURE, "database unavailable")

    monkeypatch.setattr(OrderService, "attach_shipping_label", lost)
    result = await OrderService.generate_shipping_label(
        db, "bob", order.id, ShippingLabelGenerator(store, str(tmp_path))
    )

    assert result == Failure(ErrorKind.REMOTE_FAILURE, "database unavailable")
    assert store.deleted == [label_storage_key(order.id)]
    assert store.blobs == {}


async def test_existing_label_survives_a_failed_regeneration(db, tmp_path, address, seller_address, monkeypatch):
    store = RecordingObjectStore()
    order = await paid_order(db, address, seller_address, status=OrderStatus.LABEL_CREATED)
    order.shipping_label_url = f"https://storage.test/{label_storage_key(order.id)}"
    await db.commit()

    async def lost(db, order_id, label_url):
        return Failure(ErrorKind.REMOTE_FAILURE, "database unavailable")

    monkeypatch.setattr(OrderService, "attach_shipping_label", lost)
    result = await OrderService.generate_shipping_label(
        db, "bob", order.id, ShippingLabelGenerator(store, str(tmp_path))
    )

    assert result.kind is ErrorKind.REMOTE_FAILURE
    assert store.deleted == []
