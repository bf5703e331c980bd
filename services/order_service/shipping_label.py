"""
Shipping label PDF for manual shipping.

The label is rendered to a temporary file, uploaded to object storage under
``shipping_labels/<order_id>.pdf`` and the temporary file is removed whatever
happened. Re-running for the same order overwrites the same key.
"""
import asyncio
import os
import tempfile

import structlog
from fastapi import Depends
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from shared.config import settings
from shared.observability import books_shipping_labels_total
from shared.result import ErrorKind, Failure, Result, Success
from shared.storage import ObjectStore, get_object_store
from .schemas import OrderResponse

logger = structlog.get_logger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 40
LINE_SPACING = 25

INSTRUCTIONS = [
    "1. Print this label and attach it to the package",
    "2. Pack the book securely",
    "3. Book a courier (India Post, DTDC, Blue Dart, etc.)",
    "4. Get the tracking number from the courier",
    "5. Update the tracking number in the app",
]


def label_storage_key(order_id: str) -> str:
    return f"shipping_labels/{order_id}.pdf"


class ShippingLabelGenerator:
    def __init__(self, object_store: ObjectStore, tmp_dir: str | None = None):
        self.object_store = object_store
        self.tmp_dir = tmp_dir

    def render(self, order: OrderResponse, path: str) -> None:
        """Draws a single A4 page. Both addresses must be present."""
        pdf = canvas.Canvas(path, pagesize=A4)
        pdf.setTitle(f"Shipping label {order.id}")
        y = PAGE_HEIGHT - MARGIN - 30

        def line(text: str, font: str = "Helvetica", size: int = 14, indent: int = 0, step: float = 1.0):
            nonlocal y
            pdf.setFont(font, size)
            pdf.drawString(MARGIN + indent, y, text)
            y -= LINE_SPACING * step

        def rule():
            nonlocal y
            pdf.line(MARGIN, y, PAGE_WIDTH - MARGIN, y)
            y -= LINE_SPACING * 1.5

        line("SHIPPING LABEL", "Helvetica-Bold", 24, step=2)
        line(f"Order ID: {order.id}", step=1.5)
        rule()

        line("FROM (Seller):", "Helvetica-Bold", 16)
        for text in order.seller_address.to_formatted_string().splitlines():
            line(text, indent=20)
        y -= LINE_SPACING

        line("TO (Buyer):", "Helvetica-Bold", 16)
        for text in order.buyer_address.to_formatted_string().splitlines():
            line(text, indent=20)
        y -= LINE_SPACING * 0.5
        rule()

        line("CONTENTS:", "Helvetica-Bold", 16)
        line(f"Book: {order.book_title}", indent=20)
        line(f"Author: {order.book_author}", indent=20, step=2)

        line("INSTRUCTIONS FOR SELLER:", "Helvetica-Bold", 16)
        for text in INSTRUCTIONS:
            line(text, size=12, indent=20, step=0.8)

        pdf.setFont("Helvetica", 12)
        pdf.drawString(MARGIN, MARGIN + 20, "Generated by Book Marketplace")
        pdf.showPage()
        pdf.save()

    async def generate(self, order: OrderResponse) -> Result[str]:
        if order.buyer_address is None or order.seller_address is None:
            books_shipping_labels_total.labels(status="missing_address").inc()
            return Failure(ErrorKind.MISSING_ADDRESS, "Missing buyer or seller address")

        logger.info("shipping_label_generating", order_id=order.id)
        fd, path = tempfile.mkstemp(prefix=f"shipping_label_{order.id}_", suffix=".pdf", dir=self.tmp_dir)
        os.close(fd)
        try:
            await asyncio.to_thread(self.render, order, path)
            url = await self.object_store.upload_file(
                path, label_storage_key(order.id), content_type="application/pdf"
            )
            books_shipping_labels_total.labels(status="success").inc()
            logger.info("shipping_label_uploaded", order_id=order.id, url=url)
            return Success(url)
        except Exception as e:
            books_shipping_labels_total.labels(status="failed").inc()
            logger.error("shipping_label_failed", order_id=order.id, error=str(e))
            return Failure(ErrorKind.REMOTE_FAILURE, f"Failed to generate shipping label: {e}")
        finally:
            if os.path.exists(path):
                os.remove(path)

    async def discard(self, order_id: str) -> None:
        """Removes an uploaded label that no order ended up referencing."""
        await self.object_store.delete(label_storage_key(order_id))
        logger.info("shipping_label_discarded", order_id=order_id)


def get_label_generator(object_store: ObjectStore = Depends(get_object_store)) -> ShippingLabelGenerator:
    return ShippingLabelGenerator(object_store, settings.LABEL_TMP_DIR)
