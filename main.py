import os

import structlog
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from shared.config import settings
from shared.config.database import engine, Base, AsyncSessionLocal

# IMPORTANT: import models so they register with Base
from services.auth_service import models as auth_models
from services.listing_service import models as listing_models
from services.order_service import models as order_models
from services.payment_service import models as payment_models
from services.rating_service import models as rating_models
from services.session_service import models as session_models

from services.auth_service.main import auth_app
from services.listing_service.main import listing_app
from services.order_service.main import order_app
from services.payment_service.main import payment_app
from services.rating_service.main import rating_app
from services.session_service.main import session_app
from services.shipment_service.main import shipment_app
from services.orchestrator.main import checkout_app

from services.shipment_service.courier import get_courier_client
from services.shipment_service.reconciler import ShipmentReconciler
from services.shipment_service.scheduler import ReconcilerScheduler

logger = structlog.get_logger(__name__)

app = FastAPI(title="Book Marketplace Cluster")

# Mounted sub-apps never see startup/shutdown; the cluster owns them
scheduler = ReconcilerScheduler(
    ShipmentReconciler(AsyncSessionLocal, get_courier_client()),
    settings.RECONCILE_INTERVAL_SECONDS,
)

@app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        # Create all tables
        await conn.run_sync(Base.metadata.create_all)

    if settings.RECONCILER_ENABLED:
        scheduler.start()
    else:
        logger.info("reconciler_disabled")

@app.on_event("shutdown")
async def shutdown_event():
    await scheduler.stop()
    await engine.dispose()

os.makedirs(settings.MEDIA_ROOT, exist_ok=True)

app.mount("/auth", auth_app)
app.mount("/listings", listing_app)
app.mount("/sessions", session_app)
app.mount("/orders", order_app)
app.mount("/payments", payment_app)
app.mount("/ratings", rating_app)
app.mount("/shipments", shipment_app)
app.mount("/checkout", checkout_app)
app.mount("/media", StaticFiles(directory=settings.MEDIA_ROOT), name="media")
