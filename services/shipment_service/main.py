from fastapi import FastAPI
from shared.config.database import engine, Base
from shared.observability import setup_observability
from .router import router, public_router

shipment_app = FastAPI(title="Shipment Service", version="1.0.0")

# --- OBSERVABILITY BOOTSTRAP ---
setup_observability(shipment_app, "shipment_service")

shipment_app.include_router(public_router)
shipment_app.include_router(router)

@shipment_app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
