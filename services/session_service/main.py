from fastapi import FastAPI

from shared.config.database import Base, engine
from shared.observability.setup import setup_observability

from .models import Session, SessionItem  # noqa: F401
from .router import router, public_router

session_app = FastAPI(title="Session Service", version="2.0.0")

setup_observability(session_app, "session_service")
session_app.include_router(public_router)
session_app.include_router(router)

@session_app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
