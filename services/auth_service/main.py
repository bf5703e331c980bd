from fastapi import FastAPI

from shared.config.database import Base, engine
from shared.observability.setup import setup_observability

from .models import User  # noqa: F401 registers model with SQLAlchemy Base
from .router import router, public_router

auth_app = FastAPI(
    title="Auth Service",
    version="2.0.0",
    description="JWT authentication, profiles and shipping addresses.",
)

setup_observability(auth_app, "auth_service")

auth_app.include_router(router)
auth_app.include_router(public_router)

@auth_app.on_event("startup")
async def startup_event() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
