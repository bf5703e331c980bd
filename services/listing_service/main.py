from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from shared.config.database import engine, Base
from shared.observability import setup_observability
from shared.security import limiter
from .router import router, public_router
from .models import Listing # Import to register with Base

listing_app = FastAPI(title="Listing Service", version="1.0.0")

# --- OBSERVABILITY BOOTSTRAP ---
setup_observability(listing_app, "listing_service")

# --- SECURITY SETUP ---
listing_app.state.limiter = limiter
listing_app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

listing_app.include_router(public_router)
listing_app.include_router(router)

@listing_app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
