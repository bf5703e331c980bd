from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from shared.config.database import engine, Base
from shared.observability import setup_observability
from shared.security import limiter
from .router import router, public_router
from .models import Rating # Import to register with Base

rating_app = FastAPI(title="Rating Service", version="1.0.0")

# --- OBSERVABILITY BOOTSTRAP ---
setup_observability(rating_app, "rating_service")

# --- SECURITY SETUP ---
rating_app.state.limiter = limiter
rating_app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

rating_app.include_router(public_router)
rating_app.include_router(router)

@rating_app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
