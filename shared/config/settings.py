"""
Runtime settings for the marketplace cluster.

Everything is read from the environment (a local .env is honoured) so the
same image runs in Docker, on a laptop and under pytest.
"""
import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Courier (Shiprocket external API)
COURIER_BASE_URL = os.getenv("COURIER_BASE_URL", "https://apiv2.shiprocket.in/v1/external")
COURIER_EMAIL = os.getenv("COURIER_EMAIL", "")
COURIER_PASSWORD = os.getenv("COURIER_PASSWORD", "")
COURIER_TIMEOUT_SECONDS = float(os.getenv("COURIER_TIMEOUT_SECONDS", "15"))
COURIER_TOKEN_VALIDITY_HOURS = 240  # stated by the courier, not cached across runs

# Default parcel for a single book
PARCEL_LENGTH_CM = 25
PARCEL_BREADTH_CM = 18
PARCEL_HEIGHT_CM = 3
PARCEL_WEIGHT_KG = 0.5
BOOK_HSN_CODE = 49019900

# Reconciler
RECONCILER_ENABLED = _flag("RECONCILER_ENABLED", "true")
RECONCILE_INTERVAL_SECONDS = int(os.getenv("RECONCILE_INTERVAL_SECONDS", str(2 * 60 * 60)))

# Object storage: "local" or "firebase"
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "local")
MEDIA_ROOT = os.getenv("MEDIA_ROOT", "media")
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000/media")
FIREBASE_STORAGE_BUCKET = os.getenv("FIREBASE_STORAGE_BUCKET", "")
FIREBASE_CREDENTIALS = os.getenv("FIREBASE_CREDENTIALS", "")
LABEL_TMP_DIR = os.getenv("LABEL_TMP_DIR") or None

# Orders
FLAT_SHIPPING_COST = float(os.getenv("FLAT_SHIPPING_COST", "40"))
AMOUNT_TOLERANCE = 0.01
MIN_RATING = 1.0
MAX_RATING = 5.0
