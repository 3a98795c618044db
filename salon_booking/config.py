import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./salon_booking.db")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Wall-clock zone used for all stored booking times
SALON_TIMEZONE = os.getenv("SALON_TIMEZONE", "Asia/Bangkok")

# Daily working window used for slot generation (HH:MM, 24h)
BUSINESS_OPEN = os.getenv("BUSINESS_OPEN", "09:00")
BUSINESS_CLOSE = os.getenv("BUSINESS_CLOSE", "20:00")
SLOT_INTERVAL_MINUTES = int(os.getenv("SLOT_INTERVAL_MINUTES", "30"))
DEFAULT_BOOKING_DURATION = int(os.getenv("DEFAULT_BOOKING_DURATION", "60"))

# Regenerate a booking number this many times before giving up
BOOKING_NUMBER_MAX_ATTEMPTS = int(os.getenv("BOOKING_NUMBER_MAX_ATTEMPTS", "5"))

# Default country code used when normalising local phone numbers
DEFAULT_PHONE_COUNTRY_CODE = os.getenv("DEFAULT_PHONE_COUNTRY_CODE", "66")

# Frontend base URL (booking pages)
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    f"{FRONTEND_URL},http://localhost:5173",
).split(",")
