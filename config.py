"""
Application settings read from the environment (.env is loaded first).
Database settings are read by database.py.
"""
import os
from dotenv import load_dotenv

load_dotenv()

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24))

ALLOWED_ORIGINS = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "*").split(",") if o.strip()]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Placeholders for orders whose customer record no longer exists
REPORT_UNKNOWN_NAME = os.getenv("REPORT_UNKNOWN_NAME", "Unknown")
REPORT_UNKNOWN_EMAIL = os.getenv("REPORT_UNKNOWN_EMAIL", "Unknown")

PORT = int(os.getenv("PORT", 8000))
