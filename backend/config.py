"""
Configuration et utilitaires partagés
"""

import os
import re
import unicodedata
from datetime import datetime, timezone
from urllib.parse import urlparse
from motor.motor_asyncio import AsyncIOMotorClient
from dotenv import load_dotenv
from pathlib import Path
import pytz

# Charger .env
ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

# MongoDB
MONGO_URL = os.environ.get('MONGO_URL', 'mongodb://localhost:27017')
DB_NAME = os.environ.get('DB_NAME', 'water_route')

client = AsyncIOMotorClient(MONGO_URL)
db = client[DB_NAME]

# Business wall clock (all route days are local dates)
APP_TIMEZONE = os.environ.get('APP_TIMEZONE', 'America/Montevideo')
LOCAL_TZ = pytz.timezone(APP_TIMEZONE)

# Store retry policy: base * 2^(attempt-1) seconds between attempts
STORE_MAX_RETRIES = int(os.environ.get('STORE_MAX_RETRIES', '3'))
STORE_RETRY_BASE_DELAY = float(os.environ.get('STORE_RETRY_BASE_DELAY', '1.0'))

CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')


# ==================== HELPERS ====================

def now_iso() -> str:
    """Retourne la date/heure actuelle en ISO"""
    return datetime.now(timezone.utc).isoformat()


def local_now() -> datetime:
    """Datetime local naïf dans APP_TIMEZONE (stocké tel quel dans Mongo)"""
    return datetime.now(LOCAL_TZ).replace(tzinfo=None)


def local_today():
    return local_now().date()


def to_local_naive(value: datetime) -> datetime:
    """Les datetimes avec fuseau passent en heure locale; les naïfs restent tels quels"""
    if value.tzinfo is None:
        return value
    return value.astimezone(LOCAL_TZ).replace(tzinfo=None)


def normalize_text(text: str) -> str:
    """Minuscules sans accents ("Miércoles" -> "miercoles")"""
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", str(text))
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).lower()


def sanitize_string(value, max_len: int = 500) -> str:
    if not value:
        return ""
    return str(value).strip()[:max_len]


def sanitize_phone(phone) -> str:
    """Garde chiffres, +, -, espaces et parenthèses (20 caractères max)"""
    if not phone:
        return ""
    return re.sub(r"[^\d+\-\s()]", "", str(phone))[:20]


def is_safe_url(url) -> bool:
    """Seuls les liens http(s) sont acceptés pour mapsLink"""
    if not url:
        return False
    try:
        parsed = urlparse(str(url))
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)
