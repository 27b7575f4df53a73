"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Water Route - Modèle Client (point de livraison)                            ║
║                                                                              ║
║  RÈGLES:                                                                     ║
║  - freq = on_demand => jamais dans une liste du jour (annuaire seulement)    ║
║  - isCompleted = true => hors de toutes les listes actives                   ║
║  - hasDebt / hasPendingTransfer sont des caches, pas la source               ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from enum import Enum
from typing import Optional, List, Dict
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from config import sanitize_string, sanitize_phone, is_safe_url


class Frequency(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    TRIWEEKLY = "triweekly"
    MONTHLY = "monthly"
    ONCE = "once"
    ON_DEMAND = "on_demand"


INTERVAL_WEEKS = {
    Frequency.WEEKLY: 1,
    Frequency.BIWEEKLY: 2,
    Frequency.TRIWEEKLY: 3,
    Frequency.MONTHLY: 4,
}

# Route days (Mon-first). Domingo is only used for date math.
ALL_DAYS = ["Lunes", "Martes", "Miércoles", "Jueves", "Viernes", "Sábado"]
VALID_DAYS = ALL_DAYS + ["Domingo"]
UNASSIGNED_DAY = "Sin Asignar"

PRODUCT_IDS = [
    "b20", "b12", "b6", "soda", "bombita",
    "disp_elec_new", "disp_elec_chg", "disp_nat",
]
MAX_PRODUCT_QTY = 9999


def interval_weeks(freq) -> int:
    """Durée du cycle en semaines; tout ce qui n'est pas cyclique compte 1"""
    try:
        return INTERVAL_WEEKS.get(Frequency(freq), 1)
    except ValueError:
        return 1


def sanitize_product_qty(value) -> str:
    if value is None or value == "":
        return ""
    try:
        n = int(value)
    except (TypeError, ValueError):
        return ""
    if n < 0 or n > MAX_PRODUCT_QTY:
        return ""
    return str(n)


def sanitize_products(products: Optional[dict]) -> Dict[str, str]:
    products = products or {}
    return {pid: sanitize_product_qty(products.get(pid)) for pid in PRODUCT_IDS}


def sanitize_client_data(data: dict, partial: bool = False) -> dict:
    """
    Nettoie les champs éditables d'un client.

    partial=True ne traite que les clés présentes (mise à jour),
    sinon tous les champs sont produits avec leurs valeurs par défaut.
    """
    cleaners = {
        "name": lambda v: sanitize_string(v, 100),
        "phone": sanitize_phone,
        "address": lambda v: sanitize_string(v, 200),
        "notes": lambda v: sanitize_string(v, 500),
        "lat": lambda v: sanitize_string(v, 20),
        "lng": lambda v: sanitize_string(v, 20),
        "freq": lambda v: v if v in [f.value for f in Frequency] else Frequency.WEEKLY.value,
        "visitDay": lambda v: sanitize_string(v, 20),
        "specificDate": lambda v: sanitize_string(v, 10),
        "mapsLink": lambda v: v if is_safe_url(v) else "",
        "visitDays": lambda v: [d for d in v if d in VALID_DAYS] if isinstance(v, list) else [],
        "products": sanitize_products,
    }

    clean = {}
    for key, cleaner in cleaners.items():
        if partial and key not in data:
            continue
        value = data.get(key)
        if isinstance(value, Enum):
            value = value.value
        clean[key] = cleaner(value)
    return clean


class CamelModel(BaseModel):
    """Corps de requête en camelCase, mêmes clés que les documents stockés"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ClientCreate(CamelModel):
    """Ajout d'un client (annuaire si day vide, sinon sur ce jour)"""
    name: str
    address: str = ""
    phone: str = ""
    notes: str = ""
    lat: str = ""
    lng: str = ""
    maps_link: str = ""
    products: Dict[str, int] = {}
    day: Optional[str] = None

    @field_validator('day')
    @classmethod
    def validate_day(cls, v):
        if v and v not in ALL_DAYS:
            raise ValueError(f"Día inválido: {v}")
        return v or None


class ClientUpdate(CamelModel):
    """Mise à jour partielle d'un client"""
    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None
    lat: Optional[str] = None
    lng: Optional[str] = None
    maps_link: Optional[str] = None
    freq: Optional[Frequency] = None
    visit_day: Optional[str] = None
    visit_days: Optional[List[str]] = None
    specific_date: Optional[str] = None
    products: Optional[Dict[str, int]] = None


class ScheduleRequest(CamelModel):
    """Programmation depuis l'annuaire: date fixe OU jours + fréquence"""
    days: List[str] = []
    freq: Frequency = Frequency.WEEKLY
    date: str = ""
    notes: str = ""
    products: Dict[str, int] = {}

    @field_validator('days')
    @classmethod
    def validate_days(cls, v):
        invalid = [d for d in v if d not in ALL_DAYS]
        if invalid:
            raise ValueError(f"Días inválidos: {invalid}")
        return v


class PositionRequest(CamelModel):
    position: int
    day: str


class AlarmRequest(CamelModel):
    time: str = ""


class StarRequest(CamelModel):
    current: bool = False


class NoteCreate(CamelModel):
    text: str = Field(..., max_length=500)
    date: str
