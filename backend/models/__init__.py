"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Water Route - Models Package                                                ║
║                                                                              ║
║  Exporte tous les modèles pour import facile                                 ║
║  from models import Scope, Frequency, ClientCreate, DebtCreate, etc.         ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

# Scope (userId / groupId)
from .scope import Scope

# Client (point de livraison)
from .client import (
    Frequency,
    INTERVAL_WEEKS,
    ALL_DAYS,
    VALID_DAYS,
    UNASSIGNED_DAY,
    PRODUCT_IDS,
    interval_weeks,
    sanitize_client_data,
    sanitize_products,
    ClientCreate,
    ClientUpdate,
    ScheduleRequest,
    PositionRequest,
    AlarmRequest,
    StarRequest,
    NoteCreate,
)

# Debts / transfers / daily loads
from .ledger import (
    DebtCreate,
    DebtUpdate,
    TransferCreate,
    DailyLoad,
)

__all__ = [
    # Scope
    "Scope",
    # Client
    "Frequency",
    "INTERVAL_WEEKS",
    "ALL_DAYS",
    "VALID_DAYS",
    "UNASSIGNED_DAY",
    "PRODUCT_IDS",
    "interval_weeks",
    "sanitize_client_data",
    "sanitize_products",
    "ClientCreate",
    "ClientUpdate",
    "ScheduleRequest",
    "PositionRequest",
    "AlarmRequest",
    "StarRequest",
    "NoteCreate",
    # Ledger
    "DebtCreate",
    "DebtUpdate",
    "TransferCreate",
    "DailyLoad",
]
