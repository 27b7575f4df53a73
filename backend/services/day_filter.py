"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Water Route - Filtre de visibilité par jour                                 ║
║                                                                              ║
║  Vue pure sur le snapshot complet des clients:                               ║
║  - on_demand => jamais visible                                               ║
║  - isCompleted => seulement dans la liste "completados"                      ║
║  - biweekly/triweekly/monthly => visible si dû (voir recurrence)             ║
║  - Tri: listOrders[day] ?? listOrder ?? 0, rang > 100000 => 0                ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from datetime import date
from typing import List, Dict, Optional

from config import local_today, normalize_text
from models.client import ALL_DAYS, Frequency
from services.recurrence import next_visit_date

# Ranks above this value are leftovers of an old overflow bug
RANK_SENTINEL_LIMIT = 100000

# Frequencies shown on every matching day without a due-date check
ALWAYS_DUE = (Frequency.ONCE.value, Frequency.WEEKLY.value)


def matches_day(client: dict, day: str) -> bool:
    visit_days = client.get("visitDays") or []
    return day in visit_days or client.get("visitDay") == day


def raw_rank(client: dict, day: str):
    rank = (client.get("listOrders") or {}).get(day)
    if rank is None:
        rank = client.get("listOrder")
    if rank is None or isinstance(rank, bool) or not isinstance(rank, (int, float)):
        return 0
    return rank


def sort_rank(client: dict, day: str):
    """Rang effectif d'un client sur un jour (les rangs sentinelles passent en tête)"""
    rank = raw_rank(client, day)
    return 0 if rank > RANK_SENTINEL_LIMIT else rank


def is_future_day(day: str, today: date) -> bool:
    """
    True si `day` est encore à venir dans la semaine (lundi en premier).

    Dimanche vaut -1: le dimanche, tous les jours de tournée sont à venir.
    """
    day_index = ALL_DAYS.index(day) if day in ALL_DAYS else -1
    today_index = (today.weekday() + 1) % 7 - 1
    return day_index > today_index


def is_due(client: dict, day: str, today: date) -> bool:
    if client.get("freq") in ALWAYS_DUE:
        return True

    next_visit = next_visit_date(client, day, today)
    if next_visit is None:
        return False
    if is_future_day(day, today):
        return True
    return next_visit.date() <= today


def visible_clients(clients: List[dict], day: str, today: Optional[date] = None) -> List[dict]:
    """Tournée active du jour, dans l'ordre de la liste"""
    if not day:
        return []
    today = today or local_today()

    visible = [
        c for c in clients
        if c.get("freq") != Frequency.ON_DEMAND.value
        and not c.get("isCompleted")
        and matches_day(c, day)
        and is_due(c, day, today)
    ]
    return sorted(visible, key=lambda c: sort_rank(c, day))


def completed_clients(clients: List[dict], day: str) -> List[dict]:
    return [c for c in clients if c.get("isCompleted") and matches_day(c, day)]


def day_clients(clients: List[dict], day: str, today: Optional[date] = None) -> List[dict]:
    """Tournée visible suivie des complétés du jour"""
    return visible_clients(clients, day, today) + completed_clients(clients, day)


def day_counts(clients: List[dict], today: Optional[date] = None) -> Dict[str, int]:
    """Nombre de clients visibles par jour (badges du sélecteur)"""
    today = today or local_today()
    return {day: len(visible_clients(clients, day, today)) for day in ALL_DAYS}


def filtered_directory(clients: List[dict], term: str = "") -> List[dict]:
    """Annuaire complet, recherche sans accents sur nom/adresse/téléphone"""
    needle = normalize_text(term or "").strip()

    def matches(c: dict) -> bool:
        if not needle:
            return True
        return (
            needle in normalize_text(c.get("name") or "")
            or needle in normalize_text(c.get("address") or "")
            or needle in (c.get("phone") or "").lower()
        )

    return sorted(
        (c for c in clients if matches(c)),
        key=lambda c: normalize_text(c.get("name") or ""),
    )


# ════════════════════════════════════════════════════════════════════════════
# PLACEMENT DES NOUVEAUX ÉLÉMENTS
# ════════════════════════════════════════════════════════════════════════════

def _active_on_day(clients: List[dict], day: str) -> List[dict]:
    return [
        c for c in clients
        if c.get("freq") != Frequency.ON_DEMAND.value
        and not c.get("isCompleted")
        and matches_day(c, day)
    ]


def head_rank(clients: List[dict], day: str) -> int:
    """Rang qui place une nouvelle entrée en tête de `day`"""
    members = _active_on_day(clients, day)
    if not members:
        return -1
    return min(sort_rank(c, day) for c in members) - 1


def tail_rank(clients: List[dict], day: str) -> int:
    """Rang qui place une nouvelle entrée en fin de `day`"""
    members = _active_on_day(clients, day)
    if not members:
        return 0
    return max(sort_rank(c, day) for c in members) + 1
