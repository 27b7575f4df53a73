"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Water Route - Calcul de la prochaine visite                                 ║
║                                                                              ║
║  Fonction pure: (client, jour) -> date de visite ou None                     ║
║                                                                              ║
║  1. specificDate => cette date à 12h, quelle que soit la fréquence           ║
║  2. once sans date => None (non programmé)                                   ║
║  3. Prochaine occurrence du jour (aujourd'hui compte)                        ║
║  4. Correction d'ancrage par lastVisited (cycles 2/3/4 semaines)             ║
║                                                                              ║
║  Comparaisons à minuit local; seul le résultat porte 12h                     ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from datetime import date, datetime, time, timedelta
from typing import Optional

from config import local_today, normalize_text, to_local_naive, LOCAL_TZ
from models.client import Frequency, interval_weeks

# Sun=0..Sat=6, keys accent-free
DAY_INDEX = {
    "domingo": 0,
    "lunes": 1,
    "martes": 2,
    "miercoles": 3,
    "jueves": 4,
    "viernes": 5,
    "sabado": 6,
}
DAY_NAMES = ["Domingo", "Lunes", "Martes", "Miércoles", "Jueves", "Viernes", "Sábado"]

NOON = time(12, 0)


def get_day_index(day_name: Optional[str]) -> int:
    """Nom du jour -> Dim=0..Sam=6, ou -1 si inconnu"""
    if not day_name:
        return -1
    return DAY_INDEX.get(normalize_text(day_name).strip(), -1)


def js_weekday(d: date) -> int:
    """Index Dim=0..Sam=6 d'une date"""
    return (d.weekday() + 1) % 7


def day_name_for(d: date) -> str:
    return DAY_NAMES[js_weekday(d)]


def get_week_number(d: date) -> int:
    """Numéro de semaine ISO"""
    return d.isocalendar()[1]


def parse_date(value) -> Optional[datetime]:
    """
    Lit un horodatage stocké sous n'importe quelle forme connue.

    Accepte datetime, date, chaîne ISO, epoch en secondes et l'ancien
    format {"seconds": ...}. Retourne un datetime local naïf, ou None.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_local_naive(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, dict) and value.get("seconds") is not None:
        value = value["seconds"]
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, LOCAL_TZ).replace(tzinfo=None)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        try:
            return to_local_naive(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError:
            return None
    return None


def parse_specific_date(value) -> Optional[date]:
    """YYYY-MM-DD (ou tout horodatage lisible) -> date calendaire"""
    parsed = parse_date(value)
    return parsed.date() if parsed else None


def next_visit_date(client: dict, for_day: Optional[str] = None,
                    today: Optional[date] = None) -> Optional[datetime]:
    """
    Prochaine visite due d'un client pour un jour de tournée.

    Retourne un datetime à midi, ou None pour une visite unique sans date
    et pour un client dont le jour est introuvable.
    """
    specific = client.get("specificDate")
    if specific:
        specific_day = parse_specific_date(specific)
        if specific_day is None:
            return None
        return datetime.combine(specific_day, NOON)

    freq = client.get("freq")
    if freq == Frequency.ONCE.value:
        return None

    today = today or local_today()

    target_index = get_day_index(for_day or client.get("visitDay"))
    if target_index == -1:
        return None

    diff = (target_index - js_weekday(today)) % 7
    next_day = today + timedelta(days=diff)

    # Weekly (and unknown) frequencies are never anchor-corrected
    interval = interval_weeks(freq)
    last_visited = parse_date(client.get("lastVisited")) if interval > 1 else None

    if last_visited:
        last_day = last_visited.date()
        if last_day >= today:
            # Already visited (or pre-marked): skip the whole cycle
            next_day += timedelta(days=interval * 7)
        else:
            days_since = (next_day - last_day).days
            if days_since < interval * 7 - 3 and days_since < 7:
                next_day += timedelta(days=interval * 7 - 7)

    return datetime.combine(next_day, NOON)


def roll_specific_date(specific_date, freq, today: Optional[date] = None) -> Optional[str]:
    """
    Avance une date fixe d'un cycle, puis encore jusqu'à demain au moins.

    Utilisé quand un client périodique avec specificDate est marqué fait.
    """
    current = parse_specific_date(specific_date)
    if current is None:
        return None
    today = today or local_today()
    step = timedelta(days=interval_weeks(freq) * 7)
    tomorrow = today + timedelta(days=1)

    rolled = current + step
    while rolled < tomorrow:
        rolled += step
    return rolled.isoformat()
