"""
Water Route - Carga diaria (un document par utilisateur et par jour)
"""

from typing import Dict

from models.ledger import DailyLoad

COLLECTION = "daily_loads"


def load_id(user_id: str, day: str) -> str:
    return f"{user_id}_{day}"


async def load_for_day(store, user_id: str, day: str) -> Dict[str, str]:
    """Carga enregistrée du jour, ou une carga vide"""
    doc = await store.get(COLLECTION, load_id(user_id, day))
    if not doc:
        return DailyLoad().model_dump()
    return DailyLoad.model_validate(doc).model_dump()


async def save_daily_load(store, user_id: str, day: str, data: DailyLoad) -> Dict[str, str]:
    fields = data.model_dump()
    await store.set(COLLECTION, load_id(user_id, day), fields)
    return fields
