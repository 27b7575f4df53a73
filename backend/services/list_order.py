"""
Water Route - Ordre manuel des listes du jour

Un déplacement renumérote TOUTE la liste du jour (0..n-1, sans trous),
écrit en un seul batch.
"""

import logging
from datetime import date
from typing import List, Optional

from services.day_filter import day_clients

logger = logging.getLogger("list_order")


def reorder_day(clients: List[dict], client_id: str, new_position: int, day: str,
                today: Optional[date] = None) -> Optional[List[dict]]:
    """
    Nouvel ordre de la liste du jour avec `client_id` en `new_position`
    (à partir de 1). Retourne None si le déplacement ne fait rien.
    """
    if new_position <= 0:
        return None

    ordering = day_clients(clients, day, today)
    current_index = next(
        (i for i, c in enumerate(ordering) if c.get("id") == client_id), None
    )
    if current_index is None:
        return None

    moved = ordering.pop(current_index)
    target_index = min(max(0, new_position - 1), len(ordering))
    ordering.insert(target_index, moved)
    return ordering


async def change_position(store, clients: List[dict], client_id: str, new_position: int,
                          day: str, today: Optional[date] = None) -> Optional[List[str]]:
    """Déplace un client dans la liste du jour et écrit la renumérotation"""
    ordering = reorder_day(clients, client_id, new_position, day, today)
    if ordering is None:
        return None

    updates = [
        (c["id"], {f"listOrders.{day}": index, "listOrder": index})
        for index, c in enumerate(ordering)
    ]
    await store.batch_update("clients", updates)

    logger.info(
        f"[LIST_ORDER] {day}: client {client_id} -> position {new_position} "
        f"({len(updates)} ranks rewritten)"
    )
    return [c["id"] for c in ordering]
