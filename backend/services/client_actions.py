"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Water Route - Actions sur les clients                                       ║
║                                                                              ║
║  - Fait: once => isCompleted ; cyclique => lastVisited = maintenant          ║
║  - Retirer du jour: retour à l'annuaire (on_demand, "Sin Asignar")           ║
║  - Programmation: date fixe => en tête du jour ; périodique => en fin        ║
║  - Suppression dure refusée tant que le client a des dettes                  ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from config import local_now
from models.client import (
    Frequency,
    UNASSIGNED_DAY,
    sanitize_client_data,
    sanitize_products,
)
from services.day_filter import completed_clients, head_rank, tail_rank
from services.flag_reconciler import client_debts, client_transfers
from services.recurrence import (
    day_name_for,
    get_week_number,
    parse_specific_date,
    roll_specific_date,
)

logger = logging.getLogger("client_actions")

NOTE_NAME = "NOTA"


def is_directory_entry(client: dict) -> bool:
    return client.get("freq") == Frequency.ON_DEMAND.value or client.get("visitDay") == UNASSIGNED_DAY


# ════════════════════════════════════════════════════════════════════════════
# ÉTAT DU JOUR
# ════════════════════════════════════════════════════════════════════════════

async def mark_as_done(store, client: dict, now: Optional[datetime] = None) -> dict:
    """Marque la visite comme faite; retourne les champs écrits"""
    now = now or local_now()

    if client.get("freq") == Frequency.ONCE.value:
        updates = {
            "isCompleted": True,
            "completedAt": now,
            "updatedAt": now,
            "alarm": "",
            "isStarred": False,
        }
    else:
        updates = {"lastVisited": now, "alarm": ""}
        if client.get("specificDate"):
            rolled = roll_specific_date(client["specificDate"], client.get("freq"), now.date())
            if rolled:
                updates["specificDate"] = rolled
        if client.get("isStarred"):
            updates["isStarred"] = False

    await store.update("clients", client["id"], updates)
    logger.info(f"[CLIENTS] {client['id']} done ({client.get('freq')})")
    return updates


async def undo_complete(store, client_id: str, now: Optional[datetime] = None) -> None:
    await store.update("clients", client_id, {
        "isCompleted": False,
        "completedAt": None,
        "updatedAt": now or local_now(),
    })


async def delete_from_day(store, client_id: str) -> None:
    """Retrait doux: le client retourne à l'annuaire"""
    await store.update("clients", client_id, {
        "freq": Frequency.ON_DEMAND.value,
        "visitDay": UNASSIGNED_DAY,
        "visitDays": [],
    })


async def delete_all_completed(store, clients: List[dict], day: str,
                               debts: List[dict], transfers: List[dict]) -> int:
    """
    Supprime les complétés du jour, sauf ceux qui ont encore des dettes.
    Les transferencias en attente des clients supprimés partent avec eux.
    Retourne le nombre de clients réellement supprimés.
    """
    done = completed_clients(clients, day)
    deletable = [c["id"] for c in done if not client_debts(debts, c["id"])]
    kept = len(done) - len(deletable)
    if kept:
        logger.warning(f"[CLIENTS] {kept} completed entries kept on {day}: open debts")

    orphan_transfers = [
        t["id"] for client_id in deletable for t in client_transfers(transfers, client_id)
    ]
    await store.batch_delete("transfers", orphan_transfers)
    await store.batch_delete("clients", deletable)
    if deletable:
        logger.info(f"[CLIENTS] {len(deletable)} completed entries deleted from {day}")
    return len(deletable)


async def delete_client(store, client_id: str, debts: List[dict], transfers: List[dict]) -> bool:
    """
    Suppression définitive. Refusée (False) tant que le client a des dettes;
    ses transferencias en attente sont supprimées avec lui.
    """
    if client_debts(debts, client_id):
        logger.warning(f"[CLIENTS] delete refused for {client_id}: open debts")
        return False

    for transfer in client_transfers(transfers, client_id):
        await store.delete("transfers", transfer["id"])
    await store.delete("clients", client_id)
    logger.info(f"[CLIENTS] {client_id} deleted")
    return True


# ════════════════════════════════════════════════════════════════════════════
# ÉDITION
# ════════════════════════════════════════════════════════════════════════════

async def update_client(store, client_id: str, data: dict) -> dict:
    updates = sanitize_client_data(data, partial=True)
    if not updates:
        return {}
    updates["updatedAt"] = local_now()
    await store.update("clients", client_id, updates)
    return updates


async def toggle_star(store, client_id: str, current_value: bool) -> bool:
    new_value = not current_value
    await store.update("clients", client_id, {"isStarred": new_value})
    return new_value


async def save_alarm(store, client_id: str, time_text: str) -> None:
    await store.update("clients", client_id, {"alarm": time_text or ""})


# ════════════════════════════════════════════════════════════════════════════
# CRÉATION / PROGRAMMATION
# ════════════════════════════════════════════════════════════════════════════

async def add_client(store, clients: List[dict], data: dict, day: Optional[str] = None,
                     now: Optional[datetime] = None) -> str:
    """Ajout à l'annuaire si `day` est vide, sinon visite hebdomadaire en fin de `day`"""
    now = now or local_now()
    doc = sanitize_client_data(data)
    doc.update({
        "isCompleted": False,
        "isStarred": False,
        "isPinned": False,
        "isNote": False,
        "alarm": "",
        "lastVisited": None,
        "specificDate": None,
        "startWeek": get_week_number(now.date()),
        "createdAt": now,
        "updatedAt": now,
    })

    if day:
        rank = tail_rank(clients, day)
        doc.update({
            "freq": Frequency.WEEKLY.value,
            "visitDay": day,
            "visitDays": [day],
            "listOrder": rank,
            "listOrders": {day: rank},
        })
    else:
        doc.update({
            "freq": Frequency.ON_DEMAND.value,
            "visitDay": UNASSIGNED_DAY,
            "visitDays": [],
            "listOrders": {},
        })

    client_id = await store.add("clients", doc)
    logger.info(f"[CLIENTS] added {client_id} ({day or 'directory'})")
    return client_id


async def schedule_from_directory(
    store,
    clients: List[dict],
    client: dict,
    days: List[str],
    freq,
    date_text: str = "",
    notes: str = "",
    products: Optional[Dict[str, int]] = None,
    now: Optional[datetime] = None,
) -> Optional[str]:
    """
    Programme un client de l'annuaire.

    date_text => visite unique sur le jour de cette date, en tête de liste.
    Sinon => visite périodique sur `days`, en fin de liste de chaque jour.
    Un client de l'annuaire est réactivé; sinon une nouvelle visite est créée.
    Retourne l'id du document écrit, ou None si rien n'est programmable.
    """
    now = now or local_now()
    freq_value = freq.value if isinstance(freq, Frequency) else freq

    data = {
        "name": client.get("name", ""),
        "phone": client.get("phone", ""),
        "address": client.get("address", ""),
        "lat": client.get("lat", ""),
        "lng": client.get("lng", ""),
        "mapsLink": client.get("mapsLink", ""),
        "freq": freq_value,
        "notes": notes,
        "isPinned": False,
        "products": sanitize_products(products),
        "startWeek": get_week_number(now.date()),
        "updatedAt": now,
    }

    if date_text:
        visit_date = parse_specific_date(date_text)
        if visit_date is None:
            return None
        day_name = day_name_for(visit_date)
        rank = head_rank(clients, day_name)
        data.update({
            "visitDay": day_name,
            "visitDays": [day_name],
            "specificDate": visit_date.isoformat(),
            "listOrder": rank,
            "listOrders": {day_name: rank},
        })
    else:
        if not days:
            return None
        list_orders = {day: tail_rank(clients, day) for day in days}
        data.update({
            "visitDays": list(days),
            "visitDay": days[0],
            "specificDate": None,
            "listOrders": list_orders,
            "listOrder": list_orders[days[0]],
        })

    if is_directory_entry(client):
        await store.update("clients", client["id"], data)
        logger.info(f"[CLIENTS] {client['id']} reactivated ({freq_value})")
        return client["id"]

    data["createdAt"] = now
    new_id = await store.add("clients", data)
    logger.info(f"[CLIENTS] extra visit {new_id} for {client['id']} ({freq_value})")
    return new_id


async def add_note(store, clients: List[dict], text: str, date_text: str,
                   now: Optional[datetime] = None) -> Optional[str]:
    """Note de rappel dans la liste du jour, en tête du jour de la date"""
    visit_date = parse_specific_date(date_text)
    if visit_date is None:
        return None
    now = now or local_now()
    day_name = day_name_for(visit_date)
    rank = head_rank(clients, day_name)

    return await store.add("clients", {
        "isNote": True,
        "name": NOTE_NAME,
        "phone": "",
        "address": "",
        "notes": text,
        "freq": Frequency.ONCE.value,
        "specificDate": visit_date.isoformat(),
        "visitDays": [day_name],
        "visitDay": day_name,
        "listOrder": rank,
        "listOrders": {day_name: rank},
        "products": {},
        "isCompleted": False,
        "isStarred": False,
        "isPinned": False,
        "startWeek": get_week_number(now.date()),
        "createdAt": now,
        "updatedAt": now,
    })
