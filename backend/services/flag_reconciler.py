"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Water Route - Deudas / Transferencias et drapeaux dérivés                   ║
║                                                                              ║
║  hasDebt / hasPendingTransfer sont des CACHES sur le client.                 ║
║  La source de vérité reste les collections debts / transfers.                ║
║                                                                              ║
║  INVARIANTS:                                                                 ║
║  - addDebt => hasDebt = true (jamais décrémenté ici)                         ║
║  - markPaid => delete, puis hasDebt = false si plus aucune dette locale      ║
║  - editAmount ne touche jamais hasDebt                                       ║
║  - au plus 1 transfert en attente par client (garde best-effort)             ║
║                                                                              ║
║  Deux écritures séparées, non atomiques: un crash entre les deux laisse      ║
║  un drapeau périmé, corrigé au prochain markPaid/markReviewed complet.       ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

import logging
from datetime import datetime
from typing import List, Optional

from config import local_now
from services.recurrence import parse_date

logger = logging.getLogger("flag_reconciler")


# ════════════════════════════════════════════════════════════════════════════
# LECTURES SUR SNAPSHOT
# ════════════════════════════════════════════════════════════════════════════

def _created_key(record: dict):
    return parse_date(record.get("createdAt")) or datetime.min


def newest_first(records: List[dict]) -> List[dict]:
    return sorted(records, key=_created_key, reverse=True)


def client_debts(debts: List[dict], client_id: str) -> List[dict]:
    return [d for d in debts if d.get("clientId") == client_id]


def client_debt_total(debts: List[dict], client_id: str) -> float:
    return sum(d.get("amount") or 0 for d in client_debts(debts, client_id))


def client_transfers(transfers: List[dict], client_id: str) -> List[dict]:
    return [t for t in transfers if t.get("clientId") == client_id]


def has_pending_transfer(transfers: List[dict], client_id: str) -> bool:
    return any(t.get("clientId") == client_id for t in transfers)


def _is_positive(amount) -> bool:
    return isinstance(amount, (int, float)) and not isinstance(amount, bool) and amount > 0


# ════════════════════════════════════════════════════════════════════════════
# DEUDAS
# ════════════════════════════════════════════════════════════════════════════

async def add_debt(store, client: dict, amount, now: Optional[datetime] = None) -> Optional[str]:
    """Crée une deuda et lève le drapeau hasDebt du client"""
    if not _is_positive(amount):
        return None

    debt_id = await store.add("debts", {
        "clientId": client["id"],
        "clientName": client.get("name", ""),
        "clientAddress": client.get("address") or "",
        "amount": amount,
        "createdAt": now or local_now(),
        "paid": False,
    })
    await store.update("clients", client["id"], {"hasDebt": True})

    logger.info(f"[DEBTS] +{amount} for client {client['id']} (debt {debt_id})")
    return debt_id


async def mark_debt_paid(store, debts: List[dict], debt: dict) -> bool:
    """
    Supprime une deuda payée. Baisse hasDebt si le snapshot local n'a plus
    d'autre deuda pour ce client. Retourne True si le drapeau a été baissé.
    """
    await store.delete("debts", debt["id"])

    remaining = [
        d for d in debts
        if d.get("clientId") == debt.get("clientId") and d.get("id") != debt["id"]
    ]
    if remaining:
        logger.info(f"[DEBTS] debt {debt['id']} paid, {len(remaining)} left for {debt.get('clientId')}")
        return False

    await store.update("clients", debt["clientId"], {"hasDebt": False})
    logger.info(f"[DEBTS] debt {debt['id']} paid, client {debt.get('clientId')} cleared")
    return True


async def edit_debt_amount(store, debt_id: str, new_amount) -> bool:
    if not _is_positive(new_amount):
        return False
    await store.update("debts", debt_id, {"amount": new_amount})
    return True


# ════════════════════════════════════════════════════════════════════════════
# TRANSFERENCIAS
# ════════════════════════════════════════════════════════════════════════════

async def add_transfer(store, transfers: List[dict], client: dict,
                       now: Optional[datetime] = None) -> bool:
    """
    Enregistre une transferencia en attente, sauf si le snapshot en a déjà
    une pour ce client. Vérifier-puis-écrire: deux écrivains peuvent passer.
    """
    if has_pending_transfer(transfers, client["id"]):
        logger.info(f"[TRANSFERS] client {client['id']} already has a pending transfer")
        return False

    transfer_id = await store.add("transfers", {
        "clientId": client["id"],
        "clientName": client.get("name", ""),
        "clientAddress": client.get("address") or "",
        "clientLat": client.get("lat") or None,
        "clientLng": client.get("lng") or None,
        "clientMapsLink": client.get("mapsLink") or None,
        "createdAt": now or local_now(),
        "reviewed": False,
    })
    await store.update("clients", client["id"], {"hasPendingTransfer": True})

    logger.info(f"[TRANSFERS] pending transfer {transfer_id} for client {client['id']}")
    return True


async def mark_transfer_reviewed(store, transfers: List[dict], transfer: dict) -> bool:
    await store.delete("transfers", transfer["id"])

    remaining = [
        t for t in transfers
        if t.get("clientId") == transfer.get("clientId") and t.get("id") != transfer["id"]
    ]
    if remaining:
        return False

    await store.update("clients", transfer["clientId"], {"hasPendingTransfer": False})
    logger.info(f"[TRANSFERS] transfer {transfer['id']} reviewed, client {transfer.get('clientId')} cleared")
    return True
