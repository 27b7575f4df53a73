"""
Water Route - Dépendances FastAPI communes (scope + store)

L'authentification est externe: le proxy en amont fournit X-User-Id
et, si l'utilisateur est dans un groupe, X-Group-Id.
"""

import logging
from typing import Optional
from fastapi import Depends, Header, HTTPException
from pydantic import ValidationError

from config import db
from models.client import ALL_DAYS
from models.scope import Scope
from services.store import ScopedStore

logger = logging.getLogger("deps")


async def get_scope(
    x_user_id: Optional[str] = Header(None),
    x_group_id: Optional[str] = Header(None),
) -> Scope:
    """Scope de la requête à partir des en-têtes d'identité"""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Usuario no identificado")
    try:
        return Scope(user_id=x_user_id, group_id=x_group_id)
    except ValidationError:
        raise HTTPException(status_code=400, detail="Scope inválido")


async def get_store(scope: Scope = Depends(get_scope)) -> ScopedStore:
    return ScopedStore(db, scope)


async def get_client_or_404(store: ScopedStore, client_id: str) -> dict:
    client = await store.get("clients", client_id)
    if not client:
        raise HTTPException(status_code=404, detail="Cliente no encontrado")
    return client


def check_day(day: str) -> str:
    """Jour de tournée valide (Lunes..Sábado), sinon 400"""
    if day not in ALL_DAYS:
        raise HTTPException(status_code=400, detail=f"Día inválido: {day}")
    return day
