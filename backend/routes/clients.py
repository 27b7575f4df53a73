"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Water Route - Routes Clients                                                ║
║                                                                              ║
║  Annuaire, listes du jour, ordre manuel et actions de visite                 ║
║  Toutes les requêtes filtrées par scope (groupId ou userId)                  ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from models import (
    ClientCreate,
    ClientUpdate,
    ScheduleRequest,
    PositionRequest,
    AlarmRequest,
    StarRequest,
    NoteCreate,
)
from routes.deps import get_store, get_client_or_404, check_day
from services.store import ScopedStore
from services import client_actions
from services.day_filter import (
    visible_clients,
    completed_clients,
    day_counts,
    filtered_directory,
)
from services.list_order import change_position
from services.recurrence import next_visit_date

router = APIRouter(prefix="/clients", tags=["Clients"])


def _with_next_visit(client: dict, day: str) -> dict:
    item = dict(client)
    item["nextVisit"] = next_visit_date(client, day)
    return item


# ==================== LECTURES ====================

@router.get("")
async def list_directory(
    q: str = Query("", description="Búsqueda por nombre, dirección o teléfono"),
    store: ScopedStore = Depends(get_store),
):
    """Annuaire complet (tous les clients du scope)"""
    clients = await store.snapshot("clients")
    result = filtered_directory(clients, q)
    return {"clients": result, "count": len(result)}


@router.get("/days")
async def get_day_counts(store: ScopedStore = Depends(get_store)):
    clients = await store.snapshot("clients")
    return {"counts": day_counts(clients)}


@router.get("/day/{day}")
async def get_day(day: str, store: ScopedStore = Depends(get_store)):
    """Liste active du jour (ordonnée) + complétés"""
    check_day(day)
    clients = await store.snapshot("clients")
    visible = [_with_next_visit(c, day) for c in visible_clients(clients, day)]
    completed = completed_clients(clients, day)
    return {
        "day": day,
        "visible": visible,
        "completed": completed,
        "count": len(visible),
    }


@router.delete("/day/{day}/completed")
async def delete_completed(day: str, store: ScopedStore = Depends(get_store)):
    check_day(day)
    clients = await store.snapshot("clients")
    debts = await store.snapshot("debts")
    transfers = await store.snapshot("transfers")
    deleted = await client_actions.delete_all_completed(store, clients, day, debts, transfers)
    return {"success": True, "deleted": deleted}


@router.get("/{client_id}")
async def get_client(client_id: str, store: ScopedStore = Depends(get_store)):
    client = await get_client_or_404(store, client_id)
    return {"client": client}


# ==================== CRÉATION / ÉDITION ====================

@router.post("")
async def create_client(data: ClientCreate, store: ScopedStore = Depends(get_store)):
    """Ajout à l'annuaire, ou directement sur un jour si `day` est fourni"""
    clients = await store.snapshot("clients")
    client_id = await client_actions.add_client(
        store, clients, data.model_dump(by_alias=True), day=data.day
    )
    return {"success": True, "id": client_id}


@router.post("/notes")
async def create_note(data: NoteCreate, store: ScopedStore = Depends(get_store)):
    clients = await store.snapshot("clients")
    note_id = await client_actions.add_note(store, clients, data.text, data.date)
    if not note_id:
        raise HTTPException(status_code=400, detail=f"Fecha inválida: {data.date}")
    return {"success": True, "id": note_id}


@router.put("/{client_id}")
async def update_client(client_id: str, data: ClientUpdate, store: ScopedStore = Depends(get_store)):
    await get_client_or_404(store, client_id)
    updates = await client_actions.update_client(
        store, client_id, data.model_dump(by_alias=True, exclude_none=True)
    )
    return {"success": True, "updated": sorted(updates)}


@router.delete("/{client_id}")
async def delete_client(client_id: str, store: ScopedStore = Depends(get_store)):
    """Suppression définitive (refusée si le client a des dettes)"""
    await get_client_or_404(store, client_id)
    debts = await store.snapshot("debts")
    transfers = await store.snapshot("transfers")
    deleted = await client_actions.delete_client(store, client_id, debts, transfers)
    if not deleted:
        raise HTTPException(status_code=409, detail="El cliente tiene deudas pendientes")
    return {"success": True}


@router.post("/{client_id}/schedule")
async def schedule_client(client_id: str, data: ScheduleRequest, store: ScopedStore = Depends(get_store)):
    client = await get_client_or_404(store, client_id)
    clients = await store.snapshot("clients")
    scheduled_id = await client_actions.schedule_from_directory(
        store, clients, client, data.days, data.freq, data.date, data.notes, data.products
    )
    if not scheduled_id:
        if data.date:
            raise HTTPException(status_code=400, detail=f"Fecha inválida: {data.date}")
        raise HTTPException(status_code=400, detail="Falta fecha o días de visita")
    return {"success": True, "id": scheduled_id}


# ==================== ACTIONS DU JOUR ====================

@router.post("/{client_id}/done")
async def mark_done(client_id: str, store: ScopedStore = Depends(get_store)):
    client = await get_client_or_404(store, client_id)
    updates = await client_actions.mark_as_done(store, client)
    return {"success": True, "updated": sorted(updates)}


@router.post("/{client_id}/undo")
async def undo_done(client_id: str, store: ScopedStore = Depends(get_store)):
    await get_client_or_404(store, client_id)
    await client_actions.undo_complete(store, client_id)
    return {"success": True}


@router.post("/{client_id}/remove-from-day")
async def remove_from_day(client_id: str, store: ScopedStore = Depends(get_store)):
    await get_client_or_404(store, client_id)
    await client_actions.delete_from_day(store, client_id)
    return {"success": True}


@router.post("/{client_id}/star")
async def star(client_id: str, data: StarRequest, store: ScopedStore = Depends(get_store)):
    await get_client_or_404(store, client_id)
    value = await client_actions.toggle_star(store, client_id, data.current)
    return {"success": True, "isStarred": value}


@router.post("/{client_id}/alarm")
async def alarm(client_id: str, data: AlarmRequest, store: ScopedStore = Depends(get_store)):
    await get_client_or_404(store, client_id)
    await client_actions.save_alarm(store, client_id, data.time)
    return {"success": True}


@router.post("/{client_id}/position")
async def position(client_id: str, data: PositionRequest, store: ScopedStore = Depends(get_store)):
    """Déplace le client à la position N (1-based) et renumérote le jour"""
    check_day(data.day)
    clients = await store.snapshot("clients")
    order = await change_position(store, clients, client_id, data.position, data.day)
    return {"success": order is not None, "order": order}
