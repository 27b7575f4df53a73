"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Water Route - Routes Deudas / Transferencias / Carga diaria                 ║
║                                                                              ║
║  Les écritures passent par flag_reconciler (drapeaux du client)              ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query

from models import DebtCreate, DebtUpdate, TransferCreate, DailyLoad
from routes.deps import get_store, get_client_or_404, check_day
from services.store import ScopedStore
from services import flag_reconciler
from services.daily_loads import load_for_day, save_daily_load

router = APIRouter(tags=["Ledger"])


def _find(records: list, record_id: str, label: str) -> dict:
    record = next((r for r in records if r.get("id") == record_id), None)
    if not record:
        raise HTTPException(status_code=404, detail=f"{label} no encontrada")
    return record


# ==================== DEUDAS ====================

@router.get("/debts")
async def list_debts(
    client_id: Optional[str] = Query(None, alias="clientId"),
    store: ScopedStore = Depends(get_store),
):
    debts = flag_reconciler.newest_first(await store.snapshot("debts"))
    if client_id:
        debts = flag_reconciler.client_debts(debts, client_id)
        return {
            "debts": debts,
            "count": len(debts),
            "total": flag_reconciler.client_debt_total(debts, client_id),
        }
    return {"debts": debts, "count": len(debts)}


@router.post("/debts")
async def create_debt(data: DebtCreate, store: ScopedStore = Depends(get_store)):
    """Montant <= 0: ignoré (success=False), pas une erreur"""
    client = await get_client_or_404(store, data.client_id)
    debt_id = await flag_reconciler.add_debt(store, client, data.amount)
    return {"success": debt_id is not None, "id": debt_id}


@router.put("/debts/{debt_id}")
async def edit_debt(debt_id: str, data: DebtUpdate, store: ScopedStore = Depends(get_store)):
    if not await store.get("debts", debt_id):
        raise HTTPException(status_code=404, detail="Deuda no encontrada")
    edited = await flag_reconciler.edit_debt_amount(store, debt_id, data.amount)
    return {"success": edited}


@router.post("/debts/{debt_id}/paid")
async def pay_debt(debt_id: str, store: ScopedStore = Depends(get_store)):
    debts = await store.snapshot("debts")
    debt = _find(debts, debt_id, "Deuda")
    cleared = await flag_reconciler.mark_debt_paid(store, debts, debt)
    return {"success": True, "flagCleared": cleared}


# ==================== TRANSFERENCIAS ====================

@router.get("/transfers")
async def list_transfers(store: ScopedStore = Depends(get_store)):
    transfers = flag_reconciler.newest_first(await store.snapshot("transfers"))
    return {"transfers": transfers, "count": len(transfers)}


@router.post("/transfers")
async def create_transfer(data: TransferCreate, store: ScopedStore = Depends(get_store)):
    """Au plus une transferencia en attente par client"""
    client = await get_client_or_404(store, data.client_id)
    transfers = await store.snapshot("transfers")
    created = await flag_reconciler.add_transfer(store, transfers, client)
    return {"success": created}


@router.post("/transfers/{transfer_id}/reviewed")
async def review_transfer(transfer_id: str, store: ScopedStore = Depends(get_store)):
    transfers = await store.snapshot("transfers")
    transfer = _find(transfers, transfer_id, "Transferencia")
    cleared = await flag_reconciler.mark_transfer_reviewed(store, transfers, transfer)
    return {"success": True, "flagCleared": cleared}


# ==================== CARGA DIARIA ====================

@router.get("/daily-loads/{day}")
async def get_daily_load(day: str, store: ScopedStore = Depends(get_store)):
    check_day(day)
    load = await load_for_day(store, store.scope.user_id, day)
    return {"day": day, "load": load}


@router.put("/daily-loads/{day}")
async def put_daily_load(day: str, data: DailyLoad, store: ScopedStore = Depends(get_store)):
    check_day(day)
    load = await save_daily_load(store, store.scope.user_id, day, data)
    return {"success": True, "day": day, "load": load}
