"""
Water Route - Deudas, transferencias et carga diaria (corps de requête)
"""

from pydantic import BaseModel

from .client import CamelModel


class DebtCreate(CamelModel):
    client_id: str
    amount: float


class DebtUpdate(CamelModel):
    amount: float


class TransferCreate(CamelModel):
    client_id: str


class DailyLoad(BaseModel):
    """Carga del día: bidones principales, extras y nota de pedidos"""
    b20: str = ""
    b12: str = ""
    b6: str = ""
    soda: str = ""
    b20_extra: str = ""
    b12_extra: str = ""
    b6_extra: str = ""
    soda_extra: str = ""
    pedidos_note: str = ""
