"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Water Route - Scope (propriétaire des données)                              ║
║                                                                              ║
║  RÈGLE FONDAMENTALE:                                                         ║
║  - Un utilisateur dans un groupe lit/écrit par groupId                       ║
║  - Sinon tout est filtré par userId                                          ║
║  - Toute requête DOIT passer par un Scope                                    ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, field_validator


class Scope(BaseModel):
    """Propriétaire des clients, deudas, transferencias et cargas diarias"""
    model_config = ConfigDict(frozen=True)

    user_id: str
    group_id: Optional[str] = None

    @field_validator('user_id')
    @classmethod
    def validate_user_id(cls, v):
        if not v or not v.strip():
            raise ValueError("userId obligatorio")
        return v.strip()

    @field_validator('group_id')
    @classmethod
    def blank_group_is_none(cls, v):
        if v is None:
            return None
        return v.strip() or None

    @property
    def field(self) -> str:
        return "groupId" if self.group_id else "userId"

    @property
    def value(self) -> str:
        return self.group_id or self.user_id

    def as_filter(self) -> dict:
        """Filtre MongoDB qui isole ce scope"""
        return {self.field: self.value}

    def stamp(self) -> dict:
        """Champs posés sur chaque nouveau document (userId toujours, groupId si présent)"""
        fields = {"userId": self.user_id}
        if self.group_id:
            fields["groupId"] = self.group_id
        return fields
