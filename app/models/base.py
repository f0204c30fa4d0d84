"""
Shared model columns

Audit timestamps and the row visibility state used by every entity.
"""

from enum import Enum

from sqlalchemy import Column, Integer, DateTime, Enum as SQLEnum
from app.core.timezone_utils import utcnow


class RecordState(str, Enum):
    """Visibilidad de una fila: las borradas lógicamente se excluyen de los listados"""
    ACTIVE = "ACTIVE"
    DELETED = "DELETED"


class AuditMixin:
    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, onupdate=utcnow)
    record_state = Column(
        SQLEnum(RecordState),
        default=RecordState.ACTIVE,
        server_default=RecordState.ACTIVE.value,
        nullable=False,
        index=True
    )

    @property
    def is_active(self) -> bool:
        # Una instancia recién creada aún no tiene el default aplicado
        return self.record_state in (None, RecordState.ACTIVE)

    def soft_delete(self) -> None:
        self.record_state = RecordState.DELETED

    def restore(self) -> None:
        self.record_state = RecordState.ACTIVE
