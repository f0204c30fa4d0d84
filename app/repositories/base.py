from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy.orm import Session, Query

from app.db.base_class import Base
from app.models.base import RecordState

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    def __init__(self, model: Type[ModelType]):
        """
        Repository con operaciones por defecto y filtro de visibilidad.

        Todas las consultas excluyen filas en estado DELETED salvo que se
        pida include_deleted=True. Los métodos no hacen commit: la
        transacción pertenece al servicio que los orquesta.
        """
        self.model = model

    def query(self, db: Session, *, include_deleted: bool = False) -> Query:
        """
        Consulta base con el filtro de visibilidad aplicado.

        Args:
            db: Sesión de base de datos
            include_deleted: Incluir filas borradas lógicamente

        Returns:
            Query sobre el modelo
        """
        query = db.query(self.model)
        if not include_deleted:
            query = query.filter(self.model.record_state == RecordState.ACTIVE)
        return query

    def get(self, db: Session, id: Any, *, include_deleted: bool = False) -> Optional[ModelType]:
        """
        Obtener un objeto por su ID.

        Args:
            db: Sesión de base de datos
            id: ID del objeto a obtener
            include_deleted: Devolverlo aunque esté borrado lógicamente

        Returns:
            El objeto solicitado o None si no existe o no es visible
        """
        return self.query(db, include_deleted=include_deleted).filter(self.model.id == id).first()

    def get_multi(
        self, db: Session, *, skip: int = 0, limit: Optional[int] = None,
        filters: Optional[Dict[str, Any]] = None, include_deleted: bool = False
    ) -> List[ModelType]:
        """
        Obtener múltiples registros con filtros opcionales.

        Args:
            db: Sesión de base de datos
            skip: Número de registros a omitir (paginación)
            limit: Número máximo de registros a devolver (None = todos)
            filters: Diccionario de filtros adicionales {campo: valor}
            include_deleted: Incluir filas borradas lógicamente

        Returns:
            Lista de objetos que coinciden con los criterios
        """
        query = self.query(db, include_deleted=include_deleted)
        if filters:
            for field, value in filters.items():
                if hasattr(self.model, field):
                    query = query.filter(getattr(self.model, field) == value)
        query = query.order_by(self.model.id).offset(skip)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def count(self, db: Session, *, include_deleted: bool = False) -> int:
        return self.query(db, include_deleted=include_deleted).count()

    def add(self, db: Session, db_obj: ModelType) -> ModelType:
        """Añade el objeto a la sesión y hace flush para obtener su ID."""
        db.add(db_obj)
        db.flush()
        return db_obj

    def soft_delete(self, db: Session, db_obj: ModelType) -> ModelType:
        db_obj.soft_delete()
        db.add(db_obj)
        db.flush()
        return db_obj

    def hard_delete(self, db: Session, db_obj: ModelType) -> None:
        db.delete(db_obj)
        db.flush()

    def exists(self, db: Session, id: int, *, include_deleted: bool = False) -> bool:
        """
        Verificar si un objeto existe y es visible.

        Args:
            db: Sesión de base de datos
            id: ID del objeto a verificar
            include_deleted: Considerar también filas borradas lógicamente

        Returns:
            True si el objeto existe, False en caso contrario
        """
        query = self.query(db, include_deleted=include_deleted).filter(self.model.id == id)
        return db.query(query.exists()).scalar()
