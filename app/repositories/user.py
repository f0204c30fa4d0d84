from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.models.user import User, UserRole
from app.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):

    def get_by_email(self, db: Session, *, email: str) -> Optional[User]:
        """
        Busca por email sin distinguir mayúsculas e incluyendo desactivados,
        para poder informar de cuentas deshabilitadas.
        """
        normalized = (email or "").strip().lower()
        return db.query(User).filter(func.lower(User.email) == normalized).first()

    def email_exists(self, db: Session, *, email: str) -> bool:
        return self.get_by_email(db, email=email) is not None

    def get_by_role(self, db: Session, *, role: UserRole) -> List[User]:
        return self.query(db).filter(User.role == role).order_by(User.id).all()

    def count_by_role(self, db: Session, *, role: UserRole) -> int:
        return self.query(db).filter(User.role == role).count()

    def search(self, db: Session, *, term: str) -> List[User]:
        pattern = f"%{term.strip().lower()}%"
        return (
            self.query(db)
            .filter(or_(
                func.lower(User.first_name).like(pattern),
                func.lower(User.last_name).like(pattern),
                func.lower(User.email).like(pattern),
            ))
            .order_by(User.id)
            .all()
        )


user_repository = UserRepository(User)
