from sqlalchemy import Column, String, Enum
from sqlalchemy.orm import relationship
import enum

from app.db.base_class import Base
from app.models.base import AuditMixin


class UserRole(str, enum.Enum):
    USER = "USER"    # Usuario regular: crea y responde encuestas
    ADMIN = "ADMIN"  # Administrador: mantenimiento y estadísticas globales

    @property
    def authority(self) -> str:
        return f"ROLE_{self.value}"


class User(AuditMixin, Base):
    __tablename__ = "users"

    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(100), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(UserRole), default=UserRole.USER, nullable=False)

    # Relaciones
    surveys = relationship("Survey", back_populates="creator")
    responses = relationship("Response", back_populates="user")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self) -> str:
        return f"<User {self.id} {self.email} {self.role}>"
