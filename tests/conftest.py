import os
import tempfile

# La configuración se lee al importar la app: fijarla antes
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-for-survey-api"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_DIR"] = os.path.join(tempfile.gettempdir(), "survey-api-test-logs")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.security import get_token_provider, hash_password
from app.db.base import Base
from app.db.session import get_db, enable_sqlite_foreign_keys
from app.models.user import User, UserRole
from app.schemas.survey import SurveyCreate, QuestionInput
from app.services.survey import survey_service
from main import app


# Usar una base de datos en memoria para pruebas
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
event.listen(engine, "connect", enable_sqlite_foreign_keys)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TEST_PASSWORD = "secret123"


@pytest.fixture(scope="function")
def db():
    """
    Sesión sobre un esquema recién creado.

    Los servicios hacen commit y rollback por su cuenta, así que cada test
    recrea las tablas en lugar de envolverse en una transacción externa.
    """
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """
    Crea un cliente de prueba usando la sesión de base de datos de prueba.
    """
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def create_user(db, email, role=UserRole.USER, password=TEST_PASSWORD, first_name="Test", last_name="User"):
    user = User(
        first_name=first_name,
        last_name=last_name,
        email=email,
        password_hash=hash_password(password, rounds=4),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_survey(db, creator, title="Customer Satisfaction", questions=None, **kwargs):
    if questions is None:
        questions = [
            ("Favourite colour?", ["Red", "Green", "Blue"]),
            ("Preferred size?", ["Small", "Large"]),
        ]
    survey_in = SurveyCreate(
        title=title,
        questions=[QuestionInput(question=text, options=options) for text, options in questions],
        **kwargs
    )
    return survey_service.create_survey(db, survey_in, creator)


def auth_header(user):
    return {"Authorization": f"Bearer {get_token_provider().create_token(user)}"}


@pytest.fixture(scope="function")
def user(db):
    return create_user(db, "user@test.com", first_name="Ana", last_name="García")


@pytest.fixture(scope="function")
def other_user(db):
    return create_user(db, "other@test.com", first_name="Luis", last_name="Pérez")


@pytest.fixture(scope="function")
def admin_user(db):
    return create_user(db, "admin@test.com", role=UserRole.ADMIN, first_name="Admin", last_name="Test")


@pytest.fixture(scope="function")
def user_headers(user):
    return auth_header(user)


@pytest.fixture(scope="function")
def other_headers(other_user):
    return auth_header(other_user)


@pytest.fixture(scope="function")
def admin_headers(admin_user):
    return auth_header(admin_user)


@pytest.fixture(scope="function")
def survey(db, user):
    """Encuesta ACTIVE de dos preguntas creada por ``user``."""
    return create_survey(db, user)
