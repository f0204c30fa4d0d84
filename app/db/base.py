# Importar todos los modelos para que create_all los detecte
from app.db.base_class import Base  # noqa
from app.models.user import User  # noqa
from app.models.survey import Survey, Question, Option, Response  # noqa
