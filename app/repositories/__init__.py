# Inicializador del paquete repositories
from app.repositories.base import BaseRepository
from app.repositories.user import user_repository
from app.repositories.survey import survey_repository
from app.repositories.question import question_repository
from app.repositories.response import response_repository
