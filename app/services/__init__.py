"""
Services module for SurveyAPI

This module includes the service-related modules, which implement the business logic of the application.
Services orchestrate repositories and own the database transaction.
"""

# Inicializador del paquete services

# servicios disponibles
from app.services.user import user_service
from app.services.survey import survey_service
from app.services.response import response_service
from app.services.statistics import statistics_service
