from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.core.timezone_utils import utcnow


class CamelModel(BaseModel):
    """Schema base: atributos snake_case, JSON camelCase"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class TimestampedResponse(CamelModel):
    timestamp: datetime = Field(default_factory=utcnow)


class ErrorResponse(TimestampedResponse):
    """Cuerpo JSON de todos los errores"""
    success: bool = False
    error: str
    error_type: str
    message: str
    path: str = ""
