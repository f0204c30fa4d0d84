import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

# Importar la función de configuración de logging
from app.core.logging_config import setup_logging

# Llamar a la configuración de logging ANTES de importar/crear otros elementos
setup_logging()

from app.api.v1.api import api_router
from app.core.config import get_settings
from app.core.exceptions import SurveyAppError
from app.db.base import Base
from app.db.session import engine
from app.middleware.timing import TimingMiddleware
from app.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)

settings_instance = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Lifespan: Startup iniciado...")
    Base.metadata.create_all(bind=engine)
    logger.info("Lifespan: Tablas verificadas.")
    yield
    logger.info("Lifespan: Shutdown iniciado...")
    engine.dispose()


app = FastAPI(
    title=settings_instance.PROJECT_NAME,
    description=settings_instance.PROJECT_DESCRIPTION,
    version=settings_instance.VERSION,
    openapi_url=f"{settings_instance.API_V1_STR}/openapi.json",
    docs_url=f"{settings_instance.API_V1_STR}/docs",
    redoc_url=f"{settings_instance.API_V1_STR}/redoc",
    lifespan=lifespan,
)


def error_body(request: Request, error: str, error_type: str, message: str) -> dict:
    body = ErrorResponse(error=error, error_type=error_type, message=message, path=request.url.path)
    return body.model_dump(mode="json", by_alias=True)


@app.exception_handler(SurveyAppError)
async def survey_app_error_handler(request: Request, exc: SurveyAppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.error_type}")
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    error = {
        400: "Bad Request",
        401: "Unauthorized",
        403: "Forbidden",
        404: "Not Found",
        409: "Conflict",
    }.get(exc.status_code, "Internal Server Error")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, error, exc.error_type, exc.message),
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', []))}: {err.get('msg')}"
        for err in exc.errors()
    )
    return JSONResponse(
        status_code=400,
        content=error_body(request, "Bad Request", "VALIDATION_ERROR", details or "Invalid request"),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    # Prototipo interno: el mensaje se devuelve al cliente
    logger.error(f"Error no controlado en {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=error_body(request, "Internal Server Error", "INTERNAL_ERROR", str(exc)),
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"Middleware: Recibida petición: {request.method} {request.url.path}")
    # Nunca registrar el token completo
    auth_header = request.headers.get("authorization", "")
    if settings_instance.DEBUG_MODE and auth_header:
        if auth_header.startswith("Bearer "):
            token = auth_header[7:]
            logger.debug("Authorization: Bearer ****%s", token[-6:] if len(token) > 6 else "")
        else:
            logger.debug("Authorization: ***masked***")

    response = await call_next(request)

    logger.info(f"Middleware: Enviando respuesta: {response.status_code}")
    return response


app.add_middleware(TimingMiddleware)

# Configurar CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings_instance.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Incluir routers
app.include_router(api_router, prefix=settings_instance.API_V1_STR)


# Ruta raíz
@app.get("/")
def root():
    return {
        "message": "Bienvenido a la API de encuestas",
        "docs": f"{settings_instance.API_V1_STR}/docs",
    }


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings_instance.DEBUG_MODE)
