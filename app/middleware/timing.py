import time
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp
import logging

logger = logging.getLogger(__name__)


class TimingMiddleware(BaseHTTPMiddleware):
    """
    Middleware que mide el tiempo de respuesta de cada solicitud y lo expone
    en la cabecera X-Process-Time. Las solicitudes lentas se registran como
    warning.
    """

    def __init__(self, app: ASGIApp, slow_request_ms: float = 1000.0):
        super().__init__(app)
        self.slow_request_ms = slow_request_ms

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start_time) * 1000

        response.headers["X-Process-Time"] = f"{elapsed_ms:.2f}ms"
        if elapsed_ms > self.slow_request_ms:
            logger.warning(f"Solicitud lenta: {request.method} {request.url.path} {elapsed_ms:.0f}ms")
        else:
            logger.debug(f"{request.method} {request.url.path} {elapsed_ms:.2f}ms")
        return response
