# src/app/middleware.py
from fastapi import FastAPI, Request
import time
import logging

logger = logging.getLogger(__name__)


def register_middleware(app: FastAPI):

    @app.middleware("http")
    async def log_request_time(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration = (time.perf_counter() - start) * 1000

        line = f"{request.method} {request.url.path} | {response.status_code} | {duration:.2f} ms"
        # Operators only: writes served off the primary are lost on restart.
        mode = getattr(request.app.state.store, "mode", "memory")
        if mode == "primary":
            logger.info(line)
        else:
            logger.warning(f"{line} | store={mode}")
        return response

    return app
