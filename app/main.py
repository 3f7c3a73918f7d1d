import logging
import re
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from database import init_db
from app.api import api_router
from app.core.config import get_settings
from app.core.errors import LoyaltyError
from app.domain.schemas import ErrorResponse

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    init_db()
    yield
    # Shutdown


logger = logging.getLogger(__name__)


class DynamicCORSMiddleware(BaseHTTPMiddleware):
    """CORS middleware that only allows the configured front-end origins in production."""

    def __init__(self, app, environment: str, origin_pattern: str):
        super().__init__(app)
        self.environment = environment
        self.origin_pattern = re.compile(origin_pattern)

    async def dispatch(self, request: Request, call_next):
        origin = request.headers.get("origin")

        # Handle preflight requests
        if request.method == "OPTIONS":
            response = Response(status_code=200)
        else:
            response = await call_next(request)

        if origin:
            if self.environment != "production" or self.origin_pattern.match(origin):
                response.headers["Access-Control-Allow-Origin"] = origin
                response.headers["Access-Control-Allow-Credentials"] = "true"
            else:
                logger.warning(f"CORS rejected - Origin '{origin}' does not match pattern")

        response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, DELETE, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization, X-Requested-With"

        return response


async def loyalty_error_handler(request: Request, exc: LoyaltyError) -> JSONResponse:
    """Every engine failure becomes an explicit error acknowledgment."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message} (cause: {exc.cause})")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(detail=exc.message, error=exc.code).model_dump(),
    )


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="Tarot Cafe Loyalty",
        description="Stamps, coupons, polls and notices for loyalty customers",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        DynamicCORSMiddleware,
        environment=settings.environment,
        origin_pattern=settings.cors_origin_pattern,
    )
    app.add_exception_handler(LoyaltyError, loyalty_error_handler)

    # Include all routes
    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
