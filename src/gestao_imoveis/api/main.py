"""FastAPI application for lease billing."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from gestao_imoveis.api.errors import register_exception_handlers
from gestao_imoveis.api.schemas import HealthResponse
from gestao_imoveis.api.v1.router import api_router as v1_router
from gestao_imoveis.core.config import get_settings
from gestao_imoveis.core.logging import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan - startup and shutdown."""
    logger.info("Starting application", environment=settings.environment)
    yield
    logger.info("Shutting down application")


# Middleware to strip trailing slashes (avoid 307 redirects)
class TrailingSlashMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        # Remove trailing slash from path (except for root "/")
        if request.url.path != "/" and request.url.path.endswith("/"):
            scope = request.scope
            scope["path"] = request.url.path.rstrip("/")
        return await call_next(request)


app = FastAPI(
    title="Gestão de Imóveis API",
    description="Contratos de locação, parcelas e cobranças",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    redirect_slashes=False,
)

register_exception_handlers(app)

app.add_middleware(TrailingSlashMiddleware)

# Configure CORS - MUST be added last to be processed first
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(v1_router, prefix="/api/v1")


@app.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="ok")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
