import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.api.deps import get_settings
from src.rules.loader import configure_logging, load_rules

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Load rules and migrate on startup (fail-fast)
    try:
        rules = load_rules(settings.rules_path)
    except (FileNotFoundError, ValueError) as e:
        print(f"CRITICAL: Rules load failed: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(rules.logging)
    logger.info("Rules loaded from %s", settings.rules_path)

    settings.data_dir.mkdir(parents=True, exist_ok=True)
    SQLiteMigrator(settings.db_path(rules), rules.storage.migrations_dir).run_migrations()

    yield


app = FastAPI(
    title="Redirect Source API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
from src.api.routes import admin_redirects, content  # noqa: E402

app.include_router(content.router, prefix="/api/content", tags=["Content"])
app.include_router(admin_redirects.router, prefix="/api/admin", tags=["Admin Redirects"])


@app.get("/health")
def health_check() -> dict[str, str]:
    return {"status": "ok"}
