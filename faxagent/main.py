import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from .api import status
from .dependencies import get_fax_drop_service, get_settings
from .logging_config import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup - ugyldig konfiguration stopper opstarten her
    settings = get_settings()
    setup_logging(settings)

    config_info = settings.config_file_info
    logging.info(f"Configuration loaded from: {config_info['active_config_file']}")
    logging.info(f"Running on hostname: {config_info['hostname']}")
    if len(config_info["all_available_configs"]) > 1:
        logging.info(
            f"Available config files: {', '.join(config_info['all_available_configs'])}"
        )

    logging.info("Fax Drop Agent starting up...")
    logging.info(f"Drop directory: {settings.drop_directory}")
    logging.info(f"Cache directory: {settings.cache_directory}")

    fax_drop_service = get_fax_drop_service()
    await fax_drop_service.start()

    yield

    # Shutdown
    logging.info("Fax Drop Agent shutting down...")
    await fax_drop_service.stop()
    logging.info("Alle scans stoppet")


app = FastAPI(
    title="Fax Drop Agent",
    description="Rydder op i RightFax drop mappen og error cache",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(status.router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "Fax Drop Agent er kørende"}


@app.get("/health")
async def health():
    """Detaljeret health check."""
    service = get_fax_drop_service()
    return {
        "status": "healthy" if service.is_running else "stopped",
        "service": "fax-drop-agent",
    }


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "faxagent.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        log_level="info",
    )


if __name__ == "__main__":
    run()
