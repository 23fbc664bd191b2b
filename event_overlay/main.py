from fastapi import FastAPI
import logging

from event_overlay.api.routes import router
from event_overlay.settings import get_key_prefix, get_log_level, get_upcoming_limit, validate_settings

app = FastAPI(title="event-overlay", version="0.1.0")
app.include_router(router)
# Configure logging
logging.basicConfig(level=get_log_level())
logger = logging.getLogger(__name__)


@app.on_event("startup")
async def _startup() -> None:
    validate_settings()
    logger.info("event overlay starting (key_prefix=%s, upcoming_limit=%d)", get_key_prefix(), get_upcoming_limit())


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "event-overlay", "version": "0.1.0"}
