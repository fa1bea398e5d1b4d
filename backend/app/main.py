import logging

from fastapi import FastAPI
from redis.exceptions import RedisError

from .config import settings
from .redis_client import redis_client
from .routers import bookings, clients, cron, professionals, services, slots
from .routers import settings as settings_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Barbershop Booking API")

app.include_router(slots.router)
app.include_router(bookings.router)
app.include_router(clients.router)
app.include_router(professionals.router)
app.include_router(services.router)
app.include_router(settings_router.router)
app.include_router(cron.router)


@app.get("/health")
def health():
    try:
        redis_ok = bool(redis_client.ping())
    except RedisError as e:
        logger.warning(f"Health check: redis unavailable ({e})")
        redis_ok = False
    return {"status": "ok", "redis": redis_ok}
