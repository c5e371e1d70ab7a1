import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.config import settings
from app.errors import RoomError
from app.expiry_worker import run_expiry_worker
from app.redis_client import close_pool, ping
from app.routes.admin_api import router as admin_router
from app.routes.participant_api import router as participant_router
from app.routes.public_api import router as public_router
from app.routes.views import router as views_router
from app.scheduler import rematch_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Timer expiry runs alongside the viewers' own polling
    stop_expiry = asyncio.Event()
    expiry_task = asyncio.create_task(run_expiry_worker(stop_expiry))
    yield
    stop_expiry.set()
    try:
        await asyncio.wait_for(expiry_task, timeout=settings.timer_poll_seconds + 5)
    except asyncio.TimeoutError:
        logger.warning("Timer expiry worker did not stop in time")
    await rematch_scheduler.shutdown()
    await close_pool()


app = FastAPI(title="Our Connection Map", lifespan=lifespan)


@app.exception_handler(RoomError)
async def room_error_handler(request: Request, exc: RoomError):
    return JSONResponse({"detail": exc.detail}, status_code=exc.status_code)


app.include_router(public_router)
app.include_router(admin_router)
app.include_router(participant_router)


@app.get("/api/health")
async def health_check():
    return {"status": "ok", "redis": await ping()}


app.include_router(views_router)
