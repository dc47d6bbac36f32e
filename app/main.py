import os
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

load_dotenv()

from loguru import logger  # noqa: E402

from app.db.db import init_db  # noqa: E402
from app.errors import LostFoundError  # noqa: E402
from app.routers import admin, items, notifications, organizations, profile, verifications  # noqa: E402
from app.services import inbox, profile_stats  # noqa: E402
from app.utils import events  # noqa: E402
from app.utils.logger import setup_logging  # noqa: E402


def register_listeners(bus: events.EventBus):
    profile_stats.register(bus)
    inbox.register(bus)


@asynccontextmanager
async def lifespan(application: FastAPI):
    setup_logging()
    init_db()
    register_listeners(events.bus)
    logger.info("Lost & Found API started")
    yield


app = FastAPI(title="Lost & Found API", lifespan=lifespan)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "http://localhost:3000").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LostFoundError)
async def lost_found_error_handler(request: Request, exc: LostFoundError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.detail}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}")

    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


# Register routers
app.include_router(items.router, prefix="/items", tags=["Items"])
app.include_router(verifications.router, prefix="/verifications", tags=["Verifications"])
app.include_router(organizations.router, prefix="/organizations", tags=["Organizations"])
app.include_router(admin.router, prefix="/admin", tags=["Admin"])
app.include_router(profile.router, prefix="/profile", tags=["Profile"])
app.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])


@app.get("/")
def root():
    return {"status": "ok"}
