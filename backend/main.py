from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pathlib import Path
import os
import logging
from dotenv import load_dotenv

load_dotenv(dotenv_path=Path(__file__).parent / ".env", override=False)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

from fieldops.errors import TimeTrackerError
from fieldops.routers.auth import router as auth_router
from fieldops.routers.time_tracker import router as time_tracker_router
from fieldops.routers.work_orders import router as work_orders_router
from fieldops.routers.departments import router as departments_router
from fieldops.routers.settings import router as settings_router
from fieldops.routers.uploads import router as uploads_router
from fieldops.routers.geocode import router as geocode_router

app = FastAPI(title="FieldOps Time Tracker API")

app.include_router(auth_router)
app.include_router(time_tracker_router)
app.include_router(work_orders_router)
app.include_router(departments_router)
app.include_router(settings_router)
app.include_router(uploads_router)
app.include_router(geocode_router)


CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in CORS_ORIGINS],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TimeTrackerError)
async def time_tracker_error_handler(request: Request, exc: TimeTrackerError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s -> %d: %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, **exc.extra})


@app.get("/health")
def health():
    return {"ok": True}
