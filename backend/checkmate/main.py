import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from checkmate.api.goals import router as goals_router
from checkmate.api.checkins import router as checkins_router
from checkmate.api.profiles import router as profiles_router
from checkmate.api.sweep import router as sweep_router
from checkmate.core.errors import StorageUnavailable
from checkmate.db import Base, engine
from checkmate.models.goal import Goal  # noqa: F401  (import ensures table is registered)
from checkmate.models.checkin import GoalCheckin  # noqa: F401
from checkmate.models.miss_marker import MissMarker  # noqa: F401
from checkmate.models.profile import Profile  # noqa: F401
from checkmate.core.config import settings


logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI()

# Allow CORS for local frontend
origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Create DB tables (goals, check-ins, markers, profiles) on startup
Base.metadata.create_all(bind=engine)

app.include_router(goals_router)
app.include_router(checkins_router)
app.include_router(profiles_router)
app.include_router(sweep_router)


@app.exception_handler(StorageUnavailable)
def storage_unavailable_handler(request: Request, exc: StorageUnavailable):
    logger.error("Storage unavailable on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Storage unavailable"})


@app.get("/")
def root():
    return {"message": "Checkmate backend is running"}
