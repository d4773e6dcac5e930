from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from vibeflow.core.config import load_config
from vibeflow.core.database import get_db_connection, init_database
from vibeflow.domain.auth import purge_expired_sessions


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_database()
    with get_db_connection() as conn:
        purge_expired_sessions(conn)
    load_config().audio_dir().mkdir(parents=True, exist_ok=True)
    logger.info("VibeFlow API ready")
    yield


app = FastAPI(title="VibeFlow Web API", version="1.0.0", lifespan=lifespan)

# CORS: ALLOWED_ORIGINS env var or [server] allowed_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=load_config().server.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
from web.backend.routers import auth, songs, vibe, youtube

app.include_router(auth.router, prefix="/api", tags=["auth"])
app.include_router(songs.router, prefix="/api", tags=["songs"])
app.include_router(youtube.router, prefix="/api", tags=["youtube"])
app.include_router(vibe.router, prefix="/api", tags=["vibe"])
app.include_router(songs.audio_router, tags=["audio"])


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
