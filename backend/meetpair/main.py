import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from meetpair.config import CORS_ORIGINS
from meetpair.database import engine, init_db
from meetpair.db_schema_patch import ensure_schema_columns
from meetpair.logging_config import setup_logging
from meetpair.routes import checkpoints, mats, meet_lock, meets, pairings

logger = logging.getLogger(__name__)

app = FastAPI(title="Meet Pairing API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(meets.router, prefix="/api", tags=["meets"])
app.include_router(meet_lock.router, prefix="/api", tags=["meet-lock"])
app.include_router(pairings.router, prefix="/api", tags=["pairings"])
app.include_router(mats.router, prefix="/api", tags=["mats"])
app.include_router(checkpoints.router, prefix="/api", tags=["checkpoints"])


@app.on_event("startup")
def on_startup():
    setup_logging()
    init_db()  # Use centralized init_db() which imports models and creates tables
    ensure_schema_columns(engine)

    route_count = sum(1 for r in app.routes if getattr(r, "path", None))
    logger.info("Meet Pairing API started with %d routes", route_count)


@app.get("/api/health")
def health_check():
    return {"app_name": "Meet Pairing API", "status": "healthy"}
