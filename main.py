import os
import logging
import importlib
from pathlib import Path
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from config.database import engine, Base, SessionLocal
from config.logging_config import configure_logging
from config.settings import settings
from services.lifecycle_scheduler import LifecycleScheduler
from services.rotation_service import ProofRotationService, RotationState
from services.scheduler import build_scheduler

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

API_DIR = Path(__file__).parent / "api"


def import_models():
    """Register every *_model.py on Base.metadata before create_all."""
    for item in API_DIR.rglob("*_model.py"):
        rel = item.relative_to(API_DIR.parent).with_suffix("")
        importlib.import_module(".".join(rel.parts))


import_models()
Base.metadata.create_all(bind=engine)

rotation_state = RotationState(settings.ROTATION_INTERVAL_SECONDS)


@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler = None
    if settings.SCHEDULER_ENABLED:
        lifecycle = LifecycleScheduler(SessionLocal)
        rotation = ProofRotationService(SessionLocal, app.state.rotation_state)
        scheduler = build_scheduler(lifecycle, rotation, settings.LIFECYCLE_TICK_SECONDS)
        scheduler.start()
        logger.info(
            f"⏰ Background ticks started (lifecycle every {settings.LIFECYCLE_TICK_SECONDS}s, "
            f"rotation every {settings.ROTATION_INTERVAL_SECONDS}s)"
        )
    yield
    if scheduler is not None:
        scheduler.shutdown(wait=False)
        logger.info("⏹️ Background ticks stopped")


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
app.state.rotation_state = rotation_state

# CORS: use our parsed list
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["Authorization", "Content-Type"],
)


#load all routes
def load_routes(directory: Path):
    routers = []
    for item in sorted(directory.rglob("*_routes.py")):
        rel = item.relative_to(directory.parent).with_suffix("")
        module = importlib.import_module(".".join(rel.parts))
        if hasattr(module, "router"):
            routers.append(module.router)
    return routers


for router in load_routes(API_DIR):
    app.include_router(router, prefix="/api")


@app.get("/health")
def health_check():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", settings.PORT or 8000))
    uvicorn.run("main:app", host="0.0.0.0", port=port, reload=settings.DEBUG)
