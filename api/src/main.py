import logging
import sys

import uvicorn

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from api.src.config import get_settings
from api.src.routes import health_router, pipelines_router
from api.src.services.engine import get_pipeline_executor
from controller.src.k8s.client import init_k8s_client, ensure_namespace

settings = get_settings()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting laneci API")
    if init_k8s_client():
        try:
            ensure_namespace()
        except Exception as e:
            logger.error(f"Failed to ensure namespace: {e}")
    else:
        logger.error("Kubernetes client unavailable, pipeline steps will fail")
    yield
    # Shutdown
    executor = app.dependency_overrides.get(get_pipeline_executor, get_pipeline_executor)()
    await executor.shutdown()
    logger.info("Shutting down laneci API")

app = FastAPI(
    title="laneci",
    description="Container pipeline runner",
    version="0.1.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health_router)
app.include_router(pipelines_router, prefix="/api")

@app.get("/")
async def root():
    return {
        "name": "laneci",
        "version": "0.1.0",
        "docs": "/docs"
    }

def run():
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)

if __name__ == "__main__":
    run()
