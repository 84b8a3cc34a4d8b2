"""
Factory Cost Engine API
FastAPI front for the cost allocation engine: labor, indirect overhead and
cost-per-unit figures computed from production reports and cost-center
configuration supplied by the caller.
"""
import logging
import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import API_TITLE, API_VERSION, CORS_ORIGINS, LOG_FORMAT, LOG_LEVEL
from app.api.cost_routes import router as cost_router
from app.services.logging_config import setup_logging
from app.services.middleware import RequestTimingMiddleware

setup_logging(level=LOG_LEVEL, json_output=LOG_FORMAT != "text")
logger = logging.getLogger("costing-api")

# Record process start time for uptime calculation
_PROCESS_START = time.monotonic()


def create_app() -> FastAPI:
    app = FastAPI(title=API_TITLE, version=API_VERSION)

    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(cost_router)

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "version": API_VERSION,
            "uptime_s": round(time.monotonic() - _PROCESS_START, 1),
        }

    logger.info(f"{API_TITLE} v{API_VERSION} ready")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
