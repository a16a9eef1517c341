from __future__ import annotations

from datetime import UTC, datetime
from dotenv import load_dotenv
import logging
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

from .routers.analysis import router as analysis_router
from .routers.chat import router as chat_router
from .routers.dashboard import router as dashboard_router
from .routers.diag import router as diag_router
from ..observability.metrics import metrics_middleware_factory

load_dotenv()  # Load environment variables from .env if present (GEMINI_API_KEY, OPENAI_API_KEY, etc.)

app = FastAPI(title="Smart Doc API", version="0.1.0")

logging.basicConfig(level=logging.INFO)

# Observability: request latency histogram
app.middleware("http")(metrics_middleware_factory())

_ROUTERS = (dashboard_router, chat_router, analysis_router, diag_router)

for _router in _ROUTERS:
    app.include_router(_router)

# Also expose the same routers under /api for the dashboard front-end
for _router in _ROUTERS:
    app.include_router(_router, prefix="/api")

# CORS (for the dashboard dev server on localhost:3000)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _health_payload() -> dict:
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        "components": {
            "api": "ok",
            "sessions": "in-memory",
        },
    }


@app.get("/")
def root():
    return {"name": "Smart Doc API", "version": "0.1.0"}


@app.get("/health")
def health():
    return _health_payload()


@app.get("/metrics")
def metrics() -> Response:
    # Expose Prometheus metrics
    data = generate_latest(REGISTRY)
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)


@app.get("/api/health")
def api_health():
    return _health_payload()
