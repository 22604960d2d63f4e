"""kinship-engine: relationship labels, tree layout and exclusivity checks for a family directory."""

from __future__ import annotations

import logging
import os
import time
from collections import Counter, deque
from contextlib import asynccontextmanager
from threading import Lock

import psutil
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from kinship.config import KinshipConfig
from kinship.family.routes import get_config
from kinship.family.routes import router as kinship_router

logger = logging.getLogger("kinship")

KINSHIP_PREFIX = kinship_router.prefix


# ---------------------------------------------------------------------------
# Request statistics
# ---------------------------------------------------------------------------

HISTORY_POINTS = 60


class RequestStats:
    """Sliding window of (time, endpoint, status) for kinship API calls.

    Service endpoints (/health, /metrics) are counted in the overall rate but
    not per endpoint.
    """

    def __init__(self, window: float = 60.0) -> None:
        self.window = window
        self._lock = Lock()
        self._events: deque[tuple[float, str | None, int]] = deque()
        self._history: deque[float] = deque(maxlen=HISTORY_POINTS)

    def record(self, path: str, status: int) -> None:
        endpoint = path[len(KINSHIP_PREFIX):] if path.startswith(KINSHIP_PREFIX) else None
        with self._lock:
            self._events.append((time.monotonic(), endpoint, status))

    def _recent(self) -> list[tuple[float, str | None, int]]:
        cutoff = time.monotonic() - self.window
        with self._lock:
            while self._events and self._events[0][0] < cutoff:
                self._events.popleft()
            return list(self._events)

    def rate(self) -> float:
        if not self.window:
            return 0.0
        return len(self._recent()) / self.window

    def rejected(self) -> int:
        """Kinship calls answered with a 4xx: exclusivity violations, cycles, bad input."""
        return sum(1 for _, endpoint, status in self._recent() if endpoint and 400 <= status < 500)

    def by_endpoint(self) -> dict[str, int]:
        return dict(Counter(endpoint for _, endpoint, _ in self._recent() if endpoint))

    def sample(self) -> list[float]:
        self._history.append(round(self.rate(), 2))
        return list(self._history)


request_stats = RequestStats(window=60.0)
_start_time: float = 0.0


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    global _start_time
    _start_time = time.time()
    logger.info("kinship-engine started with %s", get_config().to_dict())
    yield
    logger.info("kinship-engine stopped")


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

app = FastAPI(
    title="kinship-engine",
    version="0.1.0",
    description="Kinship graph engine: relationship labels, tree layout, relationship exclusivity",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_config().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def track_requests(request: Request, call_next):
    response = await call_next(request)
    request_stats.record(request.url.path, response.status_code)
    return response


app.include_router(kinship_router)


# ---------------------------------------------------------------------------
# Core routes
# ---------------------------------------------------------------------------

@app.get("/health")
async def health():
    """Health check. The engine has no backing store, so this reports config."""
    return {"status": "ok", "config": get_config().to_dict()}


@app.get("/metrics")
async def metrics():
    """Process and request stats for the server-monitor dashboard."""
    try:
        process = psutil.Process(os.getpid())
        mem = process.memory_info()
        uptime = time.time() - _start_time if _start_time else 0.0

        result: list[dict] = [
            {"key": "uptime", "label": "Uptime", "value": round(uptime), "unit": "seconds"},
            {
                "key": "rps",
                "label": "Requests / sec",
                "value": round(request_stats.rate(), 2),
                "unit": "req/s",
                "warn_above": 200,
                "sparkline_history": request_stats.sample(),
            },
            {
                "key": "rejected",
                "label": f"Rejected kinship calls ({request_stats.window:.0f}s)",
                "value": request_stats.rejected(),
                "unit": "requests",
            },
            {
                "key": "endpoints",
                "label": f"Kinship calls by endpoint ({request_stats.window:.0f}s)",
                "value": request_stats.by_endpoint(),
                "unit": "requests",
            },
            {
                "key": "memory_rss",
                "label": "Memory (RSS)",
                "value": round(mem.rss / 1_048_576, 1),
                "unit": "MB",
                "warn_above": 512,
            },
            {"key": "memory_vms", "label": "Memory (VMS)", "value": round(mem.vms / 1_048_576, 1), "unit": "MB"},
            {
                "key": "cpu_percent",
                "label": "CPU usage",
                "value": process.cpu_percent(interval=0),
                "unit": "%",
                "warn_above": 90,
            },
        ]
        return {"metrics": result}

    except psutil.Error as exc:
        logger.exception("Error reading process stats")
        return JSONResponse(status_code=500, content={"metrics": [], "error": f"Process error: {exc}"})


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------

def run() -> None:
    config = KinshipConfig()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("kinship.app:app", host=config.host, port=config.port, reload=False)


if __name__ == "__main__":
    run()
