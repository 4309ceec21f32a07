"""
FastAPI backend for the Field Audit Analytics dashboard.

Task records are posted by the dashboard (which owns the tracker data) along
with the active filters; every endpoint runs one analytics pass and returns
JSON. Supports CORS for local development.
"""

import hashlib
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

# Ensure we import from the local src directory, not elsewhere
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from src.core.aggregator import Aggregator
from src.core.store import AnalyticsLimits, FilterSet, NPSTargets, WeekConfig

logger = logging.getLogger(__name__)

# Load analytics settings from config
config_path = Path(__file__).parent.parent / "config.json"
try:
    with open(config_path, "r") as f:
        config = json.load(f)
    week_config = WeekConfig.from_dict(config.get("week"))
    nps_targets = NPSTargets.from_dict(config.get("npsTargets"))
    analytics_limits = AnalyticsLimits.from_dict(config.get("limits"))
    logger.info(f"Loaded analytics settings from {config_path}")
except Exception as e:
    logger.warning(f"Could not load config.json: {e}, using defaults")
    config = {}
    week_config = WeekConfig()
    nps_targets = NPSTargets()
    analytics_limits = AnalyticsLimits()

# Initialize FastAPI app
app = FastAPI(
    title="Field Audit Analytics API",
    description="Analytics engine for field-audit tasks: filters, trends, rankings, KPIs",
    version="1.0.0",
)

# Configure CORS - allow all localhost origins in development
app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r"http://(localhost|127\.0\.0\.1):\d+",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

aggregator = Aggregator(week_config, nps_targets, analytics_limits)

# Simple in-memory cache for snapshots, keyed by request hash
snapshot_cache: Dict[str, tuple[Dict[str, Any], datetime]] = {}
CACHE_TTL_SECONDS = 60
CACHE_MAX_ENTRIES = 100


class AnalyticsRequest(BaseModel):
    """Task records plus the view to compute over them."""

    model_config = ConfigDict(populate_by_name=True)

    tasks: List[Dict[str, Any]] = Field(default_factory=list)
    filters: Optional[Dict[str, Any]] = None
    week_config: Optional[Dict[str, Any]] = Field(None, alias="weekConfig")
    samples: Optional[List[Dict[str, Any]]] = None
    trend_field: str = Field("reason", alias="trendField")
    use_cache: bool = Field(True, alias="useCache")


class DrillDownRequest(AnalyticsRequest):
    """Constraints of a clicked chart cell."""

    constraints: Dict[str, Any] = Field(default_factory=dict)
    title: str = ""


def _aggregator_for(request: AnalyticsRequest) -> Aggregator:
    """Shared aggregator, or a per-request one when the week rule is overridden."""
    if not request.week_config:
        return aggregator
    return Aggregator(WeekConfig.from_dict(request.week_config), nps_targets, analytics_limits)


def _cache_key(request: AnalyticsRequest) -> str:
    payload = request.model_dump(by_alias=True, exclude={"use_cache"})
    encoded = json.dumps(payload, sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def _cache_get(cache_key: str) -> Optional[Dict[str, Any]]:
    entry = snapshot_cache.get(cache_key)
    if entry is None:
        return None
    cached_snapshot, cache_time = entry
    age = (datetime.now(timezone.utc) - cache_time).total_seconds()
    if age >= CACHE_TTL_SECONDS:
        return None
    logger.info(f"Returning cached snapshot (age: {age:.1f}s): {cache_key[:12]}")
    return cached_snapshot


def _cache_put(cache_key: str, snapshot_dict: Dict[str, Any]) -> None:
    snapshot_cache[cache_key] = (snapshot_dict, datetime.now(timezone.utc))

    # Clean up old cache entries (simple cleanup)
    if len(snapshot_cache) > CACHE_MAX_ENTRIES:
        # Remove oldest 50% of entries
        sorted_keys = sorted(snapshot_cache.keys(), key=lambda k: snapshot_cache[k][1])
        for key in sorted_keys[: len(sorted_keys) // 2]:
            del snapshot_cache[key]


@app.get("/")  # type: ignore[misc]
async def root() -> Dict[str, Any]:
    """
    Root endpoint with API information.

    Returns
    -------
    dict
        API information and status
    """
    return {
        "name": "Field Audit Analytics API",
        "version": "1.0.0",
        "status": "running",
        "endpoints": {
            "/api/snapshot": "Analytics snapshot of the filtered tasks",
            "/api/drilldown": "Tasks behind a chart cell",
            "/api/export": "Spreadsheet-shaped export sheets",
            "/api/weeks": "Weeks that have interview data",
            "/api/months": "Custom months that have interview data",
            "/health": "Health check",
        },
    }


@app.get("/health")  # type: ignore[misc]
async def health() -> Dict[str, str]:
    """
    Health check endpoint.

    Returns
    -------
    dict
        Health status
    """
    return {"status": "healthy"}


@app.post("/api/snapshot")  # type: ignore[misc]
async def create_snapshot(request: AnalyticsRequest) -> Dict[str, Any]:
    """
    Compute an analytics snapshot.

    Parameters
    ----------
    request : AnalyticsRequest
        Tasks, filters, optional week rule override and weekly samples

    Returns
    -------
    dict
        Snapshot with:
        - kpis: NPS, segment rates, compliance and alarm flags
        - top_values: Top-K ranking per categorical field
        - reason_breakdown / owner_breakdown: Performance tables
        - reason_trend / segment_trend: Weekly series
        - owner_by_reason / owner_by_root_cause: Contribution matrices
        - hierarchy, team_violations
    """
    try:
        cache_key = _cache_key(request)
        if request.use_cache:
            cached = _cache_get(cache_key)
            if cached is not None:
                return cached

        logger.info(f"Creating new snapshot for {len(request.tasks)} tasks")
        snapshot = _aggregator_for(request).create_snapshot(
            request.tasks,
            FilterSet.from_dict(request.filters),
            samples=request.samples,
            trend_field=request.trend_field,
        )
        snapshot_dict = snapshot.to_dict()
        _cache_put(cache_key, snapshot_dict)
        return snapshot_dict

    except ValueError as e:
        logger.warning(f"Rejected snapshot request: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating snapshot: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error creating snapshot: {str(e)}")


@app.post("/api/drilldown")  # type: ignore[misc]
async def drill_down(request: DrillDownRequest) -> Dict[str, Any]:
    """
    Resolve a chart cell to its tasks.

    Returns
    -------
    dict
        title, count and the matching tasks
    """
    try:
        tasks = _aggregator_for(request).drill_down(
            request.tasks,
            request.constraints,
            FilterSet.from_dict(request.filters),
        )
        return {
            "title": request.title,
            "constraints": request.constraints,
            "count": len(tasks),
            "tasks": [task.to_dict() for task in tasks],
        }
    except ValueError as e:
        logger.warning(f"Rejected drill-down request: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error resolving drill-down: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error resolving drill-down: {str(e)}")


@app.post("/api/export")  # type: ignore[misc]
async def export_sheets(request: AnalyticsRequest) -> Dict[str, Any]:
    """
    Build export sheets of the filtered view.

    Returns
    -------
    dict
        sheet_names in workbook order and sheets (name -> rows)
    """
    try:
        sheets = _aggregator_for(request).export(
            request.tasks,
            FilterSet.from_dict(request.filters),
            samples=request.samples,
            trend_field=request.trend_field,
        )
        return {"sheet_names": list(sheets.keys()), "sheets": sheets}
    except ValueError as e:
        logger.warning(f"Rejected export request: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error building export: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error building export: {str(e)}")


@app.post("/api/weeks")  # type: ignore[misc]
async def available_weeks(request: AnalyticsRequest) -> Dict[str, Any]:
    """
    List weeks that have interview data, newest first.

    Returns
    -------
    dict
        weeks: year, week, key, label, start, end
    """
    try:
        return {"weeks": _aggregator_for(request).available_weeks(request.tasks)}
    except ValueError as e:
        logger.warning(f"Rejected weeks request: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error listing weeks: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error listing weeks: {str(e)}")


@app.post("/api/months")  # type: ignore[misc]
async def available_months(request: AnalyticsRequest) -> Dict[str, Any]:
    """
    List custom 5-4-4 months that have interview data, newest first.

    Returns
    -------
    dict
        months: year, month, key, label, start, end, weeks
    """
    try:
        return {"months": _aggregator_for(request).available_months(request.tasks)}
    except ValueError as e:
        logger.warning(f"Rejected months request: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error listing months: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error listing months: {str(e)}")


if __name__ == "__main__":
    import uvicorn

    port = config.get("backend", {}).get("port", 4301)
    logger.info(f"Starting Field Audit Analytics API on http://0.0.0.0:{port}")
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")  # nosec B104
