from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel

from ..core.event_bus import Events
from .runtime import SwarmRuntime, build_runtime


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class SourceToggleRequest(BaseModel):
    enabled: bool


def create_app(runtime: Optional[SwarmRuntime] = None) -> FastAPI:
    runtime = runtime or build_runtime()

    app = FastAPI(title="swarmsearch API", version="0.1.0")

    @app.get("/health")
    def health() -> Dict:
        return {"ok": True, "time": _utc_now_iso()}

    @app.get("/api/sources")
    def sources() -> Dict:
        return {"sources": runtime.coordinator.source_status()}

    @app.post("/api/sources/{source_id}/toggle")
    def toggle_source(source_id: str, body: SourceToggleRequest) -> Dict:
        if not runtime.registry.enable_source(source_id, body.enabled):
            raise HTTPException(status_code=404, detail="Source not found.")
        runtime.settings.set_source_enabled(source_id, body.enabled)
        runtime.event_bus.emit(Events.SETTINGS_CHANGED, {"enabled_sources": {source_id: body.enabled}})
        return {"ok": True, "sourceId": source_id, "enabled": body.enabled}

    @app.get("/api/search")
    def search(
        q: str = Query(""),
        title: str = Query(""),
        artist: str = Query(""),
        year: str = Query(""),
        page: int = Query(1),
    ) -> Dict:
        try:
            report = runtime.coordinator.search_report(
                q or None,
                title=title or None,
                artist=artist or None,
                year=year or None,
                page=page,
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        return {
            "query": report.query,
            "variants": report.variants,
            "count": len(report.results),
            "results": [r.to_public_dict() for r in report.results],
            "sourceWarnings": report.source_warnings,
        }

    return app


app = create_app()
