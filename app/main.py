from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, Field

from tools.injector.add_assign import DEFAULT_MARKER, add_assign_to_source
from tools.injector.pipeline import PluginOptions, StylePipeline
from tools.injector.registry import StyleRegistry
from tools.injector.tags import TAG_MODES, create_style_tags

BASE_DIR = Path(__file__).resolve().parents[1]
PROJECT_ROOT = Path(os.environ.get("INJECTOR_PROJECT_ROOT", str(BASE_DIR))).resolve()

app = FastAPI(title="Directive Style Injector")

templates = Jinja2Templates(directory=str(BASE_DIR / "app" / "templates"))

# one build session per process; /api/session/start begins a new one
registry = StyleRegistry()
pipeline = StylePipeline(PluginOptions(), registry)


@dataclass
class FileDetail:
    file_id: str
    abs_path: Path


class TransformFileRequest(BaseModel):
    file_id: str
    code: Optional[str] = None


class TransformSourceRequest(BaseModel):
    code: str
    import_path: str = Field(min_length=1)
    marker: str = DEFAULT_MARKER


class SkippedCallOut(BaseModel):
    offset: int
    reason: str


class TransformSourceResponse(BaseModel):
    code: str
    changed: bool
    injected: int
    skipped: List[SkippedCallOut] = Field(default_factory=list)


def _resolve_file(file_id: str) -> FileDetail:
    abs_path = (PROJECT_ROOT / file_id).resolve()
    try:
        abs_path.relative_to(PROJECT_ROOT)
    except ValueError:
        raise HTTPException(status_code=404, detail="File not found")
    if not abs_path.is_file():
        raise HTTPException(status_code=404, detail="File not found")
    return FileDetail(file_id=file_id, abs_path=abs_path)


def _render_tags(mode: str, base: Optional[str], prefix: str) -> str:
    try:
        return create_style_tags(registry.list(), base=base, prefix=prefix, mode=mode)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@app.get("/", response_class=HTMLResponse)
async def index(request: Request) -> HTMLResponse:
    styles = registry.list()
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "project_root": str(PROJECT_ROOT),
            "styles": styles,
            "tags": create_style_tags(styles, base=str(PROJECT_ROOT)),
        },
    )


@app.post("/api/session/start")
async def session_start() -> JSONResponse:
    pipeline.build_start()
    return JSONResponse({"styles": []})


@app.post("/api/transform")
async def transform_file(request: TransformFileRequest) -> JSONResponse:
    detail = _resolve_file(request.file_id)
    code = request.code
    if code is None:
        code = await asyncio.to_thread(detail.abs_path.read_text, encoding="utf-8")

    out = await asyncio.to_thread(pipeline.transform, code, str(detail.abs_path))
    return JSONResponse(
        {
            "file_id": detail.file_id,
            "changed": out is not None,
            "code": code if out is None else out,
        }
    )


@app.post("/api/transform/source", response_model=TransformSourceResponse)
async def transform_source(request: TransformSourceRequest) -> TransformSourceResponse:
    report = await asyncio.to_thread(add_assign_to_source, request.code, request.import_path, request.marker)
    return TransformSourceResponse(
        code=report.code,
        changed=report.changed,
        injected=report.injected,
        skipped=[SkippedCallOut(offset=s.offset, reason=s.reason) for s in report.skipped],
    )


@app.get("/api/styles")
async def list_styles() -> JSONResponse:
    return JSONResponse({"styles": registry.list()})


@app.get("/api/style-tags")
async def style_tags(
    mode: str = Query("import"),
    base: Optional[str] = Query(None),
    prefix: str = Query("/"),
) -> JSONResponse:
    tags = _render_tags(mode, base, prefix)
    return JSONResponse({"mode": mode, "modes": list(TAG_MODES), "tags": tags})
