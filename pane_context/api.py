from __future__ import annotations

"""
FastAPI surface for the pane context resolver.

- GET  /health    liveness
- POST /describe  rank panes of the current session against the given hints
"""

from typing import Optional

from fastapi import FastAPI, HTTPException
from loguru import logger

from . import config
from .config import DescribeRequest, DescribeResponse, HealthResponse
from .logging_setup import add_audit_sink, configure_logging
from .resolver import ContextResolver, NoCandidatesError, run_describe
from .tmux import TmuxCandidateSource, TmuxError

app = FastAPI(title="tmux-pane-context")

_resolver: Optional[ContextResolver] = None


def build_default_resolver() -> ContextResolver:
    return ContextResolver(
        source=TmuxCandidateSource(config.TMUX_PATH),
        feedback_max_entries=config.FEEDBACK_MAX_ENTRIES,
    )


def set_resolver(resolver: Optional[ContextResolver]) -> None:
    global _resolver
    _resolver = resolver


def get_resolver() -> ContextResolver:
    global _resolver
    if _resolver is None:
        _resolver = build_default_resolver()
    return _resolver


@app.on_event("startup")
def startup_event() -> None:
    configure_logging(config.LOG_LEVEL)
    add_audit_sink(config.AUDIT_PATH)
    logger.info("Starting tmux-pane-context (tmux={}, audit={})", config.TMUX_PATH, config.AUDIT_PATH)
    get_resolver()


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="healthy")


@app.post("/describe", response_model=DescribeResponse, response_model_by_alias=True)
async def describe(req: DescribeRequest) -> DescribeResponse:
    try:
        return await run_describe(get_resolver(), req)
    except NoCandidatesError as e:
        raise HTTPException(
            status_code=404,
            detail={"code": "CONTEXT_RESOLUTION_FAILED", "message": e.message},
        )
    except TmuxError as e:
        logger.warning("tmux unavailable: {}", e)
        raise HTTPException(
            status_code=503,
            detail={"code": "TMUX_UNAVAILABLE", "message": str(e)},
        )
