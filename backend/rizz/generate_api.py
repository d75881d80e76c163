# rizz/generate_api.py
"""
Pickup-line generation endpoints.

Upstream failures (timeout, non-2xx, malformed payload) never reach the user:
they are logged and answered with catalog lines plus a `note`. Only a broken
credential surfaces as a 500.
"""
from __future__ import annotations

from functools import lru_cache
from typing import List

from fastapi import APIRouter, HTTPException

from .completion import (
    CompletionConfig,
    ConfigurationError,
    UpstreamFailure,
    build_single_line_instruction,
    complete,
    request_completion,
)
from .fallback import FALLBACK_NOTE, fallback_items
from .normalizer import normalize
from .pickup import PickupItem
from .schemas import (
    GenerateInput,
    GenerateOutput,
    GeneratePickupLinesInput,
    GeneratePickupLinesOutput,
    PickupLineOut,
)
from .settings import settings

router = APIRouter(tags=["generate"])


@lru_cache(maxsize=1)
def get_completion_config() -> CompletionConfig:
    # Failed validation is not cached, so a fixed env is picked up on the next call
    cfg = CompletionConfig.from_settings(settings)
    print(f"[generate] Completion config ready: {cfg.describe()}")
    return cfg


def _require_completion_config() -> CompletionConfig:
    try:
        return get_completion_config()
    except ConfigurationError as e:
        print(f"[generate] Configuration error: {e}")
        raise HTTPException(status_code=500, detail=str(e))


def _lines_output(items: List[PickupItem], note: str | None = None) -> GeneratePickupLinesOutput:
    return GeneratePickupLinesOutput(
        lines=[PickupLineOut.from_item(i) for i in items],
        note=note,
    )


@router.post(
    "/api/generate-pickup-lines",
    response_model=GeneratePickupLinesOutput,
    response_model_exclude_none=True,
)
@router.post(
    "/.netlify/functions/generate-pickup-line",
    response_model=GeneratePickupLinesOutput,
    response_model_exclude_none=True,
    include_in_schema=False,
)
async def generate_pickup_lines(payload: GeneratePickupLinesInput):
    req = payload.to_request()
    cfg = _require_completion_config()

    try:
        completion = await request_completion(cfg, req)
    except UpstreamFailure as e:
        print(f"[generate] {type(e).__name__}: {e} -> using fallback pickup lines")
        return _lines_output(fallback_items(req.requested_count), FALLBACK_NOTE)

    items = normalize(completion.text, req.requested_count, req.include_translations)
    if not items:
        print("[generate] Completion normalized to nothing -> using fallback pickup lines")
        return _lines_output(fallback_items(req.requested_count), FALLBACK_NOTE)

    print(f"[generate] Processed {len(items)}/{req.requested_count} lines")
    return _lines_output(items)


@router.post("/api/generate", response_model=GenerateOutput, response_model_exclude_none=True)
async def generate_single_line(payload: GenerateInput):
    """One free-form pickup line about `prompt` (the chat page)."""
    prompt = (payload.prompt or "").strip()
    if not prompt:
        raise HTTPException(status_code=400, detail="Prompt is required")

    cfg = _require_completion_config()
    try:
        completion = await complete(cfg, build_single_line_instruction(prompt))
    except UpstreamFailure as e:
        print(f"[generate] {type(e).__name__}: {e} -> using fallback pickup line")
        return GenerateOutput(text=fallback_items(1)[0].text, note=FALLBACK_NOTE)

    return GenerateOutput(text=completion.text.strip())
