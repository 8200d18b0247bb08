"""Newline-delimited JSON adapter for run event streams."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator

from openai import APIError
from pydantic import BaseModel

logger = logging.getLogger(__name__)

MEDIA_TYPE = "application/x-ndjson"


def encode_event(event: BaseModel | dict) -> str:
    if isinstance(event, BaseModel):
        return event.model_dump_json() + "\n"
    return json.dumps(event) + "\n"


async def ndjson_stream(events: AsyncIterator) -> AsyncIterator[str]:
    """Convert run events into NDJSON lines.

    An API failure mid-stream becomes a final ``error`` event, since the
    response status has already been sent.
    """
    try:
        async for event in events:
            yield encode_event(event)
    except APIError as e:
        logger.error(f"Run stream failed: {e}")
        yield encode_event({"event": "error", "data": {"message": str(e)}})
