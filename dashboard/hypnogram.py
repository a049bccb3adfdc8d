"""Hypnogram trace decoding.

A trace encodes one sleep-stage code per 5-minute interval. Three encodings
have been seen upstream, tried in this order:

- a JSON array literal: "[4, 4, 3, 2]"
- comma-separated codes: "4,4,3,2"
- a bare digit string: "4432"

Anything else decodes to SENTINEL_STAGES so charts always have data.
"""

import json
from typing import Any

from dashboard.domain.models import SENTINEL_HYPNOGRAM_TRACE

SENTINEL_STAGES: tuple[int, ...] = tuple(int(c) for c in SENTINEL_HYPNOGRAM_TRACE)


def _stage_code(value: Any) -> int:
    """Coerce one decoded element to an integer stage code. Raises ValueError."""
    if isinstance(value, bool):
        raise ValueError(f"not a stage code: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"not a stage code: {value!r}")
        return int(value)
    if isinstance(value, str):
        return int(value.strip())
    raise ValueError(f"not a stage code: {value!r}")


def _decode(trace: str) -> list[int]:
    if trace.startswith("[") and trace.endswith("]"):
        parsed = json.loads(trace)
        if not isinstance(parsed, list):
            raise ValueError("JSON hypnogram is not an array")
        return [_stage_code(v) for v in parsed]

    if "," in trace:
        return [_stage_code(part) for part in trace.split(",")]

    if not trace.isdigit():
        raise ValueError("hypnogram contains non-digit characters")
    return [int(c) for c in trace]


def decode_hypnogram(trace: Any) -> list[int]:
    """Decode a hypnogram trace into a list of stage codes.

    Never raises: empty, non-string or unparseable input returns a copy of
    the 40-element sentinel pattern.
    """
    if not isinstance(trace, str) or not trace.strip():
        return list(SENTINEL_STAGES)

    try:
        stages = _decode(trace.strip())
    except (ValueError, RecursionError):
        # json.JSONDecodeError is a ValueError; deeply nested arrays recurse too far
        return list(SENTINEL_STAGES)

    return stages or list(SENTINEL_STAGES)
