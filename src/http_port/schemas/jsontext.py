"""Strict, compact JSON text helpers shared by the decoder and encoder."""

import json
import math
from typing import Any, Union


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant: {name}")


def _parse_finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"number out of range: {text}")
    return value


def loads(text: Union[str, bytes]) -> Any:
    """Parse JSON text, refusing NaN/Infinity and numbers that overflow a float."""
    return json.loads(
        text, parse_constant=_reject_constant, parse_float=_parse_finite_float
    )


def dumps(value: Any) -> str:
    """Serialise to compact JSON; non-ASCII text is kept as-is."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
