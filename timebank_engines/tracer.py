"""
timebank_engines.tracer -- Invocation tracing for the pure calculators.

Responsibility:
    ``@traced_engine`` wraps a calculator and emits one TIMEBANK_ENGINE_TRACE
    record per call: engine name and version, a fingerprint of the selected
    arguments, the outcome and the elapsed time.

Architecture position:
    Engines -- infrastructure support for the pure calculation layer.
    Reads arguments and emits a log record; never alters inputs or results.

Invariants enforced:
    - Fingerprints are deterministic.  Arguments are bound to parameter
      names first, so positional and keyword calls hash identically;
      mappings hash by sorted key.
    - Exceptions raised by the engine propagate unchanged after the trace
      record (``outcome="error"``) is written.

Failure modes:
    - A fingerprint field the call does not bind hashes as ``null``.
    - Values of unknown types hash through ``repr``.
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import time
from collections.abc import Callable, Mapping
from dataclasses import asdict, dataclass, fields, is_dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from timebank_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")

TRACE_EVENT = "TIMEBANK_ENGINE_TRACE"


@dataclass(frozen=True)
class EngineTrace:
    engine_name: str
    engine_version: str
    function: str
    input_fingerprint: str
    outcome: str
    duration_ms: float
    error_code: str | None = None

    def as_log_extra(self) -> dict[str, Any]:
        extra = asdict(self)
        extra["trace_type"] = TRACE_EVENT
        if self.error_code is None:
            del extra["error_code"]
        return extra


def _canonical(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (bool, int, Decimal, str)):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Mapping):
        pairs = sorted((_canonical(k), _canonical(v)) for k, v in value.items())
        return "{" + ",".join(f"{k}:{v}" for k, v in pairs) + "}"
    if isinstance(value, (list, tuple, frozenset, set)):
        items = [_canonical(v) for v in value]
        if isinstance(value, (set, frozenset)):
            items.sort()
        return "[" + ",".join(items) + "]"
    if is_dataclass(value) and not isinstance(value, type):
        inner = ",".join(f"{f.name}={_canonical(getattr(value, f.name))}" for f in fields(value))
        return f"{type(value).__name__}({inner})"
    return repr(value)


def input_fingerprint(bound: Mapping[str, Any], names: tuple[str, ...]) -> str:
    """First 16 hex chars of the SHA-256 of ``names`` taken from ``bound``."""
    canonical = "|".join(f"{name}={_canonical(bound.get(name))}" for name in names)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """
    Decorate a calculator so every call emits TIMEBANK_ENGINE_TRACE.

    Args:
        engine_name: Engine identifier, e.g. ``"weekly_balance"``.
        engine_version: Version of the engine's rules, e.g. ``"1.0"``.
        fingerprint_fields: Parameter names hashed into the fingerprint.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = ""
            if fingerprint_fields:
                bound = signature.bind_partial(*args, **kwargs).arguments
                fingerprint = input_fingerprint(bound, fingerprint_fields)

            started = time.perf_counter()
            outcome, error_code = "ok", None
            try:
                return func(*args, **kwargs)
            except Exception as exc:
                outcome = "error"
                error_code = getattr(exc, "code", type(exc).__name__)
                raise
            finally:
                trace = EngineTrace(
                    engine_name=engine_name,
                    engine_version=engine_version,
                    function=func.__qualname__,
                    input_fingerprint=fingerprint,
                    outcome=outcome,
                    duration_ms=round((time.perf_counter() - started) * 1000, 3),
                    error_code=error_code,
                )
                _logger.info(TRACE_EVENT, extra=trace.as_log_extra())

        wrapper.engine_name = engine_name
        wrapper.engine_version = engine_version
        return wrapper

    return decorator
