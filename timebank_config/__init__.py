"""
timebank_config -- single public entrypoint for time-bank configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  YAML loading and assembly are internal
    tooling and never exposed to the engines.

Architecture position:
    Configuration -- YAML-driven rule tables and policies.  This package
    sits above ``timebank_kernel`` and below ``timebank_services``.  The
    kernel and the engines MUST NEVER import from ``timebank_config``.

Invariants enforced:
    - The returned configuration has passed validation.
    - Same YAML fragments always produce the same checksum.

Failure modes:
    - ``AssemblyError`` -- fragment directory missing or malformed.
    - ``ConfigValidationError`` -- validation errors (all of them listed).

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``TIMEBANK_CONFIG_TRACE`` log entry with the config id, version,
    checksum and rule counts.
"""

from __future__ import annotations

from pathlib import Path

from timebank_config.assembler import assemble_from_directory
from timebank_config.schema import TimebankConfiguration
from timebank_config.validator import validate_configuration
from timebank_kernel.exceptions import ConfigValidationError
from timebank_kernel.logging_config import get_logger

_logger = get_logger("config")

_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"
_DEFAULT_SET = "default"

__all__ = ["TimebankConfiguration", "get_active_config"]


def get_active_config(
    config_dir: Path | None = None,
    set_name: str = _DEFAULT_SET,
) -> TimebankConfiguration:
    """The ONLY public configuration entrypoint.

    Args:
        config_dir: Override path to the configuration sets directory.
            Defaults to timebank_config/sets/.
        set_name: Name of the set subdirectory.

    Returns:
        A validated, frozen ``TimebankConfiguration``.

    Raises:
        AssemblyError: If the set cannot be assembled.
        ConfigValidationError: If validation produces errors.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    config = assemble_from_directory(sets_dir / set_name)

    validation = validate_configuration(config)
    for warning in validation.warnings:
        _logger.warning("config_validation_warning", extra={"detail": warning})
    if not validation.is_valid:
        raise ConfigValidationError(validation.errors)

    _logger.info(
        "TIMEBANK_CONFIG_TRACE",
        extra={
            "trace_type": "TIMEBANK_CONFIG_TRACE",
            "config_set_id": config.config_id,
            "config_set_version": config.version,
            "checksum": config.checksum,
            "absence_type_count": len(config.absence_types),
            "contract_type_count": len(config.contract_types),
            "annual_years": [a.year for a in config.annual_configurations],
        },
    )
    return config
