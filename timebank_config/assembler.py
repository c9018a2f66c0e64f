"""
timebank_config.assembler -- composes YAML fragments into one TimebankConfiguration.

Fragment structure::

    sets/default/
    +-- root.yaml              # Identity and version
    +-- absence_types.yaml     # Absence type flag records
    +-- contract_types.yaml    # Contract type bag flags
    +-- annual.yaml            # Per-year annual hour parameters
    +-- policies.yaml          # Vacation, audit and rotation policies

Invariants enforced:
    - ``root.yaml`` must exist in every fragment directory; the others are
      optional and default to empty/standard values.
    - A deterministic SHA-256 checksum is computed over all fragment data.

Failure modes:
    - ``AssemblyError`` -- directory or ``root.yaml`` missing, or a fragment
      entry cannot be parsed.
    - ``yaml.YAMLError`` (propagated from loader) -- invalid YAML syntax.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from timebank_config.loader import (
    compute_checksum,
    load_yaml_file,
    parse_absence_type,
    parse_annual_configuration,
    parse_audit_policy,
    parse_contract_type,
    parse_rotation_policy,
    parse_vacation_policy,
)
from timebank_config.schema import TimebankConfiguration
from timebank_kernel.exceptions import AssemblyError

_OPTIONAL_FRAGMENTS = (
    "absence_types.yaml",
    "contract_types.yaml",
    "annual.yaml",
    "policies.yaml",
)


def _load_optional(fragment_dir: Path, name: str) -> dict[str, Any]:
    path = fragment_dir / name
    if not path.exists():
        return {}
    return load_yaml_file(path)


def assemble_from_directory(fragment_dir: Path) -> TimebankConfiguration:
    """
    Compose fragments from a directory into one configuration.

    Preconditions:
        - ``fragment_dir / "root.yaml"`` exists and has ``config_id``.

    Raises:
        AssemblyError: If the directory or root.yaml is missing or any
            entry fails to parse.
    """
    if not fragment_dir.is_dir():
        raise AssemblyError(f"Fragment directory not found: {fragment_dir}")
    root_path = fragment_dir / "root.yaml"
    if not root_path.exists():
        raise AssemblyError(f"root.yaml not found in {fragment_dir}")

    root = load_yaml_file(root_path)
    fragments = {name: _load_optional(fragment_dir, name) for name in _OPTIONAL_FRAGMENTS}
    absence_data = fragments["absence_types.yaml"]
    contract_data = fragments["contract_types.yaml"]
    annual_data = fragments["annual.yaml"]
    policy_data = fragments["policies.yaml"]

    try:
        config_id = root["config_id"]
        absence_types = tuple(
            parse_absence_type(a) for a in absence_data.get("absence_types", [])
        )
        contract_types = tuple(
            parse_contract_type(c) for c in contract_data.get("contract_types", [])
        )
        annual_configurations = tuple(
            parse_annual_configuration(a)
            for a in annual_data.get("annual_configurations", [])
        )
        vacation = parse_vacation_policy(policy_data.get("vacation", {}))
        audit = parse_audit_policy(policy_data.get("audit", {}))
        rotation = parse_rotation_policy(policy_data.get("rotation", {}))
    except (KeyError, ValueError, TypeError) as e:
        raise AssemblyError(f"Failed to parse fragments in {fragment_dir}: {e}") from e

    checksum = compute_checksum({"root": root, **fragments})

    return TimebankConfiguration(
        config_id=config_id,
        version=int(root.get("version", 1)),
        description=root.get("description", ""),
        absence_types=absence_types,
        contract_types=contract_types,
        annual_configurations=annual_configurations,
        vacation=vacation,
        audit=audit,
        rotation=rotation,
        checksum=checksum,
    )
