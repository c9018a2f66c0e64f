"""
Readers for the legacy expected-impact dataset.

The legacy spreadsheet system recorded, per week and employee, the impact it
applied to each bag.  Two export shapes exist:

* JSON: ``{week_key: {"weekData": {employee_name: {"expectedOrdinaryImpact": ..,
  "expectedHolidayImpact": .., "expectedLeaveImpact": ..}}}}``
* XLSX: one row per week and employee with columns ``week``, ``employee``,
  ``ordinary``, ``holiday``, ``leave`` (header row auto-detected).

Week keys may be the Monday date (``2025-01-06``) or an ISO week id
(``2025-W02``); both normalise to the ISO week id.  Missing impact values
read as 0.

File I/O only; no database access.
"""

from __future__ import annotations

import json
import re
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any

import openpyxl

from timebank_kernel.domain.records import ExpectedImpact
from timebank_kernel.domain.values import to_hours
from timebank_kernel.domain.weeks import parse_week_id, week_id_for
from timebank_kernel.logging_config import get_logger
from timebank_services.providers import InMemoryExpectedImpactProvider

logger = get_logger("services.expected_impacts")

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_JSON_FIELDS = {
    "ordinary": "expectedOrdinaryImpact",
    "holiday": "expectedHolidayImpact",
    "leave": "expectedLeaveImpact",
}

_XLSX_COLUMNS = {
    "week": ("week", "week id", "week_id", "week start", "semana"),
    "employee": ("employee", "employee name", "name", "empleado"),
    "ordinary": ("ordinary", "expected ordinary", "ordinaria"),
    "holiday": ("holiday", "expected holiday", "festivos"),
    "leave": ("leave", "expected leave", "libranza"),
}


def normalize_week_key(value: Any) -> str:
    """
    Turn a legacy week key into an ISO week id.

    Raises:
        InvalidWeekIdError: If the value is neither a date nor a week id.
    """
    if isinstance(value, datetime):
        return week_id_for(value.date())
    if isinstance(value, date):
        return week_id_for(value)
    text = str(value).strip()
    if _ISO_DATE_RE.match(text):
        return week_id_for(date.fromisoformat(text))
    parse_week_id(text)
    return text


def _impact_value(value: Any) -> Decimal:
    if value in (None, ""):
        return Decimal("0")
    return to_hours(value)


def load_expected_impacts_json(path: Path) -> InMemoryExpectedImpactProvider:
    """Load the legacy JSON export."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    provider = InMemoryExpectedImpactProvider()
    for week_key, week in data.items():
        week_id = normalize_week_key(week_key)
        for name, values in (week.get("weekData") or {}).items():
            provider.add(
                week_id,
                name,
                ExpectedImpact(
                    **{
                        bag: _impact_value(values.get(field))
                        for bag, field in _JSON_FIELDS.items()
                    }
                ),
            )
    logger.info(
        "expected_impacts_loaded",
        extra={"source": str(path), "format": "json", "entries": len(provider)},
    )
    return provider


def _header_index(header: tuple[Any, ...]) -> dict[str, int] | None:
    names = [str(v).strip().lower() if v is not None else "" for v in header]
    index: dict[str, int] = {}
    for key, aliases in _XLSX_COLUMNS.items():
        for position, name in enumerate(names):
            if name in aliases:
                index[key] = position
                break
    if "week" in index and "employee" in index:
        return index
    return None


def load_expected_impacts_xlsx(
    path: Path,
    sheet: str | int | None = None,
    max_header_search: int = 15,
) -> InMemoryExpectedImpactProvider:
    """
    Load an XLSX sheet of expected impacts.

    Raises:
        ValueError: If no header row with week and employee columns is found.
    """
    provider = InMemoryExpectedImpactProvider()
    wb = openpyxl.load_workbook(path, read_only=True, data_only=True)
    try:
        if sheet is None:
            ws = wb.active
        elif isinstance(sheet, int):
            ws = wb.worksheets[sheet]
        else:
            ws = wb[sheet]

        rows = list(ws.iter_rows(values_only=True))
        columns = None
        header_at = 0
        for header_at, row in enumerate(rows[:max_header_search]):
            columns = _header_index(row)
            if columns is not None:
                break
        if columns is None:
            raise ValueError(f"No header row with week and employee columns in {path}")

        for row in rows[header_at + 1:]:
            week_value = row[columns["week"]] if columns["week"] < len(row) else None
            name = row[columns["employee"]] if columns["employee"] < len(row) else None
            if week_value in (None, "") or not name:
                continue
            values = {
                bag: _impact_value(row[columns[bag]])
                if bag in columns and columns[bag] < len(row)
                else Decimal("0")
                for bag in ("ordinary", "holiday", "leave")
            }
            provider.add(normalize_week_key(week_value), str(name), ExpectedImpact(**values))
    finally:
        wb.close()

    logger.info(
        "expected_impacts_loaded",
        extra={"source": str(path), "format": "xlsx", "entries": len(provider)},
    )
    return provider
