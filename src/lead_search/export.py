"""CSV and JSON serialization of leads."""

from __future__ import annotations

import csv
import json
from collections.abc import Iterable, Mapping
from dataclasses import fields
from pathlib import Path
from typing import Any

from .models import Lead

LEAD_FIELDS = [item.name for item in fields(Lead)]
CSV_DELIMITER = ";"
CSV_ENCODING = "utf-8-sig"


def _optional(value: Any, cast: type) -> Any:
    if value is None or value == "":
        return None
    return cast(value)


def lead_from_row(row: Mapping[str, Any]) -> Lead:
    """Rebuild a Lead from a CSV row or JSON object."""
    values = {name: row.get(name) for name in LEAD_FIELDS}
    values["quality_score"] = float(values["quality_score"] or 0.0)
    values["rating"] = _optional(values["rating"], float)
    values["review_count"] = _optional(values["review_count"], int)
    for name, value in values.items():
        if name not in {"quality_score", "rating", "review_count"}:
            values[name] = "" if value is None else str(value)
    return Lead(**values)


def write_csv(path: str, leads: Iterable[Lead]) -> None:
    """Write leads with a stable column order; ``;`` separated for spreadsheet tools."""
    with Path(path).open("w", newline="", encoding=CSV_ENCODING) as file_obj:
        writer = csv.DictWriter(file_obj, fieldnames=LEAD_FIELDS, delimiter=CSV_DELIMITER)
        writer.writeheader()
        for lead in leads:
            row = lead.to_dict()
            writer.writerow({key: "" if value is None else value for key, value in row.items()})


def read_csv(path: str) -> list[Lead]:
    with Path(path).open(newline="", encoding=CSV_ENCODING) as file_obj:
        reader = csv.DictReader(file_obj, delimiter=CSV_DELIMITER)
        return [lead_from_row(row) for row in reader]


def write_json(path: str, leads: Iterable[Lead]) -> None:
    payload = [lead.to_dict() for lead in leads]
    Path(path).write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")


def read_json(path: str) -> list[Lead]:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    return [lead_from_row(item) for item in payload]


def write_leads(path: str, leads: Iterable[Lead], fmt: str = "csv") -> None:
    if fmt == "json":
        write_json(path, leads)
    else:
        write_csv(path, leads)
