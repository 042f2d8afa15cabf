"""Correction requests: validation and wire conversion of the payload."""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Mapping, Optional

from .errors import IncompleteCorrection
from .models import TimeCorrection, TimePair
from .timeclock import interval_minutes, parse_time_of_day

MAX_CORRECTION_PAIRS = 3


def correction_problems(correction: TimeCorrection) -> List[str]:
    problems: List[str] = []
    if correction.day is None:
        problems.append("date is required")
    pairs = [pair for pair in correction.times if not pair.is_blank]
    if len(pairs) > MAX_CORRECTION_PAIRS:
        problems.append(f"at most {MAX_CORRECTION_PAIRS} time pairs are allowed")
    complete = [pair for pair in pairs if interval_minutes(pair.entrada, pair.saida) is not None]
    if not complete:
        problems.append("at least one complete entrada/saida pair is required")
    for index, pair in enumerate(pairs, start=1):
        for label, value in (("entrada", pair.entrada), ("saida", pair.saida)):
            if value and parse_time_of_day(value) is None:
                problems.append(f"pair {index}: {label} '{value}' is not a valid time")
    if not (correction.justification or "").strip():
        problems.append("justification is required")
    return problems


def validate_correction(correction: TimeCorrection) -> TimeCorrection:
    problems = correction_problems(correction)
    if problems:
        raise IncompleteCorrection(problems)
    return correction


def is_submittable(correction: TimeCorrection) -> bool:
    return not correction_problems(correction)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def to_payload(correction: TimeCorrection) -> Dict[str, Any]:
    times = [
        {"entrada": _clean(pair.entrada), "saida": _clean(pair.saida)}
        for pair in correction.times
        if not pair.is_blank
    ]
    return {
        "date": correction.day.isoformat() if correction.day else None,
        "justification": _clean(correction.justification),
        "document_name": _clean(correction.document_name),
        "times": times,
    }


def _parse_day(value: Any) -> Optional[dt.date]:
    if not value:
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    text = str(value)
    try:
        return dt.date.fromisoformat(text[:10])
    except ValueError:
        return None


def from_payload(data: Optional[Mapping[str, Any]]) -> Optional[TimeCorrection]:
    if not data:
        return None
    times = [
        TimePair(entrada=_clean(item.get("entrada")) or "", saida=_clean(item.get("saida")) or "")
        for item in data.get("times") or []
        if item
    ]
    return TimeCorrection(
        day=_parse_day(data.get("date")),
        times=[pair for pair in times if not pair.is_blank],
        justification=_clean(data.get("justification")) or "",
        document_name=_clean(data.get("document_name")),
    )


def correction_title(correction: TimeCorrection) -> str:
    if correction.day is None:
        return "Correção de ponto"
    return f"Correção de ponto {correction.day.strftime('%d/%m/%Y')}"


__all__ = [
    "MAX_CORRECTION_PAIRS",
    "correction_problems",
    "correction_title",
    "from_payload",
    "is_submittable",
    "to_payload",
    "validate_correction",
]
