"""Human labels and physical units for metric fields."""

import re
from typing import Optional

from outputdash.schemas.measurement import ExerciseMetadata

# Known Output Sports metric fields
KNOWN_UNITS: dict[str, str] = {
    # force
    "meanForce": "N",
    "peakForce": "N",
    "averageForce": "N",
    "maxForce": "N",
    # velocity
    "meanVelocity": "m/s",
    "peakVelocity": "m/s",
    "averageVelocity": "m/s",
    "maxVelocity": "m/s",
    # power
    "meanPower": "W",
    "peakPower": "W",
    "averagePower": "W",
    "maxPower": "W",
    # acceleration
    "meanAcceleration": "m/s²",
    "peakAcceleration": "m/s²",
    # impulse
    "impulse": "N·s",
    "netImpulse": "N·s",
    # misc
    "load": "kg",
    "mass": "kg",
    "weight": "kg",
    "duration": "s",
    "timeToPeak": "s",
    "work": "J",
    "workDone": "J",
    "repetitions": "reps",
    "reps": "reps",
}

# Free-text unit spellings -> canonical shorthand. Order matters: compound
# units are matched before the simple units they contain.
UNIT_PATTERNS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"newton[\s-]*(second|sec)s?|^n\s*[·*.]?\s*s$", re.I), "N·s"),
    (re.compile(r"met(er|re)s?\s*(per|/)\s*second\s*(squared|\^?2|²)|^m/s(\^?2|²)$", re.I), "m/s²"),
    (re.compile(r"met(er|re)s?\s*(per|/)\s*second|^m/s$|^mps$", re.I), "m/s"),
    (re.compile(r"newton|^n$", re.I), "N"),
    (re.compile(r"watt|^w$", re.I), "W"),
    (re.compile(r"joule|^j$", re.I), "J"),
    (re.compile(r"kilogram|^kgs?$", re.I), "kg"),
    (re.compile(r"centimet(er|re)|^cm$", re.I), "cm"),
    (re.compile(r"millisecond|^ms$", re.I), "ms"),
    (re.compile(r"second|^secs?$|^s$", re.I), "s"),
    (re.compile(r"met(er|re)|^m$", re.I), "m"),
    (re.compile(r"degree|^deg$|^°$", re.I), "°"),
    (re.compile(r"percent|^%$", re.I), "%"),
    (re.compile(r"^rep(etition)?s?$", re.I), "reps"),
]

_CAPITAL = re.compile(r"([A-Z])")


def display_name(field: str) -> str:
    """camelCase -> Title Case With Spaces. Example: 'meanForce' -> 'Mean Force'"""
    spaced = _CAPITAL.sub(r" \1", field)
    if spaced:
        spaced = spaced[0].upper() + spaced[1:]
    return spaced.strip()


def normalize_unit(raw: str) -> str:
    """Map a free-text unit to shorthand; unknown spellings come back stripped."""
    text = (raw or "").strip()
    if not text:
        return ""
    for pattern, canonical in UNIT_PATTERNS:
        if pattern.search(text):
            return canonical
    return text


def unit(field: str, exercise: Optional[ExerciseMetadata] = None) -> str:
    if field in KNOWN_UNITS:
        return KNOWN_UNITS[field]
    if exercise is not None:
        metric = exercise.metric(field)
        if metric is not None:
            return normalize_unit(metric.unit_of_measure)
    return ""


def metric_label(field: str, exercise: Optional[ExerciseMetadata] = None) -> str:
    """'Mean Force (N)', or just the display name when the unit is unknown."""
    name = display_name(field)
    u = unit(field, exercise)
    return f"{name} ({u})" if u else name
