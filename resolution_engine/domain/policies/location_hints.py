"""Extract floor and location hints from a free-text issue description."""

from __future__ import annotations

import re

GROUND_FLOOR_PHRASES = ("ground floor", "grourd floor", "groud floor", "floor 0", "level 0")

FLOOR_PATTERNS = (
    re.compile(r"(\d+)(?:st|nd|rd|th)\s*floor", re.IGNORECASE),
    re.compile(r"floor\s*(\d+)", re.IGNORECASE),
    re.compile(r"(\d+)\s*floor", re.IGNORECASE),
    re.compile(r"level\s*(\d+)", re.IGNORECASE),
)

LOCATIONS: dict[str, tuple[str, ...]] = {
    "Cafeteria": ("cafeteria", "canteen", "pantry", "kitchen", "mess"),
    "Reception": ("lobby", "reception", "front desk", "entrance"),
    "Parking": ("parking", "basement", "garage"),
    "Terrace": ("terrace", "roof", "rooftop"),
    "Washroom": ("washroom", "restroom", "toilet", "bathroom", "loo"),
    "Conference Room": ("conference", "meeting room", "board room"),
    "Cabin": ("cabin", "cubicle", "desk", "workstation"),
    "Server Room": ("server room", "data center", "hub room"),
    "Electrical Room": ("electrical room", "ups room", "dg room"),
}

_BASEMENT_B1 = re.compile(r"\b(?:basement|b1)\b", re.IGNORECASE)
_BASEMENT_B2 = re.compile(r"\bb2\b", re.IGNORECASE)


def extract_floor_number(description: str) -> int | None:
    """Ground floor → 0, basement / B1 → -1, B2 → -2, "3rd floor" → 3."""
    text = (description or "").lower()
    if any(phrase in text for phrase in GROUND_FLOOR_PHRASES):
        return 0
    if _BASEMENT_B2.search(text):
        return -2
    if _BASEMENT_B1.search(text):
        return -1
    for pattern in FLOOR_PATTERNS:
        match = pattern.search(text)
        if match:
            return int(match.group(1))
    return None


def extract_location(description: str) -> str | None:
    text = (description or "").lower()
    for location, keywords in LOCATIONS.items():
        for keyword in keywords:
            if re.search(r"\b" + re.escape(keyword) + r"\b", text):
                return location
    return None
