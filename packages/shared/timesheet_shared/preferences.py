"""
Appearance preference normalization.

``ui_prefs`` arrives as whatever the profile row holds: a JSON object, a
stringified object from older writes, or nothing. ``normalize_prefs`` is the
single boundary that turns it into a strict ``UiPrefs``; nothing past it
trusts the raw blob.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class Accent(str, Enum):
    BLUE = "blue"
    INDIGO = "indigo"
    EMERALD = "emerald"
    ROSE = "rose"
    SLATE = "slate"


class Density(str, Enum):
    COMFORTABLE = "comfortable"
    COMPACT = "compact"


class Radius(str, Enum):
    MD = "md"
    LG = "lg"
    XL = "xl"


class UiPrefs(BaseModel):
    model_config = ConfigDict(frozen=True)

    accent: Accent = Accent.BLUE
    density: Density = Density.COMFORTABLE
    radius: Radius = Radius.LG

    def as_dataset(self) -> dict[str, str]:
        return {
            "accent": self.accent.value,
            "density": self.density.value,
            "radius": self.radius.value,
        }


DEFAULT_PREFS = UiPrefs()

_FIELD_TYPES: dict[str, type[Enum]] = {
    "accent": Accent,
    "density": Density,
    "radius": Radius,
}


def _parse_text(raw: str | bytes) -> Optional[Any]:
    try:
        return json.loads(raw)
    except (ValueError, UnicodeDecodeError, RecursionError):
        return None


def _coerce(enum_type: type[Enum], value: Any) -> Optional[Enum]:
    # Only exact string members pass; anything else is treated as missing.
    if not isinstance(value, str):
        return None
    for member in enum_type:
        if member.value == value:
            return member
    return None


def normalize_prefs(raw: Any) -> UiPrefs:
    """Coerce a loosely-typed preference blob into ``UiPrefs``. Never raises."""
    if isinstance(raw, UiPrefs):
        return raw

    source = _parse_text(raw) if isinstance(raw, (str, bytes)) else raw
    if not isinstance(source, Mapping):
        return DEFAULT_PREFS

    values = {}
    for name, enum_type in _FIELD_TYPES.items():
        member = _coerce(enum_type, source.get(name))
        if member is not None:
            values[name] = member
    return UiPrefs(**values)


def serialize_prefs(prefs: UiPrefs) -> str:
    return json.dumps(prefs.as_dataset(), sort_keys=True)


def is_default_prefs(prefs: UiPrefs) -> bool:
    return prefs == DEFAULT_PREFS
