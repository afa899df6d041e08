"""Parsing of compact device index notation such as ``0-2,5,7-9``."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Final

from .errors import EmptyDeviceSpecError, InvalidDeviceTokenError

if TYPE_CHECKING:
    from collections.abc import Iterable

DEVICE_SPEC_ALL: Final[str] = "all"

_TOKEN_RE: Final = re.compile(r"^([0-9]+)(?:\s*-\s*([0-9]+))?$")
_LABEL_RE: Final = re.compile(r"^\s*\[[^\]]*\]\s*")


def parse_device_spec(raw: str) -> frozenset[int]:
    """Parse a comma separated list of device indices and inclusive ranges.

    Whitespace around tokens is ignored and duplicates collapse. An empty input is
    rejected with ``EmptyDeviceSpecError`` so callers must decide beforehand whether
    a spec is present at all. Anything else that is not ``N`` or ``N-M`` with
    ``N <= M`` raises ``InvalidDeviceTokenError`` naming the offending token.
    """

    if not raw.strip():
        raise EmptyDeviceSpecError

    devices: set[int] = set()
    for token in raw.split(","):
        stripped = token.strip()
        match = _TOKEN_RE.match(stripped)
        if match is None:
            raise InvalidDeviceTokenError(stripped)
        first = int(match.group(1))
        last = int(match.group(2)) if match.group(2) is not None else first
        if first > last:
            raise InvalidDeviceTokenError(stripped)
        devices.update(range(first, last + 1))
    return frozenset(devices)


def format_device_spec(devices: Iterable[int]) -> str:
    """Render device indices in the compact notation, collapsing consecutive runs."""

    ordered = sorted(set(devices))
    if not ordered:
        return ""

    parts: list[str] = []
    run_start = previous = ordered[0]
    for index in ordered[1:]:
        if index == previous + 1:
            previous = index
            continue
        parts.append(_format_run(run_start, previous))
        run_start = previous = index
    parts.append(_format_run(run_start, previous))
    return ",".join(parts)


def _format_run(first: int, last: int) -> str:
    if first == last:
        return str(first)
    return f"{first}-{last}"


def extract_device_spec(text: str) -> str:
    """Strip an optional bracketed label such as ``[GPU]`` from free-form text."""

    return _LABEL_RE.sub("", text, count=1).strip()


def is_all_devices(raw: str) -> bool:
    return raw.strip().casefold() == DEVICE_SPEC_ALL


__all__ = [
    "DEVICE_SPEC_ALL",
    "extract_device_spec",
    "format_device_spec",
    "is_all_devices",
    "parse_device_spec",
]
