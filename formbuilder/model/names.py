"""Name and id helpers for groups, fields, and options."""

from __future__ import annotations

import itertools
import random
import re
import time
from collections.abc import Iterable

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
_sequence = itertools.count()


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_id() -> str:
    """Return an id unique within this process.

    Millisecond timestamp, a process-local counter, and a random suffix, all
    in base 36.
    """
    stamp = _base36(int(time.time() * 1000))
    counter = _base36(next(_sequence))
    suffix = _base36(random.getrandbits(40))
    return f"{stamp}{counter}{suffix}"


def derive_id(seed: str, index: int) -> str:
    return f"{seed}-{index}"


def generate_name(base: str, existing_names: Iterable[str]) -> str:
    """Return ``base`` or the next free ``"<base> copy<N>"`` variant.

    A bare ``"<base> copy"`` counts as generation 1, so the sequence runs
    ``base``, ``base copy``, ``base copy2``, ``base copy3``...
    """
    existing = list(existing_names)
    if base not in existing:
        return base

    pattern = re.compile(rf"^{re.escape(base)} copy(\d*)$")
    highest = 0
    for name in existing:
        match = pattern.match(name)
        if match is None:
            continue
        generation = int(match.group(1)) if match.group(1) else 1
        highest = max(highest, generation)

    if highest == 0:
        return f"{base} copy"
    return f"{base} copy{highest + 1}"


def slugify(label: str) -> str:
    return re.sub(r"\s+", "-", label.lower())


def label_to_field_name(label: str) -> str:
    cleaned = re.sub(r"[^a-z0-9\s]", "", label.lower())
    return re.sub(r"\s+", "_", cleaned)


def is_name_unique(name: str, current_id: str | None, items: Iterable[object]) -> bool:
    """True when no item other than ``current_id`` already uses ``name``."""
    for item in items:
        if getattr(item, "name", None) == name and getattr(item, "id", None) != current_id:
            return False
    return True
