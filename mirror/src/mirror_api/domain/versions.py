"""RubyGems version ordering."""

from __future__ import annotations

import re
from typing import List, Tuple, Union

_SEGMENT_PATTERN = re.compile(r"[0-9]+|[a-z]+", re.IGNORECASE)

Segment = Union[int, str]


def _segments(value: str) -> List[Segment]:
    return [int(part) if part.isdigit() else part for part in _SEGMENT_PATTERN.findall(value)]


def _strip_trailing_zeros(parts: List[Segment]) -> List[Segment]:
    end = len(parts)
    while end and parts[end - 1] == 0:
        end -= 1
    return parts[:end]


def canonical_segments(value: str) -> List[Segment]:
    """Segments with trailing zeros dropped from the release and prerelease parts."""

    parts = _segments(value)
    split_at = next((index for index, part in enumerate(parts) if isinstance(part, str)), len(parts))
    return _strip_trailing_zeros(parts[:split_at]) + _strip_trailing_zeros(parts[split_at:])


def version_key(value: str) -> Tuple[Tuple[int, Segment], ...]:
    """Sort key matching ``Gem::Version#<=>``.

    Letter segments sort before numeric ones, so ``1.0.pre`` < ``1.0``. The
    trailing ``(1, 0)`` entry stands in for the implicit zero padding.
    """

    key = [(1, part) if isinstance(part, int) else (0, part) for part in canonical_segments(value)]
    key.append((1, 0))
    return tuple(key)


def is_prerelease(value: str) -> bool:
    return any(char.isalpha() for char in value)


__all__ = ["canonical_segments", "is_prerelease", "version_key"]
