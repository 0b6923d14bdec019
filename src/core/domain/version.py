"""Semantic versions used to rank mod downloads.

Why a dedicated type:
- Repositories report versions as free text (`v1.2`, `1.2.0-beta.3+build.7`).
- Ranking needs semver-like precedence, but build metadata must not affect it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering

_VERSION_PATTERN = re.compile(
    r"^v?(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)(?:\.(?P<patch>0|[1-9]\d*))?"
    r"(?:-(?P<prerelease>[0-9a-z]+(?:[.-][0-9a-z]+)*))?"
    r"(?:\+(?P<build>[0-9a-z]+(?:[.-][0-9a-z]+)*))?$",
    re.IGNORECASE,
)


def _compare_prerelease(left: str, right: str) -> int:
    left_parts = left.split(".")
    right_parts = right.split(".")
    for cur, other in zip(left_parts, right_parts):
        if cur.isdigit() and other.isdigit():
            if int(cur) != int(other):
                return -1 if int(cur) < int(other) else 1
            continue
        cur_l, other_l = cur.lower(), other.lower()
        if cur_l != other_l:
            return -1 if cur_l < other_l else 1
    if len(left_parts) == len(right_parts):
        return 0
    return -1 if len(left_parts) < len(right_parts) else 1


@total_ordering
@dataclass(frozen=True, eq=False)
class SemanticVersion:
    """A parsed `major.minor.patch[-prerelease][+build]` version."""

    major: int
    minor: int
    patch: int = 0
    prerelease: str | None = None
    build_metadata: str | None = None

    @classmethod
    def try_parse(cls, text: str | None) -> SemanticVersion | None:
        """Parse `text`, returning None instead of raising on malformed input."""

        if not isinstance(text, str):
            return None
        match = _VERSION_PATTERN.match(text.strip())
        if match is None:
            return None
        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor")),
            patch=int(match.group("patch") or 0),
            prerelease=match.group("prerelease"),
            build_metadata=match.group("build"),
        )

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    def compare_to(self, other: SemanticVersion) -> int:
        """Return -1, 0 or 1. Build metadata is ignored."""

        mine = (self.major, self.minor, self.patch)
        theirs = (other.major, other.minor, other.patch)
        if mine != theirs:
            return -1 if mine < theirs else 1

        if not self.prerelease and not other.prerelease:
            return 0
        # A stable release supersedes any prerelease of the same number.
        if not self.prerelease:
            return 1
        if not other.prerelease:
            return -1
        return _compare_prerelease(self.prerelease, other.prerelease)

    def is_newer_than(self, other: SemanticVersion) -> bool:
        return self.compare_to(other) > 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self.compare_to(other) == 0

    def __lt__(self, other: SemanticVersion) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self.compare_to(other) < 0

    def __hash__(self) -> int:
        tag = self.prerelease.lower() if self.prerelease else None
        return hash((self.major, self.minor, self.patch, tag))

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.build_metadata:
            text += f"+{self.build_metadata}"
        return text
