"""Semantic version parsing and ordering for capability requirements.

Versions found in a real interpreter are not always strict SemVer: pip
distributions publish ``2.29``, ``1.0.0rc1``, ``3.1.0.post2`` or
``1.4.2+local``. The parser accepts those forms and reduces each to a
comparable ``(major, minor, patch, pre-release)`` value.

Ordering follows SemVer 2.0.0 precedence (section 11) extended with the
PEP 440 pre-release labels: build/local metadata, post-release tags and a
fourth numeric component do not affect precedence, and a pre-release sorts
below the associated final release.

References
----------
.. [SemVer] Preston-Werner, T. (2013). "Semantic Versioning 2.0.0."
   https://semver.org/
.. [PEP440] "Version Identification and Dependency Specification."
   https://peps.python.org/pep-0440/
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import total_ordering


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

_VERSION_RE = re.compile(
    r"^v?(?P<major>\d+)(?:\.(?P<minor>\d+))?(?:\.(?P<patch>\d+))?(?:\.\d+)*"
    r"(?:[-_.]?(?P<label>dev|alpha|beta|preview|pre|rc|a|b|c)[-_.]?(?P<num>\d*))?"
    r"(?:[-_.]?post[-_.]?\d*)?"
    r"(?:\+[0-9A-Za-z\-.]+)?$",
    re.IGNORECASE,
)

# Pre-release label precedence; the final release ranks above all of them.
_LABEL_RANK: dict[str, int] = {"dev": 0, "a": 1, "b": 2, "rc": 3}

# Spellings PEP 440 treats as the same label.
_LABEL_ALIASES: dict[str, str] = {
    "alpha": "a",
    "beta": "b",
    "c": "rc",
    "pre": "rc",
    "preview": "rc",
}
_FINAL_RANK = 4


@total_ordering
@dataclass(frozen=True)
class SemanticVersion:
    """An immutable, totally ordered version value.

    Attributes:
        major: Major component.
        minor: Minor component (0 when omitted).
        patch: Patch component (0 when omitted).
        pre: Canonical pre-release tag (e.g. ``"rc1"``), empty for finals.
            Aliases are folded on construction, so ``"alpha1"`` becomes
            ``"a1"`` and ``"c1"`` or ``"preview1"`` become ``"rc1"``.
        raw: The text as authored. Excluded from equality so that
            ``"2.0"`` and ``"2.0.0"`` compare equal.
    """

    major: int
    minor: int = 0
    patch: int = 0
    pre: str = ""
    raw: str = field(default="", compare=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "pre", _canonical_pre(self.pre))

    @classmethod
    def parse(cls, text: str) -> SemanticVersion:
        """Parse a version string.

        Args:
            text: Version text such as ``"2.29.1"`` or ``"1.0.0-beta.2"``.

        Returns:
            The parsed ``SemanticVersion``.

        Raises:
            ValueError: If the text is not a recognizable version.
        """
        if isinstance(text, SemanticVersion):
            return text
        stripped = str(text).strip()
        m = _VERSION_RE.match(stripped)
        if not m:
            raise ValueError(f"Invalid semantic version: {text!r}")
        label = m.group("label") or ""
        pre = f"{label}{m.group('num') or ''}" if label else ""
        return cls(
            major=int(m.group("major")),
            minor=int(m.group("minor") or 0),
            patch=int(m.group("patch") or 0),
            pre=pre,
            raw=stripped,
        )

    @property
    def is_prerelease(self) -> bool:
        return bool(self.pre)

    def _key(self) -> tuple[int, int, int, int, int]:
        if not self.pre:
            return (self.major, self.minor, self.patch, _FINAL_RANK, 0)
        label = self.pre.rstrip("0123456789")
        number = self.pre[len(label):]
        return (self.major, self.minor, self.patch, _LABEL_RANK[label], int(number))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._key() < other._key()

    def __str__(self) -> str:
        if self.raw:
            return self.raw
        base = f"{self.major}.{self.minor}.{self.patch}"
        return f"{base}{self.pre}" if self.pre else base


def _canonical_pre(pre: str) -> str:
    """Fold a pre-release tag to ``<label><number>``: ``"Beta"`` -> ``"b0"``."""
    if not pre:
        return ""
    text = pre.lower()
    label = text.rstrip("0123456789")
    number = text[len(label):]
    label = _LABEL_ALIASES.get(label, label)
    if label not in _LABEL_RANK:
        raise ValueError(f"Unknown pre-release label: {pre!r}")
    return f"{label}{int(number) if number else 0}"


def parse_version(text: str) -> SemanticVersion:
    """Module-level shorthand for ``SemanticVersion.parse``."""
    return SemanticVersion.parse(text)


def try_parse_version(text: str | None) -> SemanticVersion | None:
    """Parse *text*, returning None instead of raising on bad input."""
    if text is None:
        return None
    try:
        return SemanticVersion.parse(text)
    except ValueError:
        return None


def sort_descending(versions: list[SemanticVersion]) -> tuple[SemanticVersion, ...]:
    """Return unique versions ordered newest first.

    Versions that compare equal (``2.0`` vs ``2.0.0``) collapse to the
    first one seen.
    """
    unique: list[SemanticVersion] = []
    for version in versions:
        if version not in unique:
            unique.append(version)
    unique.sort(reverse=True)
    return tuple(unique)
