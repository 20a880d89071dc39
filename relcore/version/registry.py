"""Version registry: which files carry the version, and how.

A registry is an ordered tuple of ``FileVersionRule`` entries, each holding
one or more ``PatternRule``. Rules are built from a closed set of rewrite
strategies, and the common marker shapes are predefined, so a malformed
pattern or template is rejected when the registry is loaded rather than in
the middle of a release.

Every pattern exposes three named groups:
- ``prefix``: text kept before the version
- ``version``: the semantic version itself
- ``suffix``: text kept after the version (``PREFIX_SUFFIX`` only)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from relcore.core.result import Err, Ok, Result

__all__ = [
    "DEFAULT_REGISTRY",
    "FileVersionRule",
    "MarkerShape",
    "PatternRule",
    "RegistryError",
    "RewriteStrategy",
    "VERSION_PLACEHOLDER",
    "VERSION_RE",
    "VersionRegistry",
    "validate_registry",
]

VERSION_PLACEHOLDER = "{VERSION}"

# Accepts malformed prerelease tails so the validator can report them.
# Build metadata is part of the version so it is read and rewritten whole.
VERSION_RE = r"[0-9]+\.[0-9]+\.[0-9]+(?:-[a-zA-Z0-9.-]+)?(?:\+[a-zA-Z0-9.-]+)?"


@dataclass(frozen=True, slots=True)
class RegistryError:
    path: str
    message: str


class RewriteStrategy(Enum):
    """How the matched text is rebuilt around the new version."""

    PREFIX = "prefix"
    PREFIX_SUFFIX = "prefix_suffix"

    @property
    def template(self) -> str:
        match self:
            case RewriteStrategy.PREFIX:
                return rf"\g<prefix>{VERSION_PLACEHOLDER}"
            case RewriteStrategy.PREFIX_SUFFIX:
                return rf"\g<prefix>{VERSION_PLACEHOLDER}\g<suffix>"

    @property
    def groups(self) -> frozenset[str]:
        match self:
            case RewriteStrategy.PREFIX:
                return frozenset({"prefix", "version"})
            case RewriteStrategy.PREFIX_SUFFIX:
                return frozenset({"prefix", "version", "suffix"})


class MarkerShape(Enum):
    """Known textual shapes that carry a version."""

    PYPROJECT = "pyproject"
    DUNDER = "dunder"
    PACKAGE_JSON = "package_json"
    HEADER = "header"
    STABLE_TAG = "stable_tag"

    @property
    def regex(self) -> str:
        match self:
            case MarkerShape.PYPROJECT:
                return rf'(?m)^(?P<prefix>version\s*=\s*")(?P<version>{VERSION_RE})(?P<suffix>")'
            case MarkerShape.DUNDER:
                return (
                    rf"(?m)^(?P<prefix>__version__\s*(?::\s*str\s*)?=\s*(?P<q>['\"]))"
                    rf"(?P<version>{VERSION_RE})(?P<suffix>(?P=q))"
                )
            case MarkerShape.PACKAGE_JSON:
                return rf'(?P<prefix>"version"\s*:\s*")(?P<version>{VERSION_RE})(?P<suffix>")'
            case MarkerShape.HEADER:
                return rf"(?m)^(?P<prefix>[ \t]*(?:#|\*|//)[ \t]*@version[ \t]+)(?P<version>{VERSION_RE})"
            case MarkerShape.STABLE_TAG:
                return rf"(?m)^(?P<prefix>Stable tag:[ \t]+)(?P<version>{VERSION_RE})"

    @property
    def strategy(self) -> RewriteStrategy:
        match self:
            case MarkerShape.HEADER | MarkerShape.STABLE_TAG:
                return RewriteStrategy.PREFIX
            case _:
                return RewriteStrategy.PREFIX_SUFFIX


@dataclass(frozen=True, slots=True)
class PatternRule:
    """One extraction/rewrite rule.

    Attributes:
        regex: Pattern with ``prefix``/``version``[/``suffix``] named groups.
        strategy: How the replacement is assembled.
        label: Short name shown in warnings (marker name or "custom").
    """

    regex: str
    strategy: RewriteStrategy
    label: str = "custom"

    @classmethod
    def for_marker(cls, shape: MarkerShape) -> PatternRule:
        return cls(regex=shape.regex, strategy=shape.strategy, label=shape.value)

    @property
    def template(self) -> str:
        return self.strategy.template

    @property
    def compiled(self) -> re.Pattern[str]:
        return re.compile(self.regex)

    def extract(self, text: str) -> re.Match[str] | None:
        return self.compiled.search(text)

    def rewrite(self, text: str, version: str, *, count: int = 1) -> str:
        """Replace the matched version with ``version``.

        Only the first match is replaced unless ``count`` says otherwise
        (0 means all). Returns the text unchanged when the rule does not match.
        """
        replacement = self.template.replace(VERSION_PLACEHOLDER, version)
        return self.compiled.sub(lambda m: m.expand(replacement), text, count=count)

    def check(self) -> str | None:
        """Return a problem description, or None if the rule is usable."""
        try:
            pattern = re.compile(self.regex)
        except re.error as e:
            return f"invalid regex ({e})"

        missing = self.strategy.groups - set(pattern.groupindex)
        if missing:
            names = ", ".join(sorted(missing))
            return f"pattern lacks named group(s) required by {self.strategy.value}: {names}"

        if self.template.count(VERSION_PLACEHOLDER) != 1:
            return f"template must contain exactly one {VERSION_PLACEHOLDER}"
        return None


@dataclass(frozen=True, slots=True)
class FileVersionRule:
    path: str
    patterns: tuple[PatternRule, ...]


VersionRegistry = tuple[FileVersionRule, ...]


DEFAULT_REGISTRY: VersionRegistry = (
    FileVersionRule(
        path="pyproject.toml",
        patterns=(PatternRule.for_marker(MarkerShape.PYPROJECT),),
    ),
)


def validate_registry(registry: VersionRegistry) -> Result[None, RegistryError]:
    """Reject empty registries, duplicate paths and unusable rules."""
    if not registry:
        return Err(RegistryError(path="", message="version registry is empty"))

    seen: set[str] = set()
    for entry in registry:
        if entry.path in seen:
            return Err(RegistryError(path=entry.path, message="duplicate registry entry"))
        seen.add(entry.path)

        if not entry.patterns:
            return Err(RegistryError(path=entry.path, message="no patterns configured"))

        for i, rule in enumerate(entry.patterns):
            problem = rule.check()
            if problem is not None:
                return Err(
                    RegistryError(
                        path=entry.path,
                        message=f"pattern #{i + 1} ({rule.label}): {problem}",
                    )
                )

    return Ok(None)
