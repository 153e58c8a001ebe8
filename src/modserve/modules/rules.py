"""Route rules compiled from a package manifest.

Four frozen rule types, one per way a sub-path can be answered::

    EntryRule                 ""          -> redirect to the entry point
    ExactFileRule             "bar"       -> redirect to one declared file
    GlobRule                  "glob/<x>"  -> redirect with <x> substituted
    DirectoryDelegationRule   "dir/<...>" -> static serving, no redirect

Sub-paths are relative to the package root and carry no leading slash.
"""

from __future__ import annotations

from typing import TypeAlias

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RuleMatch:
    """Result of a successful rule match.

    ``target`` is relative to the package root: the redirect target for
    entry, exact and glob rules, or the file to serve for delegation.
    """

    rule: RouteRule
    target: str
    capture: str | None = None

    @property
    def redirects(self) -> bool:
        return not isinstance(self.rule, DirectoryDelegationRule)


def _trim(subpath: str) -> str:
    # The host router is non-strict: one trailing slash is insignificant.
    return subpath[:-1] if subpath.endswith("/") else subpath


@dataclass(frozen=True, slots=True)
class EntryRule:
    """Matches the package root."""

    target_path: str

    def match(self, subpath: str) -> RuleMatch | None:
        if _trim(subpath):
            return None
        return RuleMatch(rule=self, target=self.target_path)

    def describe(self) -> str:
        return f"/ -> {self.target_path}"


@dataclass(frozen=True, slots=True)
class ExactFileRule:
    """Matches one literal sub-path."""

    request_path: str
    target_path: str

    def match(self, subpath: str) -> RuleMatch | None:
        if _trim(subpath) != self.request_path:
            return None
        return RuleMatch(rule=self, target=self.target_path)

    def describe(self) -> str:
        return f"/{self.request_path} -> {self.target_path}"


@dataclass(frozen=True, slots=True)
class GlobRule:
    """Matches ``request_prefix`` followed by exactly one path segment.

    Dot segments (``.``, ``..``) never match, so a capture cannot climb
    out of the package once the target is joined.

    The captured segment replaces the first ``*`` of ``target_pattern``,
    once. A pattern without ``*`` redirects every match to the same file.
    """

    request_prefix: str
    target_pattern: str

    def match(self, subpath: str) -> RuleMatch | None:
        trimmed = _trim(subpath)
        if not trimmed.startswith(self.request_prefix):
            return None
        capture = trimmed[len(self.request_prefix) :]
        if not capture or "/" in capture or capture in (".", ".."):
            return None
        return RuleMatch(
            rule=self,
            target=self.target_pattern.replace("*", capture, 1),
            capture=capture,
        )

    def describe(self) -> str:
        return f"/{self.request_prefix}* -> {self.target_pattern}"


@dataclass(frozen=True, slots=True)
class DirectoryDelegationRule:
    """Matches ``request_prefix`` and everything beneath it.

    The remainder is appended verbatim to ``target_directory``.
    """

    request_prefix: str
    target_directory: str

    def match(self, subpath: str) -> RuleMatch | None:
        if subpath == self.request_prefix:
            rest = ""
        elif subpath.startswith(self.request_prefix + "/"):
            rest = subpath[len(self.request_prefix) + 1 :]
        else:
            return None
        target = f"{self.target_directory.rstrip('/')}/{rest}" if rest else self.target_directory
        return RuleMatch(rule=self, target=target)

    def describe(self) -> str:
        return f"/{self.request_prefix}/... -> {self.target_directory}/..."


RouteRule: TypeAlias = EntryRule | ExactFileRule | GlobRule | DirectoryDelegationRule


@dataclass(frozen=True, slots=True)
class RouteTable:
    """Ordered rules for one package. Built once, read-only thereafter.

    The ``EntryRule`` always comes first; the remaining rules keep the
    manifest's declaration order and the first match wins.
    """

    package: str
    rules: tuple[RouteRule, ...]

    @property
    def entry(self) -> EntryRule:
        rule = self.rules[0] if self.rules else None
        if not isinstance(rule, EntryRule):
            msg = f"Route table for {self.package!r} does not start with an EntryRule"
            raise TypeError(msg)
        return rule

    def match(self, subpath: str) -> RuleMatch | None:
        """Return the first rule matching *subpath*, or ``None``."""
        for rule in self.rules:
            result = rule.match(subpath)
            if result is not None:
                return result
        return None

    def __iter__(self):
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)
