"""
Ordered regular-expression substitution chains for cookie attributes.

Replacement templates use the `$` reference syntax of nginx/traefik rule
files: `$1`, `${1}`, `$name`, `${name}` and `$$` for a literal dollar sign.
References to groups that do not exist, or did not take part in the match,
expand to an empty string. Reference names run over letters, decimal digits
and `_`, so `$1x` names a group called `1x`.

An empty match directly after a previous match is left in place, so `x*`
-> `-` turns `xab` into `-a-b-` where `re.sub` would give `--a-b-`.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Union

import regex

from proxy_cookie.core.errors import ConfigurationError
from proxy_cookie.core.metrics import REGEX_TIMEOUTS

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 0.1

TemplatePart = Union[str, int]


def _is_name_char(ch: str) -> bool:
    return ch.isalpha() or ch.isdecimal() or ch == "_"


def _read_reference(template: str, start: int) -> tuple[Optional[str], int]:
    # start points at the "$"
    i = start + 1
    braced = template.startswith("{", i)
    if braced:
        i += 1
    name_start = i
    while i < len(template) and _is_name_char(template[i]):
        i += 1
    name = template[name_start:i]
    if not name:
        return None, start
    if braced:
        if not template.startswith("}", i):
            return None, start
        i += 1
    return name, i


def _group_index(name: str, pattern: regex.Pattern) -> Optional[int]:
    if name.isascii() and name.isdigit():
        if len(name) > 1 and name.startswith("0"):
            return None
        number = int(name)
        return number if number <= pattern.groups else None
    return pattern.groupindex.get(name)


def compile_template(template: str, pattern: regex.Pattern) -> tuple[TemplatePart, ...]:
    """Split a replacement template into literal text and resolved group numbers."""
    parts: list[TemplatePart] = []
    literal: list[str] = []
    i = 0
    while i < len(template):
        if template[i] != "$":
            literal.append(template[i])
            i += 1
            continue
        if template.startswith("$$", i):
            literal.append("$")
            i += 2
            continue
        name, end = _read_reference(template, i)
        if name is None:
            literal.append("$")
            i += 1
            continue
        i = end
        index = _group_index(name, pattern)
        if index is None:
            continue
        if literal:
            parts.append("".join(literal))
            literal = []
        parts.append(index)
    if literal:
        parts.append("".join(literal))
    return tuple(parts)


@dataclass(frozen=True)
class RewriteRule:
    pattern: regex.Pattern
    replacement: str
    template: tuple[TemplatePart, ...]

    @classmethod
    def compile(cls, pattern_text: str, replacement: str) -> "RewriteRule":
        pattern = regex.compile(pattern_text)
        return cls(pattern, replacement, compile_template(replacement, pattern))

    def expand(self, match) -> str:
        return "".join(
            part if isinstance(part, str) else (match.group(part) or "")
            for part in self.template
        )

    def sub(self, value: str, timeout: Optional[float] = None) -> str:
        last_end = 0

        def replace(match) -> str:
            nonlocal last_end
            start, end = match.span()
            # an empty match right after the previous match is not replaced
            adjacent = start == end == last_end and start != 0
            last_end = end
            return "" if adjacent else self.expand(match)

        return self.pattern.sub(replace, value, timeout=timeout)


@dataclass(frozen=True)
class RewriteChain:
    name: str
    rules: tuple[RewriteRule, ...] = ()
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def compile(
        cls,
        rules: Iterable[tuple[str, str]],
        name: str = "rewrite",
        timeout: float = DEFAULT_TIMEOUT,
    ) -> "RewriteChain":
        """Compile every (pattern, replacement) pair up front.

        Raises ConfigurationError naming the chain and the pattern on the
        first pattern that fails to compile; no partial chain is returned.
        """
        compiled = []
        for pattern_text, replacement in rules:
            try:
                compiled.append(RewriteRule.compile(pattern_text, replacement))
            except regex.error as e:
                raise ConfigurationError(
                    f"invalid {name} rewrite regex {pattern_text!r}: {e}"
                ) from e
        return cls(name=name, rules=tuple(compiled), timeout=timeout)

    def apply(self, value: str) -> str:
        for rule in self.rules:
            try:
                value = rule.sub(value, timeout=self.timeout)
            except TimeoutError:
                REGEX_TIMEOUTS.labels(chain=self.name).inc()
                logger.warning(
                    f"{self.name} rewrite {rule.pattern.pattern!r} exceeded "
                    f"{self.timeout}s, rule skipped"
                )
        return value

    def describe(self) -> list[dict[str, str]]:
        return [
            {"regex": rule.pattern.pattern, "replacement": rule.replacement}
            for rule in self.rules
        ]

    def __len__(self) -> int:
        return len(self.rules)
