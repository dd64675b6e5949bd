"""
Regex rule patterns.

A stored pattern must match the whole normalized request path. The raw
text is wrapped in a non-capturing group and matched with ``fullmatch``,
so alternation (``/old|/legacy``) binds to the whole path rather than to
its outer branches. Leading global flags such as ``(?i)`` are hoisted in
front of the wrapper, where Python requires them. Python patterns are not
framed by delimiters, so no delimiter escaping is needed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_PLACEHOLDER = re.compile(r"\$(\d+)")
_LEADING_FLAGS = re.compile(r"^(?:\(\?[aiLmsux]+\))*")


@dataclass(frozen=True)
class RedirectPattern:
    """Raw regex source of a rule plus pure anchoring/matching helpers."""

    raw: str

    @property
    def anchored(self) -> str:
        flags = _LEADING_FLAGS.match(self.raw)
        prefix = flags.group(0) if flags else ""
        return f"{prefix}(?:{self.raw[len(prefix):]})"

    def compile(self) -> re.Pattern[str]:
        """Compile the anchored pattern. Raises re.error if malformed."""
        # An unbalanced ')' could close the wrapper early, so the raw text
        # must compile on its own too
        re.compile(self.raw)
        return re.compile(self.anchored)

    def match(self, path: str) -> re.Match[str] | None:
        """Full-string match of a normalized path. Raises re.error if malformed."""
        return self.compile().fullmatch(path)

    def compile_error(self) -> str | None:
        """
        Trial-match against the empty string with the resolver's anchoring.

        Returns:
            The compiler's message, or None if the pattern is usable
        """
        try:
            self.match("")
        except re.error as e:
            return str(e)
        return None


def substitute_captures(destination: str, match: re.Match[str]) -> str:
    """
    Replace ``$1``..``$N`` in destination with the match's groups.

    ``$0`` and placeholders beyond the group count are left verbatim. A
    group that did not participate in the match becomes an empty string,
    trailing ones included, so an optional suffix group never leaks a
    literal ``$N`` into a redirect target.
    """
    groups = match.groups()

    def replace(placeholder: re.Match[str]) -> str:
        index = int(placeholder.group(1))
        if 1 <= index <= len(groups):
            return groups[index - 1] or ""
        return placeholder.group(0)

    return _PLACEHOLDER.sub(replace, destination)
