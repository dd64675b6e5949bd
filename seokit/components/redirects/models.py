"""
Redirects component input/output models.

Resolver outcomes are one of three frozen value types:
- Redirect: send the client to `destination` with a 301/302/307
- Gone: answer 410 with no body and no destination
- NoMatch: no rule applies, fall through to normal content handling
"""

from __future__ import annotations

from dataclasses import dataclass, field

from seokit.core.entities import RedirectRule

# --- Validation Error ---


@dataclass(frozen=True)
class RuleValidationError:
    """Rule validation error."""

    code: str
    message: str
    field: str | None = None


# --- Resolver Actions ---


@dataclass(frozen=True)
class Redirect:
    """Redirect to a destination."""

    destination: str
    status_code: int
    rule_id: int


@dataclass(frozen=True)
class Gone:
    """Content permanently removed (410)."""

    rule_id: int


@dataclass(frozen=True)
class NoMatch:
    """No rule matched the request path."""


NO_MATCH = NoMatch()

RedirectAction = Redirect | Gone | NoMatch


# --- Input Models ---


@dataclass(frozen=True)
class AddRuleInput:
    """Input for creating a rule."""

    source: str
    destination: str = ""
    status_code: int = 301
    is_regex: bool = False


@dataclass(frozen=True)
class DeleteRuleInput:
    """Input for deleting a rule."""

    rule_id: int


@dataclass(frozen=True)
class GetRuleInput:
    """Input for getting a rule by id or by source."""

    rule_id: int | None = None
    source: str | None = None


@dataclass(frozen=True)
class ListRulesInput:
    """Input for listing all rules."""

    pass


@dataclass(frozen=True)
class ResolveInput:
    """Input for resolving a request path."""

    path: str


@dataclass(frozen=True)
class RenameInput:
    """A content item's address change."""

    item_id: str
    address_before: str
    address_after: str
    status_before: str
    status_after: str


@dataclass(frozen=True)
class ImportRecord:
    """One rule to import from another tool's export."""

    source: str
    destination: str = ""
    status_code: int = 301
    is_regex: bool = False


@dataclass(frozen=True)
class ImportRulesInput:
    """Input for a bulk import."""

    records: tuple[ImportRecord, ...]
    dry_run: bool = False


# --- Output Models ---


@dataclass(frozen=True)
class RuleOutput:
    """Output containing a single rule."""

    rule: RedirectRule | None
    errors: list[RuleValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class RuleListOutput:
    """Output containing a list of rules."""

    rules: tuple[RedirectRule, ...]
    errors: list[RuleValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class ResolveOutput:
    """Output for resolve."""

    action: RedirectAction
    errors: list[RuleValidationError] = field(default_factory=list)
    success: bool = True


@dataclass
class ImportResult:
    """Counts and created rules for a bulk import."""

    imported: int = 0
    skipped: int = 0
    failed: int = 0
    rules: list[RedirectRule] = field(default_factory=list)
    errors: list[RuleValidationError] = field(default_factory=list)
    dry_run: bool = False

    @property
    def success(self) -> bool:
        return self.imported > 0

    @property
    def message(self) -> str:
        verb = "Would import" if self.dry_run else "Imported"
        return (
            f"{verb} {self.imported} redirects. "
            f"Skipped {self.skipped} duplicates. {self.failed} failed."
        )
