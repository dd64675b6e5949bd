"""
Redirects component - rule management, resolution and rename handling.

Invariants:
- I1: Non-regex sources are normalized and unique
- I2: Destination is required unless status is 410
- I3: Status code is one of 301, 302, 307, 410
- I4: Malformed regex is rejected on write and skipped on read
- I5: Exact matches beat regex matches; first-registered regex wins
"""

from __future__ import annotations

from seokit.core.ports.db import RuleStorePort
from seokit.rules.models import Rules

from ._auto import AutoRedirector
from ._impl import RedirectConfig, RedirectService
from ._resolve import RedirectResolver
from .models import (
    AddRuleInput,
    DeleteRuleInput,
    GetRuleInput,
    ImportResult,
    ImportRulesInput,
    ListRulesInput,
    RenameInput,
    ResolveInput,
    ResolveOutput,
    RuleListOutput,
    RuleOutput,
    RuleValidationError,
)


def build_config(rules: Rules | None) -> RedirectConfig:
    """Build redirect config from loaded rules."""
    if rules is None:
        return RedirectConfig()

    return RedirectConfig(
        enabled=rules.redirects.enabled,
        auto_redirect_on_rename=rules.redirects.auto_redirect_on_rename,
        base_url=rules.site.base_url,
    )


# --- Component Entry Points ---


def run_add(
    inp: AddRuleInput,
    *,
    store: RuleStorePort,
    rules: Rules | None = None,
) -> RuleOutput:
    """Create a rule; validation failures come back as errors."""
    service = RedirectService(store, build_config(rules))
    rule, errors = service.add_rule(
        source=inp.source,
        destination=inp.destination,
        status_code=inp.status_code,
        is_regex=inp.is_regex,
    )
    return RuleOutput(rule=rule, errors=errors, success=not errors)


def run_delete(
    inp: DeleteRuleInput,
    *,
    store: RuleStorePort,
    rules: Rules | None = None,
) -> RuleOutput:
    """Delete a rule by id."""
    service = RedirectService(store, build_config(rules))
    if not service.delete_rule(inp.rule_id):
        return RuleOutput(
            rule=None,
            errors=[
                RuleValidationError(
                    code="not_found",
                    message=f"Redirect {inp.rule_id} not found",
                )
            ],
            success=False,
        )
    return RuleOutput(rule=None)


def run_get(
    inp: GetRuleInput,
    *,
    store: RuleStorePort,
    rules: Rules | None = None,
) -> RuleOutput:
    """Get a rule by id or by normalized source."""
    service = RedirectService(store, build_config(rules))

    if inp.rule_id is not None:
        rule = service.get(inp.rule_id)
    elif inp.source is not None:
        rule = service.lookup(inp.source)
    else:
        return RuleOutput(
            rule=None,
            errors=[
                RuleValidationError(
                    code="invalid_input",
                    message="Either rule_id or source must be provided",
                )
            ],
            success=False,
        )

    if rule is None:
        return RuleOutput(
            rule=None,
            errors=[RuleValidationError(code="not_found", message="Redirect not found")],
            success=False,
        )
    return RuleOutput(rule=rule)


def run_list(
    inp: ListRulesInput,
    *,
    store: RuleStorePort,
    rules: Rules | None = None,
) -> RuleListOutput:
    """List all rules, newest first."""
    service = RedirectService(store, build_config(rules))
    return RuleListOutput(rules=tuple(service.list_all()))


def run_resolve(
    inp: ResolveInput,
    *,
    store: RuleStorePort,
    rules: Rules | None = None,
) -> ResolveOutput:
    """Resolve a request path to an action."""
    resolver = RedirectResolver(store, build_config(rules))
    return ResolveOutput(action=resolver.resolve(inp.path))


def run_rename(
    inp: RenameInput,
    *,
    store: RuleStorePort,
    rules: Rules | None = None,
) -> RuleOutput:
    """Feed a rename event to the auto-redirector."""
    auto = AutoRedirector(RedirectService(store, build_config(rules)))
    rule = auto.on_rename(
        inp.item_id,
        inp.address_before,
        inp.address_after,
        inp.status_before,
        inp.status_after,
    )
    return RuleOutput(rule=rule)


def run_import(
    inp: ImportRulesInput,
    *,
    store: RuleStorePort,
    rules: Rules | None = None,
) -> ImportResult:
    """Bulk-import rules."""
    service = RedirectService(store, build_config(rules))
    return service.import_rules(inp.records, dry_run=inp.dry_run)


def run(
    inp: (
        AddRuleInput
        | DeleteRuleInput
        | GetRuleInput
        | ListRulesInput
        | ResolveInput
        | RenameInput
        | ImportRulesInput
    ),
    *,
    store: RuleStorePort,
    rules: Rules | None = None,
) -> RuleOutput | RuleListOutput | ResolveOutput | ImportResult:
    """
    Main entry point for the redirects component.

    Dispatches to the appropriate handler based on input type.
    """
    if isinstance(inp, AddRuleInput):
        return run_add(inp, store=store, rules=rules)
    elif isinstance(inp, DeleteRuleInput):
        return run_delete(inp, store=store, rules=rules)
    elif isinstance(inp, GetRuleInput):
        return run_get(inp, store=store, rules=rules)
    elif isinstance(inp, ListRulesInput):
        return run_list(inp, store=store, rules=rules)
    elif isinstance(inp, ResolveInput):
        return run_resolve(inp, store=store, rules=rules)
    elif isinstance(inp, RenameInput):
        return run_rename(inp, store=store, rules=rules)
    elif isinstance(inp, ImportRulesInput):
        return run_import(inp, store=store, rules=rules)
    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
