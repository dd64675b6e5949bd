"""
Redirects component - rule store write path, resolver, auto-redirects.
"""

from seokit.core.ports.db import RuleStorePort

from ._auto import AutoRedirector
from ._impl import (
    RedirectConfig,
    RedirectService,
    absolute_address,
    address_to_path,
    coerce_status_code,
    create_redirect_service,
    is_absolute_url,
    normalize_path,
    validate_rule,
)
from ._pattern import RedirectPattern, substitute_captures
from ._resolve import RedirectResolver
from .component import (
    build_config,
    run,
    run_add,
    run_delete,
    run_get,
    run_import,
    run_list,
    run_rename,
    run_resolve,
)
from .models import (
    NO_MATCH,
    AddRuleInput,
    DeleteRuleInput,
    GetRuleInput,
    Gone,
    ImportRecord,
    ImportResult,
    ImportRulesInput,
    ListRulesInput,
    NoMatch,
    Redirect,
    RedirectAction,
    RenameInput,
    ResolveInput,
    ResolveOutput,
    RuleListOutput,
    RuleOutput,
    RuleValidationError,
)

__all__ = [
    # Entry points
    "run",
    "run_add",
    "run_delete",
    "run_get",
    "run_import",
    "run_list",
    "run_rename",
    "run_resolve",
    "build_config",
    # Input models
    "AddRuleInput",
    "DeleteRuleInput",
    "GetRuleInput",
    "ImportRecord",
    "ImportRulesInput",
    "ListRulesInput",
    "RenameInput",
    "ResolveInput",
    # Output models
    "Gone",
    "ImportResult",
    "NO_MATCH",
    "NoMatch",
    "Redirect",
    "RedirectAction",
    "ResolveOutput",
    "RuleListOutput",
    "RuleOutput",
    "RuleValidationError",
    # Ports
    "RuleStorePort",
    # Services
    "AutoRedirector",
    "RedirectConfig",
    "RedirectPattern",
    "RedirectResolver",
    "RedirectService",
    "create_redirect_service",
    # Helpers
    "absolute_address",
    "address_to_path",
    "coerce_status_code",
    "is_absolute_url",
    "normalize_path",
    "substitute_captures",
    "validate_rule",
]
