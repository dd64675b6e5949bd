"""
Admin redirect rule routes.

Rules are created, listed, looked up, deleted and bulk-imported here.
Validation failures answer 400 with the list of rule errors.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from seokit.api.deps import get_redirect_service
from seokit.components.redirects import (
    ImportRecord,
    RedirectService,
    RuleValidationError,
)
from seokit.core.entities import RedirectRule

router = APIRouter()


class CreateRedirectRequest(BaseModel):
    """Request to create a redirect rule."""

    source: str = Field(..., description="Literal path (e.g. /old-page) or regex pattern")
    destination: str = Field("", description="Target URL; may be empty for 410")
    status_code: int = Field(301, description="301, 302, 307 or 410")
    is_regex: bool = Field(False, description="Treat source as an anchored regex")


class ImportRedirectsRequest(BaseModel):
    """Bulk import of rules exported from another tool."""

    rules: list[CreateRedirectRequest]
    dry_run: bool = False


class RedirectRuleResponse(BaseModel):
    """Redirect rule response."""

    id: int
    source: str
    destination: str
    status_code: int
    is_regex: bool
    hit_count: int


class RedirectListResponse(BaseModel):
    """List of redirect rules."""

    redirects: list[RedirectRuleResponse]
    count: int


class ImportRedirectsResponse(BaseModel):
    imported: int
    skipped: int
    failed: int
    dry_run: bool
    message: str
    redirects: list[RedirectRuleResponse]
    errors: list[dict[str, Any]]


class ValidationErrorResponse(BaseModel):
    """Validation error response."""

    errors: list[dict[str, Any]]


# --- Helper Functions ---


def _rule_to_response(rule: RedirectRule) -> RedirectRuleResponse:
    return RedirectRuleResponse(
        id=rule.id,
        source=rule.source,
        destination=rule.destination,
        status_code=rule.status_code,
        is_regex=rule.is_regex,
        hit_count=rule.hit_count,
    )


def _serialize_errors(errors: list[RuleValidationError]) -> list[dict[str, Any]]:
    return [{"code": e.code, "message": e.message, "field": e.field} for e in errors]


# --- Routes ---


@router.post(
    "/redirects",
    response_model=RedirectRuleResponse,
    status_code=201,
    responses={400: {"model": ValidationErrorResponse}},
)
def create_redirect(
    request: CreateRedirectRequest,
    service: RedirectService = Depends(get_redirect_service),
) -> RedirectRuleResponse:
    """
    Create a redirect rule.

    Rejects a missing destination (unless 410), a malformed regex and a
    literal source that already has a rule.
    """
    rule, errors = service.add_rule(
        source=request.source,
        destination=request.destination,
        status_code=request.status_code,
        is_regex=request.is_regex,
    )

    if errors:
        raise HTTPException(
            status_code=400,
            detail={"errors": _serialize_errors(errors)},
        )

    assert rule is not None
    return _rule_to_response(rule)


@router.get("/redirects", response_model=RedirectListResponse)
def list_redirects(
    service: RedirectService = Depends(get_redirect_service),
) -> RedirectListResponse:
    """List all rules, newest first."""
    rules = service.list_all()
    return RedirectListResponse(
        redirects=[_rule_to_response(r) for r in rules],
        count=len(rules),
    )


@router.get(
    "/redirects/lookup",
    response_model=RedirectRuleResponse,
    responses={404: {"description": "No rule for this source"}},
)
def lookup_redirect(
    source: str = Query(..., min_length=1),
    is_regex: bool = False,
    service: RedirectService = Depends(get_redirect_service),
) -> RedirectRuleResponse:
    """Find the rule stored for a source (literal sources are normalized)."""
    rule = service.lookup(source, is_regex=is_regex)
    if rule is None:
        raise HTTPException(status_code=404, detail="Redirect not found")
    return _rule_to_response(rule)


@router.post(
    "/redirects/import",
    response_model=ImportRedirectsResponse,
)
def import_redirects(
    request: ImportRedirectsRequest,
    service: RedirectService = Depends(get_redirect_service),
) -> ImportRedirectsResponse:
    records = [
        ImportRecord(
            source=r.source,
            destination=r.destination,
            status_code=r.status_code,
            is_regex=r.is_regex,
        )
        for r in request.rules
    ]
    result = service.import_rules(records, dry_run=request.dry_run)
    return ImportRedirectsResponse(
        imported=result.imported,
        skipped=result.skipped,
        failed=result.failed,
        dry_run=result.dry_run,
        message=result.message,
        redirects=[_rule_to_response(r) for r in result.rules],
        errors=_serialize_errors(result.errors),
    )


@router.get(
    "/redirects/{rule_id}",
    response_model=RedirectRuleResponse,
    responses={404: {"description": "Redirect not found"}},
)
def get_redirect(
    rule_id: int,
    service: RedirectService = Depends(get_redirect_service),
) -> RedirectRuleResponse:
    """Get a rule by id."""
    rule = service.get(rule_id)
    if rule is None:
        raise HTTPException(status_code=404, detail="Redirect not found")
    return _rule_to_response(rule)


@router.delete(
    "/redirects/{rule_id}",
    responses={404: {"description": "Redirect not found"}},
)
def delete_redirect(
    rule_id: int,
    service: RedirectService = Depends(get_redirect_service),
) -> dict[str, bool]:
    """Delete a rule."""
    if not service.delete_rule(rule_id):
        raise HTTPException(status_code=404, detail="Redirect not found")
    return {"deleted": True}
