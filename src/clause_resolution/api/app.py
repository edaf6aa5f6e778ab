"""FastAPI application for the Clause Preference Resolution Engine.

Exposes the ResolutionPipeline over HTTP.

Usage (from project root, after installing fastapi and uvicorn):

    uvicorn clause_resolution.api.app:app --reload

Environment:
    CLAUSE_RESOLUTION_CONFIG_DIR    directory with catalogues.json,
                                    tie_breakers.json and settings.json
    CLAUSE_RESOLUTION_AUDIT         "1"/"true" to record audit events
    CLAUSE_RESOLUTION_DATABASE_URL  audit database URL
"""

from __future__ import annotations

import os
from typing import Dict, Iterator, List, Optional, Union

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field

from ..audit.audit_logger import AuditLogger
from ..models.catalogue import ClauseCatalogue, ClauseVariant
from ..models.enums import PartyRole, RiskLevel
from ..models.preference import RawSubmission
from ..pipeline import PipelineConfig, ResolutionPipeline
from ..resolution.exceptions import InvalidPreferenceError
from ..serialization import ReportSerializer


app = FastAPI(title="Clause Resolution API", version="0.1.0")


class VariantPayload(BaseModel):
    id: str
    text: str = ""
    name: Optional[str] = None
    risk_level: RiskLevel = RiskLevel.MEDIUM
    description: Optional[str] = None


class CataloguePayload(BaseModel):
    clause_type: str
    variants: List[Union[str, VariantPayload]]
    title: Optional[str] = None
    question_text: Optional[str] = None

    def to_catalogue(self) -> ClauseCatalogue:
        variants = tuple(
            ClauseVariant(id=v) if isinstance(v, str) else ClauseVariant(
                id=v.id,
                text=v.text,
                name=v.name,
                risk_level=v.risk_level,
                description=v.description,
            )
            for v in self.variants
        )
        return ClauseCatalogue(
            clause_type=self.clause_type,
            variants=variants,
            title=self.title,
            question_text=self.question_text,
        )


class SubmissionPayload(BaseModel):
    ranking: List[str] = Field(default_factory=list)
    rejected: List[str] = Field(default_factory=list)
    selected_variant: Optional[str] = None
    reject_all: bool = False

    def to_submission(self, clause_type: str) -> RawSubmission:
        return RawSubmission(
            clause_type=clause_type,
            ranking=list(self.ranking),
            rejected=list(self.rejected),
            selected_variant=self.selected_variant,
            reject_all=self.reject_all,
        )


class ResolveRequest(BaseModel):
    """Both parties' submissions for one template.

    When `catalogues` is omitted the catalogues loaded from the configuration
    directory are used.
    """

    template_id: str
    catalogues: Optional[List[CataloguePayload]] = None
    party_a: Dict[str, SubmissionPayload] = Field(default_factory=dict)
    party_b: Dict[str, SubmissionPayload] = Field(default_factory=dict)
    agreement_id: Optional[str] = None


def _env_flag(name: str, default: bool = False) -> bool:
    """Accepted truthy values: "1", "true", "yes", "y" (case-insensitive)."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y"}


def pipeline_config_from_env() -> PipelineConfig:
    return PipelineConfig(
        database_url=os.getenv("CLAUSE_RESOLUTION_DATABASE_URL"),
        config_dir=os.getenv("CLAUSE_RESOLUTION_CONFIG_DIR"),
        enable_audit_logging=_env_flag("CLAUSE_RESOLUTION_AUDIT"),
    )


def get_pipeline() -> Iterator[ResolutionPipeline]:
    pipeline = ResolutionPipeline(config=pipeline_config_from_env())
    try:
        yield pipeline
    finally:
        pipeline.close()


@app.exception_handler(InvalidPreferenceError)
async def invalid_preference_handler(
    request: Request, exc: InvalidPreferenceError
) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": exc.to_dict()})


def _run(request: ResolveRequest, pipeline: ResolutionPipeline):
    catalogues = None
    if request.catalogues is not None:
        try:
            catalogues = [c.to_catalogue() for c in request.catalogues]
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc

    result = pipeline.run(
        template_id=request.template_id,
        catalogues=catalogues,
        raw_a={k: v.to_submission(k) for k, v in request.party_a.items()},
        raw_b={k: v.to_submission(k) for k, v in request.party_b.items()},
        agreement_id=request.agreement_id,
    )
    if not result.success:
        raise HTTPException(status_code=500, detail="; ".join(result.errors))
    return result


@app.get("/api/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/api/resolve")
def resolve(
    request: ResolveRequest,
    pipeline: ResolutionPipeline = Depends(get_pipeline),
) -> JSONResponse:
    """Resolve every clause of the template and return the full report."""
    result = _run(request, pipeline)
    return JSONResponse(status_code=200, content=result.to_dict())


@app.post("/api/resolve/{party}")
def resolve_for_party(
    party: str,
    request: ResolveRequest,
    pipeline: ResolutionPipeline = Depends(get_pipeline),
) -> JSONResponse:
    """Resolve the template and return the report as one party sees it.

    The party view carries the party's own rank of each selected variant and
    the counterpart's acceptance status, never the counterpart's ranking.
    """
    try:
        role = PartyRole(party)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown party: {party}") from exc

    result = _run(request, pipeline)
    payload = ReportSerializer.party_view(result.report, role)
    payload["agreement_id"] = result.agreement_id
    return JSONResponse(status_code=200, content=payload)


def _require_audit(pipeline: ResolutionPipeline) -> AuditLogger:
    audit_logger = pipeline.audit_logger
    if not isinstance(audit_logger, AuditLogger):
        raise HTTPException(status_code=404, detail="Audit logging is not enabled")
    return audit_logger


@app.get("/api/agreements/{agreement_id}/audit")
def export_audit_log(
    agreement_id: str,
    format: str = "json",
    pipeline: ResolutionPipeline = Depends(get_pipeline),
):
    """Export the audit trail of an agreement as JSON or CSV."""
    audit_logger = _require_audit(pipeline)
    try:
        content = audit_logger.export_log(agreement_id, format=format)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    media_type = "application/json" if format == "json" else "text/csv"
    return PlainTextResponse(content, media_type=media_type)


@app.get("/api/agreements/{agreement_id}/report")
def latest_report(
    agreement_id: str,
    version: Optional[int] = None,
    pipeline: ResolutionPipeline = Depends(get_pipeline),
) -> JSONResponse:
    """Return a stored report snapshot, the latest one unless a version is given."""
    audit_logger = _require_audit(pipeline)
    snapshot = audit_logger.get_report_snapshot(agreement_id, version=version)
    if snapshot is None:
        raise HTTPException(status_code=404, detail="No report stored for agreement")
    return JSONResponse(status_code=200, content=snapshot)
