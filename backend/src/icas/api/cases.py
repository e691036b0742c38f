"""API endpoints for case management.

Provides CRUD for cases, attaching analysis records, and drafting an
investigation report from a case's stored analyses.
"""

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel

from ..cases import (
    AddAnalysisRequest,
    AnalysisRecord,
    Case,
    CaseRepository,
    CaseStatus,
    CaseSummary,
    CreateCaseRequest,
    UpdateCaseRequest,
    get_case_repository,
)
from ..config import get_settings
from ..flows import generate_ric
from ..flows.models import AnalysisItem, GenerateRicInput, GenerateRicOutput
from ..llm import CapabilityInvoker, get_capability_invoker
from . import NotFoundError

router = APIRouter(prefix="/cases", tags=["cases"])


class CaseListResponse(BaseModel):
    """Response for case list endpoint."""

    items: list[CaseSummary]
    total: int


async def _require_case(repository: CaseRepository, case_id: str) -> Case:
    case = await repository.get_case(case_id)
    if case is None:
        raise NotFoundError("Case", case_id)
    return case


@router.get("", response_model=CaseListResponse)
async def list_cases(
    status: CaseStatus | None = None,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    repository: CaseRepository = Depends(get_case_repository),
) -> CaseListResponse:
    """List cases, newest first, with an optional status filter."""
    cases, total = await repository.list_cases(status=status, limit=limit, offset=offset)
    return CaseListResponse(items=[CaseSummary.from_case(c) for c in cases], total=total)


@router.post("", response_model=Case, status_code=201)
async def create_case(
    request: CreateCaseRequest,
    repository: CaseRepository = Depends(get_case_repository),
) -> Case:
    return await repository.create_case(request)


@router.get("/{case_id}", response_model=Case)
async def get_case(
    case_id: str,
    repository: CaseRepository = Depends(get_case_repository),
) -> Case:
    """Get a case with all of its analyses."""
    return await _require_case(repository, case_id)


@router.put("/{case_id}", response_model=Case)
async def update_case(
    case_id: str,
    request: UpdateCaseRequest,
    repository: CaseRepository = Depends(get_case_repository),
) -> Case:
    """Update name, description or status; omitted fields are kept."""
    return await repository.update_case(case_id, request)


@router.delete("/{case_id}", status_code=204)
async def delete_case(
    case_id: str,
    repository: CaseRepository = Depends(get_case_repository),
) -> Response:
    deleted = await repository.delete_case(case_id)
    if not deleted:
        raise NotFoundError("Case", case_id)
    return Response(status_code=204)


@router.post("/{case_id}/analyses", response_model=AnalysisRecord, status_code=201)
async def add_analysis(
    case_id: str,
    request: AddAnalysisRequest,
    repository: CaseRepository = Depends(get_case_repository),
) -> AnalysisRecord:
    """Attach a flow result to a case."""
    return await repository.append_analysis(case_id, request)


@router.post("/{case_id}/report", response_model=GenerateRicOutput)
async def generate_case_report(
    case_id: str,
    repository: CaseRepository = Depends(get_case_repository),
    invoker: CapabilityInvoker = Depends(get_capability_invoker),
) -> GenerateRicOutput:
    """Draft an investigation report from the case's stored analyses."""
    case = await _require_case(repository, case_id)
    ric_input = GenerateRicInput(
        case_name=case.name,
        case_description=case.description or None,
        analyses=[
            AnalysisItem(
                type=record.type.value,
                summary=record.summary,
                source_file_name=record.original_file_name,
            )
            for record in case.analyses
        ],
    )
    return await generate_ric(ric_input, invoker=invoker, timeout=get_settings().llm_timeout_seconds)
