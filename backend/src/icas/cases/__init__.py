"""Case management.

Cases group the analysis records produced by the flows and feed the
investigation report drafts.
"""

from .models import (
    AddAnalysisRequest,
    AnalysisRecord,
    AnalysisType,
    Case,
    CaseStatus,
    CaseSummary,
    CreateCaseRequest,
    UpdateCaseRequest,
)
from .repository import (
    CaseNotFoundError,
    CaseRepository,
    InMemoryCaseRepository,
    get_case_repository,
)

__all__ = [
    # Models
    "AddAnalysisRequest",
    "AnalysisRecord",
    "AnalysisType",
    "Case",
    "CaseStatus",
    "CaseSummary",
    "CreateCaseRequest",
    "UpdateCaseRequest",
    # Repository
    "CaseNotFoundError",
    "CaseRepository",
    "InMemoryCaseRepository",
    "get_case_repository",
]
