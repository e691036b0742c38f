"""Case storage.

``CaseRepository`` is the storage interface used by the API. The bundled
``InMemoryCaseRepository`` keeps cases in process memory: it is not
transactional, applies writes in arrival order (last write wins) and
loses everything on restart.
"""

from abc import ABC, abstractmethod
from datetime import timedelta
from functools import lru_cache

from ..config import get_settings
from ..logging import get_logger
from .models import (
    AddAnalysisRequest,
    AnalysisRecord,
    Case,
    CaseStatus,
    CreateCaseRequest,
    UpdateCaseRequest,
    utcnow,
)

logger = get_logger(__name__)


class CaseNotFoundError(LookupError):
    """Raised when an operation targets a case that does not exist."""

    def __init__(self, case_id: str):
        self.case_id = case_id
        super().__init__(f"Case not found: {case_id}")


class CaseRepository(ABC):
    """Abstract case store."""

    @abstractmethod
    async def create_case(self, request: CreateCaseRequest) -> Case:
        ...

    @abstractmethod
    async def get_case(self, case_id: str) -> Case | None:
        ...

    @abstractmethod
    async def list_cases(
        self,
        status: CaseStatus | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Case], int]:
        """List cases, newest first.

        Returns:
            Tuple of (page of cases, total matching count)
        """
        ...

    @abstractmethod
    async def update_case(self, case_id: str, request: UpdateCaseRequest) -> Case:
        """Apply a partial update.

        Raises:
            CaseNotFoundError: If the case does not exist
        """
        ...

    @abstractmethod
    async def delete_case(self, case_id: str) -> bool:
        """Delete a case. Returns False if it did not exist."""
        ...

    @abstractmethod
    async def append_analysis(self, case_id: str, request: AddAnalysisRequest) -> AnalysisRecord:
        """Attach a new analysis record to a case.

        Raises:
            CaseNotFoundError: If the case does not exist
        """
        ...


class InMemoryCaseRepository(CaseRepository):
    """Case store held in a dict; returned cases are copies."""

    def __init__(self, seed_demo_cases: bool = False):
        self._cases: dict[str, Case] = {}
        if seed_demo_cases:
            for case in demo_cases():
                self._cases[case.id] = case

    async def create_case(self, request: CreateCaseRequest) -> Case:
        case = Case(name=request.name, description=request.description, status=request.status)
        self._cases[case.id] = case
        logger.info(f"Created case {case.id}", extra={"case_id": case.id})
        return case.model_copy(deep=True)

    async def get_case(self, case_id: str) -> Case | None:
        case = self._cases.get(case_id)
        return case.model_copy(deep=True) if case else None

    async def list_cases(
        self,
        status: CaseStatus | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Case], int]:
        cases = [c for c in self._cases.values() if status is None or c.status == status]
        cases.sort(key=lambda c: c.created_at, reverse=True)
        page = cases[offset : offset + limit]
        return [c.model_copy(deep=True) for c in page], len(cases)

    async def update_case(self, case_id: str, request: UpdateCaseRequest) -> Case:
        case = self._cases.get(case_id)
        if case is None:
            raise CaseNotFoundError(case_id)

        changes = request.model_dump(exclude_none=True)
        updated = case.model_copy(update={**changes, "modified_at": utcnow()}, deep=True)
        self._cases[case_id] = updated
        return updated.model_copy(deep=True)

    async def delete_case(self, case_id: str) -> bool:
        deleted = self._cases.pop(case_id, None) is not None
        if deleted:
            logger.info(f"Deleted case {case_id}", extra={"case_id": case_id})
        return deleted

    async def append_analysis(self, case_id: str, request: AddAnalysisRequest) -> AnalysisRecord:
        case = self._cases.get(case_id)
        if case is None:
            raise CaseNotFoundError(case_id)

        record = AnalysisRecord(
            type=request.type,
            original_file_name=request.original_file_name,
            summary=request.summary,
            data=request.data,
        )
        self._cases[case_id] = case.model_copy(
            update={"analyses": [*case.analyses, record], "modified_at": utcnow()},
            deep=True,
        )
        logger.info(
            f"Attached {record.type.value} analysis to case {case_id}",
            extra={"case_id": case_id, "analysis_id": record.id},
        )
        return record.model_copy(deep=True)


def demo_cases() -> list[Case]:
    """Two sample cases used to populate a fresh development store."""
    now = utcnow()
    return [
        Case(
            id="demo-case-1",
            name="Operation Pegasus",
            description="Investigation into online financial fraud.",
            status=CaseStatus.INVESTIGATING,
            created_at=now - timedelta(days=10),
            modified_at=now - timedelta(days=2),
        ),
        Case(
            id="demo-case-2",
            name="Silent Witness Case",
            description="Analysis of documents and audio to identify connections.",
            status=CaseStatus.OPEN,
            created_at=now - timedelta(days=5),
            modified_at=now,
        ),
    ]


@lru_cache
def get_case_repository() -> CaseRepository:
    """Get the process-wide case repository."""
    return InMemoryCaseRepository(seed_demo_cases=get_settings().seed_demo_cases)
