from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status

from app.core.client_identity import get_client_identifier
from app.schemas.questions import (
    ProposeQuestionRequest,
    QuestionFiltersResponse,
    QuestionListResponse,
    ReportQuestionRequest,
    SuccessResponse,
)
from app.services.catalog_service import QuestionCatalog
from app.services.submission_service import SubmissionService

router = APIRouter(prefix="/api", tags=["Questions"])


def get_submission_service(request: Request) -> SubmissionService:
    return request.app.state.submission_service


def get_question_catalog(request: Request) -> QuestionCatalog:
    return request.app.state.question_catalog


SubmissionServiceDep = Annotated[SubmissionService, Depends(get_submission_service)]
QuestionCatalogDep = Annotated[QuestionCatalog, Depends(get_question_catalog)]


@router.post(
    "/propose-question",
    response_model=SuccessResponse,
    status_code=status.HTTP_201_CREATED,
)
def propose_question(
    payload: ProposeQuestionRequest,
    request: Request,
    service: SubmissionServiceDep,
) -> SuccessResponse:
    """Store a user-proposed question for review.

    Subject to the strict per-route rate limit and to the durable per-client
    cooldown.

    Raises:
        RateLimitAppError: 429 when the client's cooldown is still running.
        StorageAppError: 500 when the proposal could not be written.
    """
    service.propose(payload, client_key=get_client_identifier(request))
    return SuccessResponse()


@router.post(
    "/report-question",
    response_model=SuccessResponse,
    status_code=status.HTTP_201_CREATED,
)
def report_question(
    payload: ReportQuestionRequest,
    service: SubmissionServiceDep,
) -> SuccessResponse:
    """Store a report about an incorrect or unclear question."""
    service.report(payload)
    return SuccessResponse()


@router.get("/questions", response_model=QuestionListResponse)
def list_questions(
    catalog: QuestionCatalogDep,
    category: Annotated[str | None, Query(description="Category, or 'all'")] = None,
    difficulty: Annotated[str | None, Query(description="Difficulty, or 'all'")] = None,
    frequency: Annotated[str | None, Query(description="Frequency, or 'all'")] = None,
) -> QuestionListResponse:
    questions = catalog.search(category=category, difficulty=difficulty, frequency=frequency)
    return QuestionListResponse(total=len(questions), questions=questions)


@router.get("/questions/filters", response_model=QuestionFiltersResponse)
def question_filters(
    catalog: QuestionCatalogDep,
    category: Annotated[str | None, Query()] = None,
    difficulty: Annotated[str | None, Query()] = None,
    frequency: Annotated[str | None, Query()] = None,
) -> QuestionFiltersResponse:
    """Distinct filter values with per-value question counts."""
    return catalog.filters(category=category, difficulty=difficulty, frequency=frequency)
