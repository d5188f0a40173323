"""Problem type API routes — reference data for the ticket form."""

from typing import List

from fastapi import APIRouter, Depends

from helpdesk.application.services.ticket_service import list_problem_types
from helpdesk.domain.repositories.ticket_repository import TicketRepository
from helpdesk.domain.schemas.ticket import ProblemType
from helpdesk.interfaces.deps import get_ticket_repository

router = APIRouter(prefix="/api/problem-types", tags=["Problem Types"])


@router.get("", response_model=List[ProblemType])
def problem_types(repo: TicketRepository = Depends(get_ticket_repository)):
    """Active problem types."""
    return list_problem_types(repo)
