"""Ticket API routes — list, summary, create and lifecycle transitions."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi import status as http_status

from helpdesk.application.services.ticket_service import (
    accept_ticket,
    check_duplicates,
    complete_ticket,
    create_ticket,
    get_ticket,
    list_tickets_for,
    reject_ticket,
    ticket_summary,
)
from helpdesk.domain.repositories.ticket_repository import TicketRepository
from helpdesk.domain.schemas.auth import Profile
from helpdesk.domain.schemas.ticket import (
    CompleteRequest,
    RejectRequest,
    Ticket,
    TicketCreate,
    TicketStatus,
    TicketSummary,
    TicketWithDetails,
)
from helpdesk.interfaces.api.deps import get_current_profile, require_staff
from helpdesk.interfaces.deps import get_ticket_repository

router = APIRouter(prefix="/api/tickets", tags=["Tickets"])


@router.get("", response_model=List[TicketWithDetails])
def list_tickets(
    status: Optional[TicketStatus] = None,
    sector: Optional[str] = None,
    problem_type_id: Optional[str] = None,
    repo: TicketRepository = Depends(get_ticket_repository),
    profile: Profile = Depends(get_current_profile),
):
    """Staff see every ticket; users see their own."""
    return list_tickets_for(repo, profile, status=status, sector=sector, problem_type_id=problem_type_id)


@router.get("/summary", response_model=TicketSummary)
def summary(
    repo: TicketRepository = Depends(get_ticket_repository),
    profile: Profile = Depends(get_current_profile),
):
    return ticket_summary(repo, profile)


@router.get("/duplicates", response_model=List[Ticket])
def duplicates(
    sector: str = Query(..., min_length=1),
    problem_type_id: str = Query(..., min_length=1),
    repo: TicketRepository = Depends(get_ticket_repository),
    profile: Profile = Depends(get_current_profile),
):
    """Active tickets that would block a new one for this sector and problem type."""
    return check_duplicates(repo, profile, sector, problem_type_id)


@router.post("", response_model=TicketWithDetails, status_code=http_status.HTTP_201_CREATED)
def open_ticket(
    body: TicketCreate,
    repo: TicketRepository = Depends(get_ticket_repository),
    profile: Profile = Depends(get_current_profile),
):
    return create_ticket(repo, profile, body)


@router.get("/{ticket_id}", response_model=TicketWithDetails)
def ticket_details(
    ticket_id: str,
    repo: TicketRepository = Depends(get_ticket_repository),
    profile: Profile = Depends(get_current_profile),
):
    return get_ticket(repo, profile, ticket_id)


@router.post("/{ticket_id}/accept", response_model=TicketWithDetails)
def accept(
    ticket_id: str,
    repo: TicketRepository = Depends(get_ticket_repository),
    profile: Profile = Depends(require_staff),
):
    return accept_ticket(repo, profile, ticket_id)


@router.post("/{ticket_id}/reject", response_model=TicketWithDetails)
def reject(
    ticket_id: str,
    body: RejectRequest,
    repo: TicketRepository = Depends(get_ticket_repository),
    profile: Profile = Depends(require_staff),
):
    return reject_ticket(repo, profile, ticket_id, body.rejection_reason)


@router.post("/{ticket_id}/complete", response_model=TicketWithDetails)
def complete(
    ticket_id: str,
    body: CompleteRequest,
    repo: TicketRepository = Depends(get_ticket_repository),
    profile: Profile = Depends(get_current_profile),
):
    return complete_ticket(repo, profile, ticket_id, body.diagnosis)
