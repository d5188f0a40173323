"""
Ticket service — lifecycle state machine and its guards.

open -> in_progress -> completed
open -> rejected

Every guard failure raises; nothing is silently ignored. The repository
re-checks the source status at write time, so two technicians accepting
the same ticket cannot both succeed.
"""

from typing import Dict, List, Optional, Set

import structlog

from helpdesk.core.clock import get_current_datetime
from helpdesk.core.exceptions import (
    DuplicateTicketException,
    ForbiddenException,
    InvalidTransitionException,
    ValidationException,
)
from helpdesk.domain.repositories.ticket_repository import TicketRepository
from helpdesk.domain.schemas.auth import Profile, UserRole
from helpdesk.domain.schemas.ticket import (
    ProblemType,
    Ticket,
    TicketCreate,
    TicketFilter,
    TicketStatus,
    TicketSummary,
    TicketWithDetails,
)

logger = structlog.get_logger(__name__)

ALLOWED_TRANSITIONS: Dict[TicketStatus, Set[TicketStatus]] = {
    TicketStatus.OPEN: {TicketStatus.IN_PROGRESS, TicketStatus.REJECTED},
    TicketStatus.IN_PROGRESS: {TicketStatus.COMPLETED},
    TicketStatus.COMPLETED: set(),
    TicketStatus.REJECTED: set(),
}


def can_transition(src: TicketStatus, dst: TicketStatus) -> bool:
    return dst in ALLOWED_TRANSITIONS.get(src, set())


def _require_text(field: str, value: Optional[str]) -> str:
    if value is None or not value.strip():
        raise ValidationException(f"O campo '{field}' é obrigatório", details={"field": field})
    return value.strip()


def _require_staff(actor: Profile, action: str) -> None:
    if not actor.is_staff:
        logger.warning("Ticket action forbidden", action=action, actor_id=actor.id, role=actor.role.value)
        raise ForbiddenException(
            "Apenas técnicos podem executar esta ação",
            details={"action": action, "role": actor.role.value},
        )


def _require_transition(ticket: Ticket, target: TicketStatus) -> None:
    if not can_transition(ticket.status, target):
        logger.warning(
            "Invalid ticket transition",
            ticket_id=ticket.id,
            status=ticket.status.value,
            target=target.value,
        )
        raise InvalidTransitionException(
            f"Não é possível passar de '{ticket.status.value}' para '{target.value}'",
            details={"ticket_id": ticket.id, "status": ticket.status.value, "target": target.value},
        )


# --- Creation ---
def create_ticket(repo: TicketRepository, actor: Profile, data: TicketCreate) -> TicketWithDetails:
    """Open a ticket for the actor; at most one active ticket per sector and problem type."""
    if actor.role != UserRole.USER:
        raise ForbiddenException(
            "Apenas usuários podem abrir chamados",
            details={"action": "create", "role": actor.role.value},
        )

    fields = {
        "title": _require_text("title", data.title),
        "description": _require_text("description", data.description),
        "sector": _require_text("sector", data.sector),
        "problem_type_id": _require_text("problem_type_id", data.problem_type_id),
    }

    problem_type = repo.get_problem_type(fields["problem_type_id"])
    if problem_type is not None and not problem_type.is_active:
        raise ValidationException(
            "Tipo de problema inativo",
            details={"problem_type_id": problem_type.id},
        )

    try:
        ticket = repo.create({"user_id": actor.id, **fields})
    except DuplicateTicketException:
        logger.warning(
            "Duplicate ticket refused",
            user_id=actor.id,
            sector=fields["sector"],
            problem_type_id=fields["problem_type_id"],
        )
        raise

    repo.add_history(ticket.id, actor.id, "created")
    logger.info("Ticket created", ticket_id=ticket.id, user_id=actor.id)
    return ticket


# --- Transitions ---
def accept_ticket(repo: TicketRepository, actor: Profile, ticket_id: str) -> TicketWithDetails:
    """open -> in_progress, assigning the actor as technician."""
    _require_staff(actor, "accept")
    ticket = repo.get(ticket_id)
    _require_transition(ticket, TicketStatus.IN_PROGRESS)

    updated = repo.update(
        ticket_id,
        {"status": TicketStatus.IN_PROGRESS, "technician_id": actor.id},
        expected_status=TicketStatus.OPEN,
    )
    repo.add_history(ticket_id, actor.id, "accepted")
    logger.info("Ticket accepted", ticket_id=ticket_id, technician_id=actor.id)
    return updated


def reject_ticket(
    repo: TicketRepository,
    actor: Profile,
    ticket_id: str,
    rejection_reason: Optional[str],
) -> TicketWithDetails:
    """open -> rejected, with a mandatory reason."""
    _require_staff(actor, "reject")
    reason = _require_text("rejection_reason", rejection_reason)
    ticket = repo.get(ticket_id)
    _require_transition(ticket, TicketStatus.REJECTED)

    updated = repo.update(
        ticket_id,
        {"status": TicketStatus.REJECTED, "rejection_reason": reason, "technician_id": actor.id},
        expected_status=TicketStatus.OPEN,
    )
    repo.add_history(ticket_id, actor.id, "rejected", reason)
    logger.info("Ticket rejected", ticket_id=ticket_id, technician_id=actor.id)
    return updated


def complete_ticket(
    repo: TicketRepository,
    actor: Profile,
    ticket_id: str,
    diagnosis: Optional[str],
) -> TicketWithDetails:
    """in_progress -> completed; only the assigned technician, with a mandatory diagnosis."""
    text = _require_text("diagnosis", diagnosis)
    ticket = repo.get(ticket_id)
    _require_transition(ticket, TicketStatus.COMPLETED)
    if ticket.technician_id != actor.id:
        logger.warning("Ticket completion forbidden", ticket_id=ticket_id, actor_id=actor.id)
        raise ForbiddenException(
            "Apenas o técnico responsável pode finalizar o chamado",
            details={"ticket_id": ticket_id},
        )

    updated = repo.update(
        ticket_id,
        {"status": TicketStatus.COMPLETED, "diagnosis": text, "completed_at": get_current_datetime()},
        expected_status=TicketStatus.IN_PROGRESS,
    )
    repo.add_history(ticket_id, actor.id, "completed", text)
    logger.info("Ticket completed", ticket_id=ticket_id, technician_id=actor.id)
    return updated


# --- Queries ---
def get_ticket(repo: TicketRepository, actor: Profile, ticket_id: str) -> TicketWithDetails:
    """Single projection; users only see their own tickets."""
    ticket = repo.get(ticket_id)
    if not actor.is_staff and ticket.user_id != actor.id:
        raise ForbiddenException("Chamado de outro usuário", details={"ticket_id": ticket_id})
    return ticket


def list_tickets_for(
    repo: TicketRepository,
    actor: Profile,
    status: Optional[TicketStatus] = None,
    sector: Optional[str] = None,
    problem_type_id: Optional[str] = None,
) -> List[TicketWithDetails]:
    """Tickets visible to the actor: all of them for staff, their own for users."""
    filters = TicketFilter(
        user_id=actor.id,
        status=status,
        sector=sector,
        problem_type_id=problem_type_id,
        is_technician=actor.is_staff,
    )
    return repo.list_with_filters(filters)


def ticket_summary(repo: TicketRepository, actor: Profile) -> TicketSummary:
    """Ticket counts per status over the actor's visible tickets."""
    tickets = list_tickets_for(repo, actor)
    counts = {status: 0 for status in TicketStatus}
    for ticket in tickets:
        counts[ticket.status] += 1
    return TicketSummary(
        total=len(tickets),
        open=counts[TicketStatus.OPEN],
        in_progress=counts[TicketStatus.IN_PROGRESS],
        completed=counts[TicketStatus.COMPLETED],
        rejected=counts[TicketStatus.REJECTED],
    )


def check_duplicates(repo: TicketRepository, actor: Profile, sector: str, problem_type_id: str) -> List[Ticket]:
    """Active tickets of the actor that would block a new one."""
    return repo.check_duplicates(actor.id, sector.strip(), problem_type_id.strip())


def list_problem_types(repo: TicketRepository) -> List[ProblemType]:
    return repo.list_problem_types(active_only=True)
