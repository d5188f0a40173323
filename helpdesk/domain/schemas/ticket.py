"""Pydantic schemas for Ticket, ProblemType and ticket history."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from helpdesk.domain.schemas.auth import Profile


class TicketStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    REJECTED = "rejected"


ACTIVE_STATUSES = {TicketStatus.OPEN, TicketStatus.IN_PROGRESS}


class ProblemType(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    is_active: bool = True


class Ticket(BaseModel):
    id: str
    user_id: str
    title: str
    description: str
    sector: str
    problem_type_id: str
    status: TicketStatus = TicketStatus.OPEN
    technician_id: Optional[str] = None
    diagnosis: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None


class TicketHistory(BaseModel):
    id: str
    ticket_id: str
    user_id: str
    action: str  # created, accepted, rejected, completed
    description: Optional[str] = None
    created_at: datetime


class TicketWithDetails(Ticket):
    """Read-only projection: ticket joined with creator, problem type and technician."""
    profiles: Optional[Profile] = None
    problem_types: Optional[ProblemType] = None
    technician: Optional[Profile] = None
    ticket_history: Optional[list[TicketHistory]] = None


class TicketCreate(BaseModel):
    title: str
    description: str
    sector: str
    problem_type_id: str


class TicketFilter(BaseModel):
    user_id: Optional[str] = None
    status: Optional[TicketStatus] = None
    sector: Optional[str] = None
    problem_type_id: Optional[str] = None
    is_technician: bool = False


class RejectRequest(BaseModel):
    rejection_reason: str = ""


class CompleteRequest(BaseModel):
    diagnosis: str = ""


class TicketSummary(BaseModel):
    total: int
    open: int
    in_progress: int
    completed: int
    rejected: int
