"""
Ticket Repository Interface.
CRUD plus the denormalized joins with profiles and problem types.
"""

from typing import Any, Dict, List, Optional

from helpdesk.domain.repositories.base import BaseRepository
from helpdesk.domain.schemas.ticket import (
    ProblemType,
    Ticket,
    TicketFilter,
    TicketHistory,
    TicketStatus,
    TicketWithDetails,
)


class TicketRepository(BaseRepository[TicketWithDetails]):
    """Interface for Ticket-specific operations."""

    def get(self, id: str) -> TicketWithDetails:
        """Projection with history; raises EntityNotFoundException when absent."""
        ...

    def list_with_filters(self, filters: TicketFilter) -> List[TicketWithDetails]:
        """Filtered projections, newest first."""
        ...

    def update(
        self,
        id: str,
        obj_in: Dict[str, Any],
        expected_status: Optional[TicketStatus] = None,
    ) -> TicketWithDetails:
        """Merge fields; refuse to write when the stored status is not `expected_status`."""
        ...

    def check_duplicates(self, user_id: str, sector: str, problem_type_id: str) -> List[Ticket]:
        """Active tickets for the same user, sector and problem type."""
        ...

    def list_problem_types(self, active_only: bool = True) -> List[ProblemType]:
        ...

    def get_problem_type(self, problem_type_id: str) -> Optional[ProblemType]:
        ...

    def add_history(self, ticket_id: str, user_id: str, action: str, description: Optional[str] = None) -> TicketHistory:
        ...

    def list_history(self, ticket_id: str) -> List[TicketHistory]:
        """History entries of a ticket, oldest first."""
        ...
