"""
Record-store implementation of the Ticket Repository.
Joins with profiles and problem types are computed on every read.
"""

from typing import Any, Dict, List, Optional

import structlog

from helpdesk.core.clock import get_current_datetime
from helpdesk.core.exceptions import (
    DuplicateTicketException,
    EntityNotFoundException,
    InvalidTransitionException,
)
from helpdesk.domain.repositories.record_store import (
    PROBLEM_TYPES,
    PROFILES,
    TICKET_HISTORY,
    TICKETS,
    RecordStore,
)
from helpdesk.domain.repositories.ticket_repository import TicketRepository
from helpdesk.domain.schemas.auth import Profile
from helpdesk.domain.schemas.ticket import (
    ACTIVE_STATUSES,
    ProblemType,
    Ticket,
    TicketFilter,
    TicketHistory,
    TicketStatus,
    TicketWithDetails,
)
from helpdesk.infrastructure.repositories.base_repository import RecordStoreRepository, load_record

logger = structlog.get_logger(__name__)


class RecordStoreTicketRepository(RecordStoreRepository[Ticket], TicketRepository):
    """Ticket repository implementation over a RecordStore."""

    not_found_message = "Chamado não encontrado"

    def __init__(self, store: RecordStore):
        super().__init__(store, TICKETS, Ticket)

    # --- Joins ---
    def _lookups(self) -> tuple[Dict[str, Profile], Dict[str, ProblemType]]:
        profiles = {p.id: p for p in (load_record(Profile, PROFILES, r) for r in self.store.get(PROFILES))}
        problem_types = {pt.id: pt for pt in self.list_problem_types(active_only=False)}
        return profiles, problem_types

    def _project(
        self,
        ticket: Ticket,
        profiles: Dict[str, Profile],
        problem_types: Dict[str, ProblemType],
        history: Optional[List[TicketHistory]] = None,
    ) -> TicketWithDetails:
        creator = profiles.get(ticket.user_id)
        if creator is None:
            logger.warning("Dangling profile reference", ticket_id=ticket.id, user_id=ticket.user_id)
        problem_type = problem_types.get(ticket.problem_type_id)
        if problem_type is None:
            logger.warning(
                "Dangling problem type reference",
                ticket_id=ticket.id,
                problem_type_id=ticket.problem_type_id,
            )
        technician = None
        if ticket.technician_id:
            technician = profiles.get(ticket.technician_id)
            if technician is None:
                logger.warning(
                    "Dangling technician reference",
                    ticket_id=ticket.id,
                    technician_id=ticket.technician_id,
                )

        return TicketWithDetails(
            **ticket.model_dump(),
            profiles=creator,
            problem_types=problem_type,
            technician=technician,
            ticket_history=history,
        )

    def _project_one(self, ticket: Ticket, with_history: bool = False) -> TicketWithDetails:
        profiles, problem_types = self._lookups()
        history = self.list_history(ticket.id) if with_history else None
        return self._project(ticket, profiles, problem_types, history)

    # --- Reads ---
    def get_by_id(self, id: str) -> Optional[TicketWithDetails]:
        ticket = super().get_by_id(id)
        if ticket is None:
            return None
        return self._project_one(ticket, with_history=True)

    def get(self, id: str) -> TicketWithDetails:
        ticket = self.get_by_id(id)
        if ticket is None:
            raise EntityNotFoundException(self.not_found_message, details={"ticket_id": id})
        return ticket

    def list_with_filters(self, filters: TicketFilter) -> List[TicketWithDetails]:
        tickets = super().list()

        # Technicians see every ticket regardless of the requesting identity
        if filters.user_id and not filters.is_technician:
            tickets = [t for t in tickets if t.user_id == filters.user_id]
        if filters.status:
            tickets = [t for t in tickets if t.status == filters.status]
        if filters.sector:
            tickets = [t for t in tickets if t.sector == filters.sector]
        if filters.problem_type_id:
            tickets = [t for t in tickets if t.problem_type_id == filters.problem_type_id]

        # sorted() keeps insertion order for equal timestamps, also with reverse=True
        tickets = sorted(tickets, key=lambda t: t.created_at, reverse=True)

        profiles, problem_types = self._lookups()
        return [self._project(t, profiles, problem_types) for t in tickets]

    def check_duplicates(self, user_id: str, sector: str, problem_type_id: str) -> List[Ticket]:
        tickets = super().list()
        return [
            t for t in tickets
            if t.user_id == user_id
            and t.sector == sector
            and t.problem_type_id == problem_type_id
            and t.status in ACTIVE_STATUSES
        ]

    # --- Writes ---
    def create(self, obj_in: Any) -> TicketWithDetails:
        data = obj_in.model_dump() if hasattr(obj_in, "model_dump") else dict(obj_in)

        with self.store.lock:
            duplicates = self.check_duplicates(data["user_id"], data["sector"], data["problem_type_id"])
            if duplicates:
                raise DuplicateTicketException(details={"ticket_ids": [t.id for t in duplicates]})

            profiles, problem_types = self._lookups()
            if data["user_id"] not in profiles:
                raise EntityNotFoundException("Perfil não encontrado", details={"user_id": data["user_id"]})
            if data["problem_type_id"] not in problem_types:
                raise EntityNotFoundException(
                    "Tipo de problema não encontrado",
                    details={"problem_type_id": data["problem_type_id"]},
                )

            timestamp = get_current_datetime()
            ticket = super().create({
                **data,
                "status": TicketStatus.OPEN,
                "created_at": timestamp,
                "updated_at": timestamp,
            })

        return self._project(ticket, profiles, problem_types)

    def update(
        self,
        id: str,
        obj_in: Dict[str, Any],
        expected_status: Optional[TicketStatus] = None,
    ) -> TicketWithDetails:
        with self.store.lock:
            if expected_status is not None:
                current = super().get_by_id(id)
                if current is None:
                    raise EntityNotFoundException(self.not_found_message, details={"ticket_id": id})
                if current.status != expected_status:
                    raise InvalidTransitionException(
                        f"O chamado está '{current.status.value}', esperado '{expected_status.value}'",
                        details={"ticket_id": id, "status": current.status.value},
                    )
            ticket = super().update(id, obj_in)

        return self._project_one(ticket)

    # --- Problem types ---
    def list_problem_types(self, active_only: bool = True) -> List[ProblemType]:
        problem_types = [load_record(ProblemType, PROBLEM_TYPES, r) for r in self.store.get(PROBLEM_TYPES)]
        if active_only:
            problem_types = [pt for pt in problem_types if pt.is_active]
        return problem_types

    def get_problem_type(self, problem_type_id: str) -> Optional[ProblemType]:
        for pt in self.list_problem_types(active_only=False):
            if pt.id == problem_type_id:
                return pt
        return None

    # --- History ---
    def add_history(
        self,
        ticket_id: str,
        user_id: str,
        action: str,
        description: Optional[str] = None,
    ) -> TicketHistory:
        with self.store.lock:
            records = self.store.get(TICKET_HISTORY)
            entry = TicketHistory(
                id=self._new_id(records),
                ticket_id=ticket_id,
                user_id=user_id,
                action=action,
                description=description,
                created_at=get_current_datetime(),
            )
            records.append(entry.model_dump(mode="json"))
            self.store.put(TICKET_HISTORY, records)
        return entry

    def list_history(self, ticket_id: str) -> List[TicketHistory]:
        return [
            load_record(TicketHistory, TICKET_HISTORY, r)
            for r in self.store.get(TICKET_HISTORY)
            if r.get("ticket_id") == ticket_id
        ]
