"""Ticket lifecycle: guards, transitions, duplicate policy and visibility."""

import pytest

from helpdesk.application.services import ticket_service
from helpdesk.application.services.ticket_service import (
    ALLOWED_TRANSITIONS,
    accept_ticket,
    can_transition,
    complete_ticket,
    create_ticket,
    get_ticket,
    list_tickets_for,
    reject_ticket,
    ticket_summary,
)
from helpdesk.core.exceptions import (
    DuplicateTicketException,
    EntityNotFoundException,
    ForbiddenException,
    InvalidTransitionException,
    ValidationException,
)
from helpdesk.domain.repositories.record_store import PROBLEM_TYPES
from helpdesk.domain.schemas.ticket import TicketCreate, TicketStatus


@pytest.fixture
def open_ticket(ticket_repo, end_user, ticket_data):
    return create_ticket(ticket_repo, end_user, ticket_data)


@pytest.fixture
def accepted_ticket(ticket_repo, technician, open_ticket):
    return accept_ticket(ticket_repo, technician, open_ticket.id)


def test_transition_table():
    assert can_transition(TicketStatus.OPEN, TicketStatus.IN_PROGRESS)
    assert can_transition(TicketStatus.OPEN, TicketStatus.REJECTED)
    assert can_transition(TicketStatus.IN_PROGRESS, TicketStatus.COMPLETED)
    assert not can_transition(TicketStatus.OPEN, TicketStatus.COMPLETED)
    assert not can_transition(TicketStatus.IN_PROGRESS, TicketStatus.REJECTED)
    assert ALLOWED_TRANSITIONS[TicketStatus.COMPLETED] == set()
    assert ALLOWED_TRANSITIONS[TicketStatus.REJECTED] == set()


class TestCreate:
    def test_new_ticket_is_open_and_unassigned(self, open_ticket, end_user):
        assert open_ticket.status == TicketStatus.OPEN
        assert open_ticket.user_id == end_user.id
        assert open_ticket.technician_id is None
        assert open_ticket.diagnosis is None
        assert open_ticket.completed_at is None

    def test_text_fields_are_trimmed(self, ticket_repo, end_user):
        ticket = create_ticket(ticket_repo, end_user, TicketCreate(
            title="  Sem rede  ",
            description=" Cabo desconectado ",
            sector=" TI ",
            problem_type_id="1",
        ))

        assert ticket.title == "Sem rede"
        assert ticket.sector == "TI"

    @pytest.mark.parametrize("field", ["title", "description", "sector", "problem_type_id"])
    def test_blank_required_field_is_rejected(self, ticket_repo, end_user, ticket_data, field):
        data = ticket_data.model_copy(update={field: "   "})

        with pytest.raises(ValidationException) as exc:
            create_ticket(ticket_repo, end_user, data)

        assert exc.value.details == {"field": field}
        assert ticket_repo.list() == []

    def test_staff_cannot_open_tickets(self, ticket_repo, technician, ticket_data):
        with pytest.raises(ForbiddenException):
            create_ticket(ticket_repo, technician, ticket_data)

    def test_unknown_problem_type_is_not_found(self, ticket_repo, end_user, ticket_data):
        with pytest.raises(EntityNotFoundException):
            create_ticket(ticket_repo, end_user, ticket_data.model_copy(update={"problem_type_id": "77"}))

    def test_inactive_problem_type_is_rejected(self, ticket_repo, store, end_user, ticket_data):
        problem_types = store.get(PROBLEM_TYPES)
        problem_types[1]["is_active"] = False
        store.put(PROBLEM_TYPES, problem_types)

        with pytest.raises(ValidationException):
            create_ticket(ticket_repo, end_user, ticket_data)

    def test_creation_is_recorded_in_history(self, ticket_repo, open_ticket, end_user):
        [entry] = ticket_repo.list_history(open_ticket.id)
        assert entry.action == "created"
        assert entry.user_id == end_user.id


class TestDuplicatePolicy:
    def test_second_active_ticket_is_refused(self, ticket_repo, end_user, ticket_data, open_ticket):
        with pytest.raises(DuplicateTicketException):
            create_ticket(ticket_repo, end_user, ticket_data)
        assert len(ticket_repo.list()) == 1

    def test_in_progress_ticket_still_blocks(self, ticket_repo, end_user, ticket_data, accepted_ticket):
        with pytest.raises(DuplicateTicketException):
            create_ticket(ticket_repo, end_user, ticket_data)

    def test_rejected_ticket_no_longer_blocks(self, ticket_repo, technician, end_user, ticket_data, open_ticket):
        reject_ticket(ticket_repo, technician, open_ticket.id, "Fora do escopo")

        again = create_ticket(ticket_repo, end_user, ticket_data)
        assert again.id != open_ticket.id

    def test_different_users_do_not_block_each_other(self, ticket_repo, other_user, ticket_data, open_ticket):
        ticket = create_ticket(ticket_repo, other_user, ticket_data)
        assert ticket.status == TicketStatus.OPEN

    def test_check_duplicates_reports_blocking_tickets(self, ticket_repo, end_user, open_ticket):
        blocking = ticket_service.check_duplicates(ticket_repo, end_user, " TI ", "2")
        assert [t.id for t in blocking] == [open_ticket.id]


class TestAccept:
    def test_accept_assigns_technician(self, accepted_ticket, technician):
        assert accepted_ticket.status == TicketStatus.IN_PROGRESS
        assert accepted_ticket.technician_id == technician.id
        assert accepted_ticket.technician.name == "Carlos Tech"

    def test_admin_can_accept(self, ticket_repo, admin, open_ticket):
        ticket = accept_ticket(ticket_repo, admin, open_ticket.id)
        assert ticket.technician_id == admin.id

    def test_users_cannot_accept(self, ticket_repo, end_user, open_ticket):
        with pytest.raises(ForbiddenException):
            accept_ticket(ticket_repo, end_user, open_ticket.id)
        assert ticket_repo.get(open_ticket.id).status == TicketStatus.OPEN

    def test_second_accept_is_an_invalid_transition(self, ticket_repo, second_technician, accepted_ticket, technician):
        with pytest.raises(InvalidTransitionException) as exc:
            accept_ticket(ticket_repo, second_technician, accepted_ticket.id)

        assert exc.value.code == "InvalidTransition"
        assert ticket_repo.get(accepted_ticket.id).technician_id == technician.id

    def test_unknown_ticket(self, ticket_repo, technician):
        with pytest.raises(EntityNotFoundException):
            accept_ticket(ticket_repo, technician, "missing")


class TestReject:
    def test_reject_stores_reason(self, ticket_repo, technician, open_ticket):
        ticket = reject_ticket(ticket_repo, technician, open_ticket.id, "  Duplicado  ")

        assert ticket.status == TicketStatus.REJECTED
        assert ticket.rejection_reason == "Duplicado"
        assert [h.action for h in ticket_repo.list_history(open_ticket.id)] == ["created", "rejected"]

    @pytest.mark.parametrize("reason", [None, "", "   "])
    def test_reason_is_required(self, ticket_repo, technician, open_ticket, reason):
        with pytest.raises(ValidationException):
            reject_ticket(ticket_repo, technician, open_ticket.id, reason)
        assert ticket_repo.get(open_ticket.id).status == TicketStatus.OPEN

    def test_cannot_reject_in_progress(self, ticket_repo, technician, accepted_ticket):
        with pytest.raises(InvalidTransitionException):
            reject_ticket(ticket_repo, technician, accepted_ticket.id, "Tarde demais")

    def test_users_cannot_reject(self, ticket_repo, end_user, open_ticket):
        with pytest.raises(ForbiddenException):
            reject_ticket(ticket_repo, end_user, open_ticket.id, "Não quero mais")


class TestComplete:
    def test_complete_sets_diagnosis_and_completed_at(self, ticket_repo, technician, accepted_ticket):
        ticket = complete_ticket(ticket_repo, technician, accepted_ticket.id, "Cabo substituído")

        assert ticket.status == TicketStatus.COMPLETED
        assert ticket.diagnosis == "Cabo substituído"
        assert ticket.completed_at is not None
        assert ticket.technician_id == technician.id

    @pytest.mark.parametrize("diagnosis", [None, "", "  "])
    def test_diagnosis_is_required(self, ticket_repo, technician, accepted_ticket, diagnosis):
        with pytest.raises(ValidationException):
            complete_ticket(ticket_repo, technician, accepted_ticket.id, diagnosis)
        assert ticket_repo.get(accepted_ticket.id).status == TicketStatus.IN_PROGRESS

    def test_open_ticket_cannot_be_completed(self, ticket_repo, technician, open_ticket):
        with pytest.raises(InvalidTransitionException):
            complete_ticket(ticket_repo, technician, open_ticket.id, "Resolvido")

    def test_only_assigned_technician_completes(self, ticket_repo, second_technician, accepted_ticket):
        with pytest.raises(ForbiddenException):
            complete_ticket(ticket_repo, second_technician, accepted_ticket.id, "Resolvido")

    def test_terminal_states_are_final(self, ticket_repo, technician, accepted_ticket):
        complete_ticket(ticket_repo, technician, accepted_ticket.id, "Resolvido")

        with pytest.raises(InvalidTransitionException):
            complete_ticket(ticket_repo, technician, accepted_ticket.id, "De novo")
        with pytest.raises(InvalidTransitionException):
            accept_ticket(ticket_repo, technician, accepted_ticket.id)
        with pytest.raises(InvalidTransitionException):
            reject_ticket(ticket_repo, technician, accepted_ticket.id, "Não")


def test_full_lifecycle_frees_the_slot(ticket_repo, auth, technician):
    auth.sign_up("u1@empresa.com", "senha123", "U1", sector="TI")
    u1 = auth.get_current_profile()
    data = TicketCreate(title="Sem rede", description="Cabo rompido", sector="TI", problem_type_id="2")

    t1 = create_ticket(ticket_repo, u1, data)
    assert t1.status == TicketStatus.OPEN

    t1 = accept_ticket(ticket_repo, technician, t1.id)
    assert t1.status == TicketStatus.IN_PROGRESS
    assert t1.technician_id == technician.id

    t1 = complete_ticket(ticket_repo, technician, t1.id, "Cabo substituído")
    assert t1.status == TicketStatus.COMPLETED
    assert t1.completed_at is not None

    t2 = create_ticket(ticket_repo, u1, data)
    assert t2.status == TicketStatus.OPEN
    assert [h.action for h in ticket_repo.get(t1.id).ticket_history] == ["created", "accepted", "completed"]


class TestVisibility:
    def test_users_list_only_their_own(self, ticket_repo, end_user, other_user, ticket_data):
        mine = create_ticket(ticket_repo, end_user, ticket_data)
        create_ticket(ticket_repo, other_user, ticket_data)

        assert [t.id for t in list_tickets_for(ticket_repo, end_user)] == [mine.id]

    def test_staff_list_everything(self, ticket_repo, end_user, other_user, technician, ticket_data):
        create_ticket(ticket_repo, end_user, ticket_data)
        create_ticket(ticket_repo, other_user, ticket_data)

        assert len(list_tickets_for(ticket_repo, technician)) == 2
        assert len(list_tickets_for(ticket_repo, technician, status=TicketStatus.COMPLETED)) == 0

    def test_get_ticket_of_another_user_is_forbidden(self, ticket_repo, other_user, technician, open_ticket):
        with pytest.raises(ForbiddenException):
            get_ticket(ticket_repo, other_user, open_ticket.id)
        assert get_ticket(ticket_repo, technician, open_ticket.id).id == open_ticket.id

    def test_summary_counts_visible_tickets(self, ticket_repo, end_user, technician, ticket_data):
        first = create_ticket(ticket_repo, end_user, ticket_data)
        create_ticket(ticket_repo, end_user, ticket_data.model_copy(update={"problem_type_id": "3"}))
        reject_ticket(ticket_repo, technician, first.id, "Sem informação")

        summary = ticket_summary(ticket_repo, end_user)

        assert summary.total == 2
        assert summary.open == 1
        assert summary.rejected == 1
        assert summary.in_progress == 0
        assert summary.completed == 0


def test_problem_types_lists_active_seed(ticket_repo):
    names = [pt.name for pt in ticket_service.list_problem_types(ticket_repo)]
    assert len(names) == 9
    assert names[-1] == "Outros"
