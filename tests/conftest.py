"""
Shared fixtures for the helpdesk test suite.

Every test gets a fresh, initialized in-memory record store; services and
repositories are built on top of it exactly as the API does.
"""

import pytest
from fastapi.testclient import TestClient

from helpdesk.application.services.auth_service import AuthService
from helpdesk.domain.schemas.ticket import TicketCreate
from helpdesk.infrastructure.record_store import InMemoryRecordStore
from helpdesk.infrastructure.repositories.account_repository import RecordStoreAccountRepository
from helpdesk.infrastructure.repositories.ticket_repository import RecordStoreTicketRepository
from helpdesk.main import create_app


@pytest.fixture
def store():
    store = InMemoryRecordStore()
    store.initialize()
    return store


@pytest.fixture
def account_repo(store):
    return RecordStoreAccountRepository(store)


@pytest.fixture
def ticket_repo(store):
    return RecordStoreTicketRepository(store)


@pytest.fixture
def auth(account_repo):
    return AuthService(account_repo)


def _profile(auth, email, name, role=None, sector=None):
    user = auth.sign_up(email, "senha123", name, role=role, sector=sector)
    return auth.get_profile(user.id)


@pytest.fixture
def end_user(auth):
    """Regular user from the TI sector."""
    return _profile(auth, "ana@empresa.com", "Ana Souza", sector="TI")


@pytest.fixture
def other_user(auth):
    return _profile(auth, "bruno@empresa.com", "Bruno Lima", sector="Financeiro")


@pytest.fixture
def technician(auth):
    return _profile(auth, "carlos@empresa.com", "Carlos Tech", role="technician")


@pytest.fixture
def second_technician(auth):
    return _profile(auth, "diana@empresa.com", "Diana Tech", role="technician")


@pytest.fixture
def admin(auth):
    return _profile(auth, "admin@empresa.com", "Admin", role="admin")


@pytest.fixture
def ticket_data():
    return TicketCreate(
        title="Impressora não imprime",
        description="A impressora do andar 2 mostra erro de papel.",
        sector="TI",
        problem_type_id="2",
    )


@pytest.fixture
def client(store):
    app = create_app(store)
    with TestClient(app) as test_client:
        yield test_client
