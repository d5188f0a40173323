"""
API Dependencies.
The record store and session channel live on app.state; repositories are built per request.
"""

from fastapi import Depends, Request

from helpdesk.application.services.auth_service import AuthService
from helpdesk.domain.repositories.account_repository import AccountRepository
from helpdesk.domain.repositories.record_store import RecordStore
from helpdesk.domain.repositories.ticket_repository import TicketRepository
from helpdesk.infrastructure.repositories.account_repository import RecordStoreAccountRepository
from helpdesk.infrastructure.repositories.ticket_repository import RecordStoreTicketRepository


def get_record_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_account_repository(store: RecordStore = Depends(get_record_store)) -> AccountRepository:
    """Get account repository instance."""
    return RecordStoreAccountRepository(store)


def get_ticket_repository(store: RecordStore = Depends(get_record_store)) -> TicketRepository:
    """Get ticket repository instance."""
    return RecordStoreTicketRepository(store)


def get_auth_service(
    request: Request,
    repo: AccountRepository = Depends(get_account_repository),
) -> AuthService:
    return AuthService(repo, request.app.state.session_channel)
