"""
Record store implementations.
Collections are JSON arrays stored under `{namespace}_{collection}` keys.
"""

import json
from threading import RLock
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.engine import Engine

from helpdesk.config import Settings, get_settings
from helpdesk.core.exceptions import StorageException
from helpdesk.domain.models.stored_collection import StoredCollection
from helpdesk.domain.repositories.record_store import (
    COLLECTIONS,
    PROBLEM_TYPES,
    RecordStore,
)
from helpdesk.infrastructure.database import Base, build_engine, build_session_factory

logger = structlog.get_logger(__name__)

DEFAULT_PROBLEM_TYPES: List[Dict[str, Any]] = [
    {"id": "1", "name": "Problemas com Internet / Conexão de Rede", "is_active": True},
    {"id": "2", "name": "Impressora com Defeito", "is_active": True},
    {"id": "3", "name": "Problemas no Computador (sistema lento, travamentos, etc.)", "is_active": True},
    {"id": "4", "name": "Manutenção de Hardware", "is_active": True},
    {"id": "5", "name": "Instalação de Software", "is_active": True},
    {"id": "6", "name": "Acesso a Sistemas (login, senha, permissões)", "is_active": True},
    {"id": "7", "name": "Atualização de Software / Sistema Operacional", "is_active": True},
    {"id": "8", "name": "Configuração de E-mail ou Conta", "is_active": True},
    {"id": "9", "name": "Outros", "is_active": True},
]


def encode_records(collection: str, records: List[Dict[str, Any]]) -> str:
    try:
        return json.dumps(list(records), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise StorageException(
            f"Não foi possível serializar '{collection}'",
            details={"collection": collection, "reason": str(e)},
        ) from e


def decode_records(collection: str, raw: Optional[str]) -> List[Dict[str, Any]]:
    if raw is None:
        return []
    try:
        records = json.loads(raw)
    except json.JSONDecodeError as e:
        raise StorageException(
            f"Dados corrompidos em '{collection}'",
            details={"collection": collection, "reason": str(e)},
        ) from e
    if not isinstance(records, list):
        raise StorageException(
            f"Dados corrompidos em '{collection}'",
            details={"collection": collection, "reason": "expected a JSON array"},
        )
    for position, record in enumerate(records):
        if not isinstance(record, dict):
            raise StorageException(
                f"Dados corrompidos em '{collection}'",
                details={"collection": collection, "position": position, "reason": "expected a JSON object"},
            )
    return records


class BaseRecordStore(RecordStore):
    """Shared key naming, JSON codec and seeding; subclasses move raw strings."""

    def __init__(self, namespace: str = "support_system"):
        self.namespace = namespace
        self.lock = RLock()

    def key_for(self, collection: str) -> str:
        return f"{self.namespace}_{collection}"

    def _read_raw(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def _write_raw(self, key: str, value: str) -> None:
        raise NotImplementedError

    def _delete_raw(self, key: str) -> None:
        raise NotImplementedError

    def get(self, collection: str) -> List[Dict[str, Any]]:
        return decode_records(collection, self._read_raw(self.key_for(collection)))

    def put(self, collection: str, records: List[Dict[str, Any]]) -> None:
        self._write_raw(self.key_for(collection), encode_records(collection, records))

    def exists(self, collection: str) -> bool:
        return self._read_raw(self.key_for(collection)) is not None

    def delete(self, collection: str) -> None:
        self._delete_raw(self.key_for(collection))

    def initialize(self) -> None:
        with self.lock:
            seeded = []
            if not self.exists(PROBLEM_TYPES):
                self.put(PROBLEM_TYPES, DEFAULT_PROBLEM_TYPES)
                seeded.append(PROBLEM_TYPES)
            for collection in COLLECTIONS:
                if not self.exists(collection):
                    self.put(collection, [])
                    seeded.append(collection)
        if seeded:
            logger.info("Record store initialized", namespace=self.namespace, seeded=seeded)


class InMemoryRecordStore(BaseRecordStore):
    """Process-local store; values still go through the JSON codec."""

    def __init__(self, namespace: str = "support_system"):
        super().__init__(namespace)
        self._data: Dict[str, str] = {}

    def _read_raw(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def _write_raw(self, key: str, value: str) -> None:
        self._data[key] = value

    def _delete_raw(self, key: str) -> None:
        self._data.pop(key, None)


class SQLAlchemyRecordStore(BaseRecordStore):
    """Store backed by the `record_store` table, one committed session per call."""

    def __init__(self, engine: Engine, namespace: str = "support_system"):
        super().__init__(namespace)
        self.engine = engine
        self.session_factory = build_session_factory(engine)

    def create_schema(self) -> None:
        Base.metadata.create_all(bind=self.engine, tables=[StoredCollection.__table__])

    def _read_raw(self, key: str) -> Optional[str]:
        try:
            with self.session_factory() as db:
                row = db.get(StoredCollection, key)
                return row.value if row else None
        except SQLAlchemyError as e:
            raise StorageException("Falha ao ler do banco", details={"key": key, "reason": str(e)}) from e

    def _write_raw(self, key: str, value: str) -> None:
        try:
            with self.session_factory() as db:
                row = db.get(StoredCollection, key)
                if row:
                    row.value = value
                else:
                    db.add(StoredCollection(key=key, value=value))
                db.commit()
        except SQLAlchemyError as e:
            raise StorageException("Falha ao gravar no banco", details={"key": key, "reason": str(e)}) from e

    def _delete_raw(self, key: str) -> None:
        try:
            with self.session_factory() as db:
                row = db.get(StoredCollection, key)
                if row:
                    db.delete(row)
                    db.commit()
        except SQLAlchemyError as e:
            raise StorageException("Falha ao remover do banco", details={"key": key, "reason": str(e)}) from e


def build_record_store(settings: Optional[Settings] = None) -> RecordStore:
    """Build the store selected by STORE_BACKEND, with its schema in place."""
    settings = settings or get_settings()
    if settings.STORE_BACKEND == "memory":
        return InMemoryRecordStore(settings.STORE_NAMESPACE)
    if settings.STORE_BACKEND != "sqlalchemy":
        raise ValueError(f"Unknown STORE_BACKEND: {settings.STORE_BACKEND}")

    store = SQLAlchemyRecordStore(build_engine(settings.DATABASE_URL), settings.STORE_NAMESPACE)
    store.create_schema()
    return store
