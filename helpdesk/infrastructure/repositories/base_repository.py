"""
Record-store implementation of the Base Repository.
Every query is a full scan of one collection.
"""

import secrets
import string
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from helpdesk.core.clock import get_current_datetime
from helpdesk.core.exceptions import EntityNotFoundException, StorageException
from helpdesk.domain.repositories.base import BaseRepository
from helpdesk.domain.repositories.record_store import RecordStore

ModelType = TypeVar("ModelType", bound=BaseModel)

ID_ALPHABET = string.ascii_lowercase + string.digits
ID_LENGTH = 9


def generate_id() -> str:
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_LENGTH))


def load_record(model: Type[ModelType], collection: str, record: Dict[str, Any]) -> ModelType:
    """Validate one stored record; a malformed one is a storage failure, not a caller error."""
    try:
        return model.model_validate(record)
    except ValidationError as e:
        raise StorageException(
            f"Registro inválido em '{collection}'",
            details={"collection": collection, "id": record.get("id"), "reason": str(e)},
        ) from e


class RecordStoreRepository(BaseRepository[ModelType], Generic[ModelType]):
    """Generic repository over one collection of a RecordStore."""

    not_found_message = "Registro não encontrado"

    def __init__(self, store: RecordStore, collection: str, model: Type[ModelType]):
        self.store = store
        self.collection = collection
        self.model = model

    def _load(self) -> List[Dict[str, Any]]:
        return self.store.get(self.collection)

    def _save(self, records: List[Dict[str, Any]]) -> None:
        self.store.put(self.collection, records)

    def _new_id(self, records: List[Dict[str, Any]]) -> str:
        taken = {r.get("id") for r in records}
        new_id = generate_id()
        while new_id in taken:
            new_id = generate_id()
        return new_id

    def get_by_id(self, id: str) -> Optional[ModelType]:
        for record in self._load():
            if record.get("id") == id:
                return load_record(self.model, self.collection, record)
        return None

    def list(self) -> List[ModelType]:
        return [load_record(self.model, self.collection, r) for r in self._load()]

    def create(self, obj_in: Any) -> ModelType:
        if isinstance(obj_in, BaseModel):
            obj_data = obj_in.model_dump(mode="json")
        else:
            obj_data = dict(obj_in)

        with self.store.lock:
            records = self._load()
            obj_data.setdefault("id", self._new_id(records))
            obj = self.model.model_validate(obj_data)
            records.append(obj.model_dump(mode="json"))
            self._save(records)
        return obj

    def update(self, id: str, obj_in: Any) -> ModelType:
        if isinstance(obj_in, BaseModel):
            update_data = obj_in.model_dump(exclude_unset=True, mode="json")
        else:
            update_data = dict(obj_in)

        with self.store.lock:
            records = self._load()
            for index, record in enumerate(records):
                if record.get("id") == id:
                    merged = {**record, **update_data, "id": id}
                    if "updated_at" in self.model.model_fields:
                        merged["updated_at"] = get_current_datetime()
                    obj = self.model.model_validate(merged)
                    records[index] = obj.model_dump(mode="json")
                    self._save(records)
                    return obj
        raise EntityNotFoundException(self.not_found_message, details={"id": id})
