"""Conversion between domain entities and realtime-store JSON documents.

A user namespace is a mapping of collection name to ``{id: document}``.
Documents use camelCase keys, epoch-millisecond instants, 0-based invoice
months and plain numbers for money. Null fields are omitted, as the realtime
store never keeps them.
"""

import types
import typing
from dataclasses import MISSING, fields
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from famfin.database.base import Database
from famfin.domain.entities import (
    ENTITY_COLLECTIONS,
    Collection,
    Contribution,
    WriteBatch,
)
from famfin.domain.errors import ValidationError
from famfin.utils.timestamps import from_millis, to_millis

COLLECTION_ENTITIES: dict[Collection, type] = {
    collection: entity_type for entity_type, collection in ENTITY_COLLECTIONS.items()
}

# Domain field names whose document key is not the plain camelCase form.
_RENAMES = {
    "transaction_type": "type",
    "account_type": "type",
    "category_type": "type",
}


def document_key(field_name: str) -> str:
    """Return the document key for a domain field name."""
    if field_name in _RENAMES:
        return _RENAMES[field_name]
    head, *rest = field_name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return to_millis(value)
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Contribution):
        return to_document(value, include_id=True)
    if isinstance(value, tuple):
        return [_encode(item) for item in value]
    return value


def to_document(entity: Any, include_id: bool = False) -> dict[str, Any]:
    """Convert a domain entity to its stored document form."""
    document: dict[str, Any] = {}
    for field in fields(entity):
        if field.name == "id" and not include_id:
            continue
        value = getattr(entity, field.name)
        if value is None or value == ():
            continue
        document[document_key(field.name)] = _encode(value)
    return document


def _unwrap_optional(annotation: Any) -> Any:
    if typing.get_origin(annotation) in (typing.Union, types.UnionType):
        args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _decode(annotation: Any, value: Any) -> Any:
    annotation = _unwrap_optional(annotation)
    if value is None:
        return None
    if annotation is datetime:
        return from_millis(int(value))
    if annotation is Decimal:
        return Decimal(str(value))
    if isinstance(annotation, type) and issubclass(annotation, Enum):
        return annotation(value)
    if typing.get_origin(annotation) is tuple:
        item_type = typing.get_args(annotation)[0]
        items = value.values() if isinstance(value, dict) else value
        if item_type is Contribution:
            return tuple(from_document(Contribution, item.get("id", ""), item) for item in items)
        return tuple(_decode(item_type, item) for item in items)
    if annotation is int:
        return int(value)
    if annotation is bool:
        return bool(value)
    return value


def from_document(entity_type: type, record_id: str, document: dict[str, Any]) -> Any:
    """Build a domain entity from a stored document.

    Unknown keys are ignored. Missing optional fields take their defaults.

    Raises:
        ValidationError: If a required field is missing or malformed
    """
    hints = typing.get_type_hints(entity_type)
    values: dict[str, Any] = {}
    for field in fields(entity_type):
        if field.name == "id":
            values["id"] = record_id
            continue
        key = document_key(field.name)
        if key not in document:
            if field.default is MISSING and field.default_factory is MISSING:
                raise ValidationError(
                    f"{entity_type.__name__} {record_id} is missing required field '{key}'"
                )
            continue
        try:
            values[field.name] = _decode(hints[field.name], document[key])
        except (ValueError, TypeError, ArithmeticError) as e:
            raise ValidationError(
                f"{entity_type.__name__} {record_id} has invalid '{key}': {e}"
            ) from e
    return entity_type(**values)


def export_namespace(db: Database, user_id: str) -> dict[str, dict[str, Any]]:
    """Dump every record of a user namespace as documents."""
    records: dict[Collection, list[Any]] = {
        Collection.ACCOUNTS: db.list_accounts(user_id),
        Collection.CATEGORIES: db.list_categories(user_id),
        Collection.CREDIT_CARDS: db.list_credit_cards(user_id),
        Collection.TRANSACTIONS: db.list_transactions(user_id),
        Collection.INVOICES: db.list_invoices(user_id),
        Collection.GOALS: db.list_goals(user_id),
        Collection.FAMILY: db.list_family_members(user_id),
    }
    return {
        collection.value: {entity.id: to_document(entity) for entity in entities}
        for collection, entities in records.items()
        if entities
    }


def import_namespace(db: Database, user_id: str, data: dict[str, Any]) -> dict[str, int]:
    """Load documents into a user namespace in one atomic write.

    Records with existing ids are replaced. Unknown collections are ignored.

    Returns:
        Number of records loaded per collection
    """
    batch = WriteBatch()
    counts: dict[str, int] = {}
    for collection in Collection:
        documents: Optional[dict[str, Any]] = data.get(collection.value)
        if not documents:
            continue
        if not isinstance(documents, dict):
            raise ValidationError(f"Collection '{collection.value}' must map ids to documents")
        entity_type = COLLECTION_ENTITIES[collection]
        for record_id, document in documents.items():
            batch.put(from_document(entity_type, record_id, document))
        counts[collection.value] = len(documents)
    db.commit(user_id, batch)
    return counts
