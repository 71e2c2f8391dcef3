from typing import Any

import structlog

from .errors import RecordNotFoundError
from .persistence import Persistence
from .resources import ResourceDefinition
from .services.records import mask_card_number, parse_record_id, serialize_record

logger = structlog.get_logger(__name__)


def _shape_for_storage(resource: ResourceDefinition, fields: dict[str, Any]) -> dict[str, Any]:
    shaped = dict(fields)
    for name in resource.masked_fields:
        if shaped.get(name) is not None:
            shaped[name] = mask_card_number(shaped[name])
    return shaped


def list_records(persistence: Persistence, resource: ResourceDefinition, user_id: str) -> list[dict[str, Any]]:
    rows = persistence.list_by_user(resource, user_id)
    return [serialize_record(row, resource.hidden_fields) for row in rows]


def create_record(persistence: Persistence, resource: ResourceDefinition, payload: dict[str, Any]) -> dict[str, Any]:
    """Validate a full field set, mask card numbers, and insert it.

    A pydantic ``ValidationError`` escapes before the store is touched.
    """
    fields = resource.create_model.model_validate(payload).model_dump()
    row = persistence.insert(resource, _shape_for_storage(resource, fields))
    record_id = str(row["_id"])
    logger.info("record_created", resource=resource.name, record_id=record_id)
    return {
        "message": f"{resource.label} added successfully",
        "id": record_id,
        resource.id_key: record_id,
    }


def update_record(
    persistence: Persistence,
    resource: ResourceDefinition,
    record_id: str,
    payload: dict[str, Any],
) -> dict[str, Any]:
    # id format is checked before the body so a bad id never reaches validation or the store
    object_id = parse_record_id(record_id)
    fields = resource.update_model.model_validate(payload).model_dump(exclude_none=True)
    row = persistence.update_by_id(resource, object_id, _shape_for_storage(resource, fields))
    logger.info("record_updated", resource=resource.name, record_id=record_id)
    return {
        "message": f"{resource.label} updated successfully",
        resource.updated_key: serialize_record(row, resource.hidden_fields),
    }


def delete_record(persistence: Persistence, resource: ResourceDefinition, record_id: str) -> None:
    object_id = parse_record_id(record_id)
    if persistence.delete_by_id(resource, object_id) == 0:
        raise RecordNotFoundError(resource.label, record_id)
    logger.info("record_deleted", resource=resource.name, record_id=record_id)
