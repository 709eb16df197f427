"""Ownership checks that must pass before any content is read or sent upstream."""

from typing import Any

from app.core.collaborators import MetadataStore
from app.core.content_models import ContentRecord, ScopeHandle
from app.core.errors import ForbiddenError, NotFoundError
from app.core.logging import get_logger

logger = get_logger(__name__)


def ensure_scope_access(metadata: MetadataStore, caller_id: str, scope_id: str) -> ScopeHandle:
    """
    Confirm the caller owns a knowledge base.

    Raises:
        NotFoundError: If the knowledge base does not exist
        ForbiddenError: If it belongs to someone else
    """
    scope: dict[str, Any] | None = metadata.get_scope(scope_id)
    if not scope:
        raise NotFoundError("Knowledge base not found")

    owner_id = str(scope.get("user_id"))
    if owner_id != caller_id:
        logger.warning(
            "Scope access denied",
            extra={"scope_id": scope_id, "caller_id": caller_id},
        )
        raise ForbiddenError("Access denied")

    return ScopeHandle(owner_id=owner_id, scope_id=scope_id)


def ensure_item_access(
    metadata: MetadataStore,
    caller_id: str,
    scope_id: str,
    item_id: str,
) -> ContentRecord:
    """
    Confirm the caller owns a content item inside the requested knowledge base.

    Items are looked up by their own id; an item that exists but lives in a
    different knowledge base is reported as not found.
    """
    record = metadata.get_item(item_id)
    if record is None:
        raise NotFoundError("Content not found")

    if record.owner_id != caller_id:
        logger.warning(
            "Content access denied",
            extra={"item_id": item_id, "caller_id": caller_id},
        )
        raise ForbiddenError("Access denied")

    if record.scope_id != scope_id:
        raise NotFoundError("Content not found")

    return record
