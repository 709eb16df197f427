"""Knowledge base and content record reads (metadata store collaborator)."""

from typing import Any

from supabase import Client

from app.core.content_models import ContentRecord
from app.core.logging import get_logger
from app.db.supabase_client import get_supabase

logger = get_logger(__name__)

_CONTENT_COLUMNS = "id, knowledge_base_id, user_id, file_name, file_type, storage_key, embedding, uploaded_at"


class SupabaseMetadataStore:
    """Read-only access to knowledge bases and their content records."""

    def __init__(
        self,
        client: Client | None = None,
        scope_table: str = "knowledge_bases",
        content_table: str = "content_items",
    ):
        self._client = client
        self.scope_table = scope_table
        self.content_table = content_table

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase()
        return self._client

    def get_scope(self, scope_id: str) -> dict[str, Any] | None:
        """
        Get a knowledge base by id.

        Args:
            scope_id: Knowledge base id

        Returns:
            Row dict (includes user_id) or None if not found
        """
        try:
            response = (
                self.client.table(self.scope_table)
                .select("id, user_id, name")
                .eq("id", scope_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to get knowledge base {scope_id}: {e}")
            raise

        return response.data[0] if response.data else None

    def get_item(self, item_id: str) -> ContentRecord | None:
        """Get a content record by its id."""
        try:
            response = (
                self.client.table(self.content_table)
                .select(_CONTENT_COLUMNS)
                .eq("id", item_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to get content item {item_id}: {e}")
            raise

        if not response.data:
            return None
        return ContentRecord.from_row(response.data[0])

    def query_by_scope(self, scope_id: str) -> list[ContentRecord]:
        """
        List content records of a knowledge base, most recently uploaded first.

        Args:
            scope_id: Knowledge base id

        Returns:
            List of ContentRecord (empty if the knowledge base has no content)
        """
        try:
            response = (
                self.client.table(self.content_table)
                .select(_CONTENT_COLUMNS)
                .eq("knowledge_base_id", scope_id)
                .order("uploaded_at", desc=True)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to list content for knowledge base {scope_id}: {e}")
            raise

        records = []
        for row in response.data or []:
            try:
                records.append(ContentRecord.from_row(row))
            except KeyError as e:
                logger.warning(f"Skipping malformed content row {row.get('id')}: missing {e}")
        return records
