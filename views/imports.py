"""
Read-only browsers over imports and their raw transactions
"""

from typing import Any, Dict, List, Optional
from client.datasources import DataSourceService
from core.config import settings
from core.exceptions import OperationNotAllowedError, RequestError
from schemas.datasource import DataSource
from schemas.imports import ImportRecord, ImportStatus, RawTransaction
from views.search import RequestSequencer
import json
import logging

logger = logging.getLogger(__name__)

SUMMARY_FIELD_COUNT = 3
SUMMARY_VALUE_LENGTH = 50


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.2f} KB"
    return f"{size / (1024 * 1024):.2f} MB"


class _PagedView:
    """Page state plus stale-response protection shared by both browsers"""

    error_message = "Failed to load data"

    def __init__(self, datasources: DataSourceService, page_size: Optional[int] = None):
        self.datasources = datasources
        self.page = 1
        self.page_size = page_size or settings.DEFAULT_PAGE_SIZE
        self.total = 0
        self.items: List[Any] = []
        self.loading = False
        self.error: Optional[str] = None
        self.sequencer = RequestSequencer()

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    async def _fetch_page(self):
        raise NotImplementedError

    async def refresh(self) -> bool:
        ticket = self.sequencer.next()
        self.loading = True
        try:
            response = await self._fetch_page()
        except RequestError as e:
            if self.sequencer.is_current(ticket):
                self.loading = False
                self.error = self.error_message
            logger.error(f"{self.error_message}: {e.operator_message}")
            return False

        if not self.sequencer.is_current(ticket):
            logger.debug(f"Discarding stale page {self.page} response")
            return False

        self.items = response.data
        self.total = response.pagination.total
        self.error = None
        self.loading = False
        return True

    async def change_page(self, page: int, page_size: Optional[int] = None) -> bool:
        self.page = max(1, page)
        if page_size:
            self.page_size = page_size
        return await self.refresh()


class ImportListView(_PagedView):
    """Imports of one data source."""

    error_message = "Failed to load imports"

    def __init__(self, datasources: DataSourceService, data_source_id: str, page_size: Optional[int] = None):
        super().__init__(datasources, page_size)
        self.data_source_id = data_source_id
        self.data_source: Optional[DataSource] = None
        self.items: List[ImportRecord] = []

    async def load(self) -> bool:
        try:
            self.data_source = await self.datasources.get_data_source(self.data_source_id)
        except RequestError as e:
            self.error = "Failed to load data source"
            logger.error(f"Failed to load data source {self.data_source_id}: {e.operator_message}")
            return False
        return await self.refresh()

    async def _fetch_page(self):
        return await self.datasources.list_imports(self.data_source_id, self.page_size, self.offset)

    def find(self, import_id: str) -> Optional[ImportRecord]:
        for record in self.items:
            if record.id == import_id:
                return record
        return None

    async def delete(self, import_id: str, confirmed: bool = False) -> bool:
        """
        Delete an import record.

        Raises:
            OperationNotAllowedError: the import is still Processing, or the
                deletion was not confirmed
        """
        record = self.find(import_id) or await self.datasources.get_import(import_id)
        if not record.is_deletable:
            raise OperationNotAllowedError(
                "Imports that are still processing cannot be deleted",
                context={"resource_id": import_id, "reason": f"status={ImportStatus.PROCESSING.value}"}
            )
        if not confirmed:
            raise OperationNotAllowedError(
                "Deleting an import requires confirmation",
                context={"resource_id": import_id, "reason": "unconfirmed"}
            )

        try:
            await self.datasources.delete_import(import_id)
        except RequestError as e:
            self.error = "Failed to delete import"
            logger.error(f"Failed to delete import {import_id}: {e.operator_message}")
            return False
        await self.refresh()
        return True


class RawTransactionListView(_PagedView):
    """Raw rows of one import."""

    error_message = "Failed to load raw transactions"

    def __init__(self, datasources: DataSourceService, import_id: str, page_size: Optional[int] = None):
        super().__init__(datasources, page_size)
        self.import_id = import_id
        self.import_record: Optional[ImportRecord] = None
        self.items: List[RawTransaction] = []

    async def load(self) -> bool:
        try:
            self.import_record = await self.datasources.get_import(self.import_id)
        except RequestError as e:
            self.error = "Failed to load import"
            logger.error(f"Failed to load import {self.import_id}: {e.operator_message}")
            return False
        return await self.refresh()

    async def _fetch_page(self):
        return await self.datasources.list_raw_transactions(self.import_id, self.page_size, self.offset)

    async def details(self, transaction_id: str) -> RawTransaction:
        return await self.datasources.get_raw_transaction(transaction_id)

    @staticmethod
    def summarize(row: RawTransaction) -> Dict[str, Any]:
        """First few fields of a row, values shown as truncated JSON."""
        entries = list(row.data.items())
        return {
            "fields": {
                key: json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)[:SUMMARY_VALUE_LENGTH]
                for key, value in entries[:SUMMARY_FIELD_COUNT]
            },
            "more_fields": max(0, len(entries) - SUMMARY_FIELD_COUNT),
        }
