"""
Data-source registry list view
"""

from typing import List, Optional, Union
from client.datasources import DataSourceService
from core.config import settings
from core.exceptions import ClientValidationError, OperationNotAllowedError, RequestError
from schemas.datasource import DataSource, DataSourcePayload
from views.search import Debouncer, RequestSequencer
import logging

logger = logging.getLogger(__name__)

ERROR_FETCH = "Failed to load data sources"
ERROR_SAVE = "Failed to save data source"
ERROR_DELETE = "Failed to delete data source"


class DataSourceListView:
    """
    Searchable, paginated list of data sources with create/update/delete.

    Backend failures are reported through ``error`` as a generic message;
    the raw diagnostic only goes to the log. Validation failures are kept
    in ``validation_error`` for inline display.
    """

    def __init__(
        self,
        datasources: DataSourceService,
        page_size: Optional[int] = None,
        debounce_seconds: Optional[float] = None
    ):
        self.datasources = datasources
        self.page = 1
        self.page_size = page_size or settings.DEFAULT_PAGE_SIZE
        self.search_text = ""
        self.query = ""
        self.items: List[DataSource] = []
        self.total = 0
        self.loading = False
        self.error: Optional[str] = None
        self.validation_error: Optional[str] = None
        self.sequencer = RequestSequencer()
        self.debouncer = Debouncer(self.apply_search, debounce_seconds)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def on_search_input(self, text: str) -> None:
        """Keystroke handler; the query only settles after the quiet period."""
        self.search_text = text
        self.debouncer.trigger(text)

    async def apply_search(self, text: str) -> None:
        self.query = (text or "").strip()
        self.page = 1
        await self.refresh()

    async def change_page(self, page: int, page_size: Optional[int] = None) -> None:
        self.page = max(1, page)
        if page_size:
            self.page_size = page_size
        await self.refresh()

    async def refresh(self) -> bool:
        """Load the current page; responses to superseded requests are dropped."""
        ticket = self.sequencer.next()
        query = self.query
        self.loading = True
        try:
            if query:
                response = await self.datasources.search_data_sources(query, self.page_size, self.offset)
                items, total = response.data, response.pagination.total
            else:
                items = await self.datasources.list_data_sources()
                total = len(items)
        except RequestError as e:
            if self.sequencer.is_current(ticket):
                self.loading = False
                self.error = ERROR_FETCH
            logger.error(f"{ERROR_FETCH}: {e.operator_message}")
            return False

        if not self.sequencer.is_current(ticket):
            logger.debug(f"Discarding stale data source response for '{query}'")
            return False

        self.items = items
        self.total = total
        self.error = None
        self.loading = False
        return True

    async def create(self, payload: Union[DataSourcePayload, dict]) -> Optional[DataSource]:
        return await self._save(None, payload)

    async def update(
        self,
        data_source_id: str,
        payload: Union[DataSourcePayload, dict]
    ) -> Optional[DataSource]:
        return await self._save(data_source_id, payload)

    async def _save(self, data_source_id, payload) -> Optional[DataSource]:
        self.validation_error = None
        try:
            if data_source_id is None:
                saved = await self.datasources.create_data_source(payload)
            else:
                saved = await self.datasources.update_data_source(data_source_id, payload)
        except ClientValidationError as e:
            self.validation_error = e.message
            return None
        except RequestError as e:
            self.error = ERROR_SAVE
            logger.error(f"{ERROR_SAVE}: {e.operator_message}")
            return None
        await self.refresh()
        return saved

    async def delete(self, data_source_id: str, confirmed: bool = False) -> bool:
        """
        Delete a data source; the operator must have confirmed it.

        Raises:
            OperationNotAllowedError: deletion was not confirmed
        """
        if not confirmed:
            raise OperationNotAllowedError(
                "Deleting a data source requires confirmation",
                context={"resource_id": data_source_id, "reason": "unconfirmed"}
            )
        try:
            await self.datasources.delete_data_source(data_source_id)
        except RequestError as e:
            self.error = ERROR_DELETE
            logger.error(f"{ERROR_DELETE}: {e.operator_message}")
            return False
        await self.refresh()
        return True
