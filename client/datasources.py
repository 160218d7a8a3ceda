"""
Data-source registry client: data sources, their imports and raw rows
"""

from typing import List, Optional, Union
from urllib.parse import quote
from pydantic import ValidationError
from client.base import BaseService
from core.exceptions import ClientValidationError
from schemas.api import PaginatedResponse
from schemas.datasource import DataSource, DataSourcePayload, SchemaDefinition
from schemas.imports import ImportRecord, RawTransaction
import logging

logger = logging.getLogger(__name__)


class Endpoints:
    BASE = "/datasources"
    SEARCH = "/datasources/search"

    @staticmethod
    def by_id(data_source_id: str) -> str:
        return f"/datasources/{quote(data_source_id, safe='')}"

    @staticmethod
    def imports(data_source_id: str) -> str:
        return f"/datasources/{quote(data_source_id, safe='')}/imports"

    @staticmethod
    def import_by_id(import_id: str) -> str:
        return f"/imports/{quote(import_id, safe='')}"

    @staticmethod
    def raw_transactions(import_id: str) -> str:
        return f"/imports/{quote(import_id, safe='')}/raw-transactions"

    @staticmethod
    def raw_transaction_by_id(transaction_id: str) -> str:
        return f"/raw-transactions/{quote(transaction_id, safe='')}"


class DataSourceService(BaseService):
    """
    CRUD over data-source definitions plus the read-only import views.

    The schema definition is round-tripped verbatim: whatever the
    backend returns is what the next update sends back.
    """

    async def list_data_sources(self) -> List[DataSource]:
        payload = await self.api.get(Endpoints.BASE)
        sources = self.parse_list(DataSource, payload, Endpoints.BASE)
        logger.debug(f"Retrieved {len(sources)} data sources")
        return sources

    async def search_data_sources(
        self,
        query: str,
        limit: int = 10,
        offset: int = 0
    ) -> PaginatedResponse[DataSource]:
        payload = await self.api.get(
            Endpoints.SEARCH,
            params={"q": query, "limit": limit, "offset": offset}
        )
        return self.parse(PaginatedResponse[DataSource], payload, Endpoints.SEARCH)

    async def get_data_source(self, data_source_id: str) -> DataSource:
        endpoint = Endpoints.by_id(data_source_id)
        return self.parse(DataSource, await self.api.get(endpoint), endpoint)

    async def create_data_source(
        self,
        payload: Union[DataSourcePayload, dict]
    ) -> DataSource:
        body = self._prepare(payload)
        created = await self.api.post(Endpoints.BASE, json=body)
        data_source = self.parse(DataSource, created, Endpoints.BASE)
        logger.info(f"Created data source {data_source.id} ({data_source.name})")
        return data_source

    async def update_data_source(
        self,
        data_source_id: str,
        payload: Union[DataSourcePayload, dict]
    ) -> DataSource:
        endpoint = Endpoints.by_id(data_source_id)
        body = self._prepare(payload)
        updated = await self.api.put(endpoint, json=body)
        logger.info(f"Updated data source {data_source_id}")
        return self.parse(DataSource, updated, endpoint)

    async def delete_data_source(self, data_source_id: str) -> None:
        await self.api.delete(Endpoints.by_id(data_source_id))
        logger.info(f"Deleted data source {data_source_id}")

    async def list_imports(
        self,
        data_source_id: str,
        limit: int = 10,
        offset: int = 0
    ) -> PaginatedResponse[ImportRecord]:
        endpoint = Endpoints.imports(data_source_id)
        payload = await self.api.get(endpoint, params={"limit": limit, "offset": offset})
        return self.parse(PaginatedResponse[ImportRecord], payload, endpoint)

    async def get_import(self, import_id: str) -> ImportRecord:
        endpoint = Endpoints.import_by_id(import_id)
        return self.parse(ImportRecord, await self.api.get(endpoint), endpoint)

    async def delete_import(self, import_id: str) -> None:
        await self.api.delete(Endpoints.import_by_id(import_id))
        logger.info(f"Deleted import {import_id}")

    async def list_raw_transactions(
        self,
        import_id: str,
        limit: int = 10,
        offset: int = 0
    ) -> PaginatedResponse[RawTransaction]:
        endpoint = Endpoints.raw_transactions(import_id)
        payload = await self.api.get(endpoint, params={"limit": limit, "offset": offset})
        return self.parse(PaginatedResponse[RawTransaction], payload, endpoint)

    async def get_raw_transaction(self, transaction_id: str) -> RawTransaction:
        endpoint = Endpoints.raw_transaction_by_id(transaction_id)
        return self.parse(RawTransaction, await self.api.get(endpoint), endpoint)

    @staticmethod
    def _prepare(payload: Union[DataSourcePayload, dict]) -> dict:
        if not isinstance(payload, DataSourcePayload):
            try:
                payload = DataSourcePayload.model_validate(payload)
            except ValidationError as e:
                raise ClientValidationError(
                    "Invalid data source",
                    context={"field_errors": [
                        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
                    ]},
                    original_exception=e
                )
        schema: Optional[SchemaDefinition] = payload.schema_definition
        if schema is not None:
            schema.validate_for_save()
        return payload.to_payload()
