"""
Upload endpoints used by the import wizard
"""

from typing import Any, Dict, Optional
from client.base import BaseService
from schemas.api import PreviewData, PreviewUpload, ProcessRequest
import logging

logger = logging.getLogger(__name__)

PREVIEW_ENDPOINT = "/uploads/preview"
PREVIEW_DATA_ENDPOINT = "/uploads/preview-data"
PROCESS_ENDPOINT = "/uploads/process"


class UploadService(BaseService):
    """Preview, preview-data and process calls."""

    async def preview(
        self,
        file_name: str,
        content: bytes,
        data_source_id: str,
        content_type: str = "text/csv"
    ) -> PreviewUpload:
        """
        Send the raw file as multipart form data.

        Raises:
            ResponseShapeError: the response lacks ``previewUrl``
        """
        logger.info(f"Uploading {file_name} ({len(content)} bytes) for data source {data_source_id}")
        payload = await self.api.post(
            PREVIEW_ENDPOINT,
            files={"file": (file_name, content, content_type)},
            data={"dataSourceId": data_source_id}
        )
        return self.parse(PreviewUpload, payload, PREVIEW_ENDPOINT)

    async def preview_data(self, preview_url: str) -> PreviewData:
        payload = await self.api.get(PREVIEW_DATA_ENDPOINT, params={"url": preview_url})
        return self.parse(PreviewData, payload, PREVIEW_DATA_ENDPOINT)

    async def process(self, request: ProcessRequest) -> Optional[Dict[str, Any]]:
        """Non-idempotent: each call creates an import record. Never retried."""
        logger.info(
            f"Processing {request.filename} for data source {request.data_source_id} "
            f"with {len(request.column_mappings)} mapped fields"
        )
        return await self.api.post(PROCESS_ENDPOINT, json=request.to_payload())
