"""
Pydantic schemas for import records and raw transactions
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional, Dict, Any
from datetime import datetime
import enum


class ImportStatus(str, enum.Enum):
    """Import lifecycle; transitions happen server-side"""
    PROCESSING = "Processing"
    COMPLETED = "Completed"
    FAILED = "Failed"


class ImportRecord(BaseModel):
    """One completed or in-flight file ingestion"""
    id: str
    data_source_id: str = Field(..., alias="dataSourceId")
    file_name: str = Field("", alias="fileName")
    file_size: int = Field(0, alias="fileSize", ge=0)
    status: ImportStatus
    row_count: int = Field(0, alias="rowCount", ge=0)
    success_count: int = Field(0, alias="successCount", ge=0)
    error_count: int = Field(0, alias="errorCount", ge=0)
    imported_by: Optional[str] = Field(None, alias="importedBy")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")
    metadata: Optional[Dict[str, Any]] = None

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def check_counts(self):
        """successCount + errorCount never exceeds rowCount"""
        if self.success_count + self.error_count > self.row_count:
            raise ValueError(
                f"successCount ({self.success_count}) + errorCount ({self.error_count}) "
                f"exceeds rowCount ({self.row_count})"
            )
        return self

    @property
    def is_deletable(self) -> bool:
        return self.status != ImportStatus.PROCESSING


class RawTransaction(BaseModel):
    """One ingested row, stored verbatim with ingestion metadata"""
    id: str
    import_id: str = Field(..., alias="importId")
    data_source_id: str = Field(..., alias="dataSourceId")
    row_number: int = Field(..., alias="rowNumber")
    data: Dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = Field(None, alias="errorMessage")
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    class Config:
        populate_by_name = True
