"""
Pydantic schemas for data sources and their schema definitions
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict
import enum
import logging

from core.exceptions import SchemaValidationError

logger = logging.getLogger(__name__)


class FieldType(str, enum.Enum):
    """Declared column types"""
    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"


class SchemaField(BaseModel):
    """One declared column of a data source"""
    name: str = ""
    display_name: str = Field("", alias="displayName")
    type: FieldType = FieldType.STRING
    required: bool = False
    format: Optional[str] = None
    description: Optional[str] = None

    class Config:
        populate_by_name = True
        use_enum_values = True
        extra = "allow"


class SchemaDefinition(BaseModel):
    """
    Declared field layout for a data source.

    The definition is owned by its data source and saved as a whole.
    Keys this client does not know about are kept so that the definition
    round-trips verbatim through create/update.
    """
    fields: List[SchemaField] = Field(default_factory=list)
    date_format: str = Field("", alias="dateFormat")
    default_mappings: Dict[str, str] = Field(default_factory=dict, alias="defaultMappings")
    required_fields: List[str] = Field(default_factory=list, alias="requiredFields")

    class Config:
        populate_by_name = True
        extra = "allow"

    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    def undeclared_required_fields(self) -> List[str]:
        """Required names that no declared field carries, in declaration order."""
        declared = set(self.field_names())
        return [name for name in self.required_fields if name not in declared]

    def validate_for_save(self) -> None:
        """
        Check the definition before it is sent to the backend.

        Raises:
            SchemaValidationError: a field name is blank or duplicated
        """
        blank = [i for i, f in enumerate(self.fields) if not f.name.strip()]
        if blank:
            raise SchemaValidationError(
                "Schema field names must not be empty",
                context={"field_positions": blank}
            )

        seen = set()
        duplicates = []
        for f in self.fields:
            if f.name in seen and f.name not in duplicates:
                duplicates.append(f.name)
            seen.add(f.name)
        if duplicates:
            raise SchemaValidationError(
                f"Duplicate schema field names: {', '.join(duplicates)}",
                context={"duplicates": duplicates}
            )

        # requiredFields may name standard transaction fields that are not
        # declared as custom columns; this is accepted
        undeclared = self.undeclared_required_fields()
        if undeclared:
            logger.warning(
                f"Schema requires fields that are not declared: {', '.join(undeclared)}"
            )

    def to_payload(self) -> Dict:
        # keys absent from the loaded definition stay absent
        return self.model_dump(by_alias=True, exclude_unset=True, mode="json")


class DataSource(BaseModel):
    """A named external feed definition"""
    id: str
    name: str
    description: str = ""
    schema_definition: Optional[SchemaDefinition] = Field(None, alias="schemaDefinition")
    created_at: Optional[int] = None  # Unix timestamp in milliseconds
    updated_at: Optional[int] = None

    class Config:
        populate_by_name = True


class DataSourcePayload(BaseModel):
    """Body of create and update requests"""
    name: str = Field(..., min_length=1)
    description: str = ""
    schema_definition: Optional[SchemaDefinition] = Field(None, alias="schemaDefinition")

    class Config:
        populate_by_name = True

    def to_payload(self) -> Dict:
        payload = self.model_dump(by_alias=True, exclude_none=True, exclude={"schema_definition"}, mode="json")
        if self.schema_definition is not None:
            payload["schemaDefinition"] = self.schema_definition.to_payload()
        return payload
