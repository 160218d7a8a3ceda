"""
Schema-definition form operations
"""

from typing import Any, Dict, Optional
from schemas.datasource import FieldType, SchemaDefinition, SchemaField


def default_schema() -> SchemaDefinition:
    return SchemaDefinition(
        fields=[],
        date_format="YYYY-MM-DD",
        default_mappings={},
        required_fields=["date", "amount", "description"]
    )


class SchemaEditor:
    """
    Edits a copy of a data source's schema definition.

    ``schema`` always holds a complete definition that can be sent back
    unchanged; nothing here talks to the backend.
    """

    def __init__(self, schema: Optional[SchemaDefinition] = None):
        self.schema = schema.model_copy(deep=True) if schema is not None else default_schema()

    def add_field(
        self,
        name: str = "",
        display_name: str = "",
        type: FieldType = FieldType.STRING,
        required: bool = False,
        description: str = ""
    ) -> int:
        """Append a field and return its position."""
        field = SchemaField(
            name=name,
            display_name=display_name,
            type=type,
            required=required,
            description=description
        )
        self.schema.fields = [*self.schema.fields, field]
        return len(self.schema.fields) - 1

    def update_field(self, index: int, **changes: Any) -> SchemaField:
        field = self.schema.fields[index]
        updated = SchemaField.model_validate({**field.model_dump(exclude_unset=True), **changes})
        fields = list(self.schema.fields)
        fields[index] = updated
        self.schema.fields = fields
        return updated

    def remove_field(self, index: int) -> SchemaField:
        """Remove a field along with any default mapping that points at it."""
        fields = list(self.schema.fields)
        removed = fields.pop(index)
        self.schema.fields = fields
        self.schema.default_mappings = {
            standard: custom
            for standard, custom in self.schema.default_mappings.items()
            if custom != removed.name
        }
        return removed

    def set_date_format(self, date_format: str) -> None:
        self.schema.date_format = date_format

    def set_default_mapping(self, standard_field: str, custom_field: Optional[str]) -> None:
        mappings = dict(self.schema.default_mappings)
        # an empty selection clears the mapping
        if not custom_field:
            mappings.pop(standard_field, None)
        else:
            mappings[standard_field] = custom_field
        self.schema.default_mappings = mappings

    def set_required(self, field: str, required: bool) -> None:
        if required and field not in self.schema.required_fields:
            self.schema.required_fields = [*self.schema.required_fields, field]
        elif not required:
            self.schema.required_fields = [f for f in self.schema.required_fields if f != field]

    def to_payload(self) -> Dict[str, Any]:
        self.schema.validate_for_save()
        return self.schema.to_payload()
