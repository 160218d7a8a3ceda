"""
Pydantic schemas for the backend's wire formats.

This package defines the models exchanged with the transaction-matching
backend. Wire names are camelCase; every model accepts both the wire
alias and the Python field name, and dumps back to the wire alias so
payloads round-trip unchanged:

Schemas:
    datasource: Data sources, schema definitions and schema fields
    imports: Import records and raw transactions
    api: Pagination envelope, auth, users, tenants, uploads, health

Usage:
    from schemas.datasource import DataSource, SchemaDefinition
    from schemas.imports import ImportRecord, ImportStatus
    from schemas.api import PaginatedResponse, PreviewUpload

Example:
    schema = SchemaDefinition.model_validate({
        "fields": [{"name": "Txn Date", "displayName": "Date", "type": "date"}],
        "dateFormat": "02/01/2006",
        "defaultMappings": {"date": "Txn Date"},
        "requiredFields": ["date"],
    })

    assert schema.to_payload()["defaultMappings"] == {"date": "Txn Date"}
"""

__all__ = [
    "FieldType",
    "SchemaField",
    "SchemaDefinition",
    "DataSource",
    "DataSourcePayload",
    "ImportStatus",
    "ImportRecord",
    "RawTransaction",
    "Pagination",
    "PaginatedResponse",
    "Identity",
    "Tenant",
    "PreviewUpload",
    "PreviewData",
    "ProcessRequest",
]
