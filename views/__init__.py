"""
Operator-facing views over the backend.

Modules:
    search: Debouncer and RequestSequencer
    datasources: DataSourceListView (search, pagination, create/update/delete)
    schema_editor: SchemaEditor for schema definitions
    server_status: ServerStatus liveness probe
    imports: ImportListView and RawTransactionListView
"""

__all__ = [
    "Debouncer",
    "RequestSequencer",
    "DataSourceListView",
    "SchemaEditor",
    "ServerStatus",
    "ImportListView",
    "RawTransactionListView",
]
