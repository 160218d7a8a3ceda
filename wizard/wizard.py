"""
Import wizard: select data source -> upload file -> preview/map columns -> confirm.

The wizard is a tagged state machine over ``WizardStep`` with one guard
predicate per forward transition. Every backend failure is recorded in
``error`` with its raw diagnostic (status code, response body) and then
re-raised; selections made before the failure are kept so the operator
can retry.
"""

from typing import Any, Dict, List, Optional
from urllib.parse import quote
from client.datasources import DataSourceService
from client.uploads import UploadService
from core.config import settings
from core.exceptions import (
    ClientValidationError,
    ConsoleException,
    MissingMappingError,
    ResponseShapeError,
    WizardBusyError,
    WizardTransitionError,
)
from schemas.api import ProcessRequest
from schemas.datasource import DataSource
from wizard.mapping import derive_column_mapping, mappable_fields, merge_mappings
from wizard.states import (
    TRANSITION_GUARDS,
    UploadFile,
    WizardContext,
    WizardStep,
    next_step,
    previous_step,
)
import logging

logger = logging.getLogger(__name__)

SAMPLE_ROW_COUNT = 5


def diagnostic(error: ConsoleException) -> str:
    """Raw operator-facing text for an error."""
    return getattr(error, "operator_message", None) or error.message


class ImportWizard:
    """
    One import session.

    Attributes:
        step: Current WizardStep
        context: Selections and preview state (WizardContext)
        data_sources: Data sources offered in the first step
        error: Raw diagnostic of the last failure, or None
        redirect_route: Import list route once the import is submitted
    """

    def __init__(
        self,
        datasources: DataSourceService,
        uploads: UploadService,
        auto_advance: Optional[bool] = None,
        default_date_format: Optional[str] = None
    ):
        self.datasources = datasources
        self.uploads = uploads
        self.auto_advance = settings.WIZARD_AUTO_ADVANCE if auto_advance is None else auto_advance
        self.default_date_format = default_date_format or settings.DEFAULT_DATE_FORMAT
        self.step = WizardStep.SELECT_SOURCE
        self.context = WizardContext(date_format=self.default_date_format)
        self.data_sources: List[DataSource] = []
        self.error: Optional[str] = None
        self.redirect_route: Optional[str] = None
        self.process_result: Optional[Dict[str, Any]] = None

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    @property
    def busy(self) -> bool:
        return self.context.busy

    @property
    def column_mapping(self) -> Dict[str, int]:
        return dict(self.context.column_mapping)

    def blocking_problem(self) -> Optional[str]:
        """Why the current step cannot advance, or None."""
        if self.context.busy:
            return "Request in progress"
        guard = TRANSITION_GUARDS.get(self.step)
        if guard is None:
            return f"Cannot advance from {self.step.value}"
        return guard(self.context)

    @property
    def can_advance(self) -> bool:
        return self.blocking_problem() is None

    def column_label(self, index: int) -> str:
        """Header label of a column, re-derived from the preview's header row."""
        header = self.context.preview_rows[0] if self.context.preview_rows else self.context.columns
        if 0 <= index < len(header) and header[index] not in (None, ""):
            return str(header[index])
        return f"Column {index}"

    def sample_rows(self, limit: int = SAMPLE_ROW_COUNT) -> List[List[Any]]:
        return self.context.preview_rows[1:1 + limit]

    def mappable_fields(self) -> List[str]:
        return mappable_fields(self.context.schema_definition)

    def summary(self) -> Dict[str, Any]:
        ctx = self.context
        source = ctx.data_source or self._known_source(ctx.data_source_id)
        return {
            "data_source_id": ctx.data_source_id,
            "data_source_name": source.name if source else None,
            "file_name": ctx.file.name if ctx.file else None,
            "file_size": ctx.file.size if ctx.file else None,
            "preview_url": ctx.preview_url,
            "date_format": ctx.date_format,
            "mappings": {
                field: self.column_label(index) for field, index in ctx.column_mapping.items()
            },
            "missing_fields": ctx.missing_fields() if ctx.has_preview else [],
        }

    # ------------------------------------------------------------------
    # Step 1: data source
    # ------------------------------------------------------------------

    async def load_data_sources(self) -> List[DataSource]:
        self.error = None
        try:
            self.data_sources = await self.datasources.list_data_sources()
        except ConsoleException as e:
            self._fail(e, "load data sources")
            raise
        return self.data_sources

    def select_source(self, data_source_id: str) -> None:
        self._require_open()
        data_source_id = (data_source_id or "").strip()
        if not data_source_id:
            self._reject(ClientValidationError("Select a data source", context={"field_name": "dataSource"}))
        if data_source_id == self.context.data_source_id:
            return
        self.context.data_source_id = data_source_id
        self._invalidate_preview("data source changed")
        logger.info(f"Selected data source {data_source_id}")

    # ------------------------------------------------------------------
    # Step 2: upload
    # ------------------------------------------------------------------

    def choose_file(self, file: UploadFile) -> None:
        self._require_open()
        if not file.is_csv:
            self._reject(ClientValidationError(
                "Only CSV files can be imported",
                context={"field_name": "file", "file_name": file.name}
            ))
        self.context.file = file
        self._invalidate_preview("file changed")
        logger.info(f"Chose {file.name} ({file.size} bytes)")

    async def upload(self) -> WizardStep:
        """
        Send the chosen file for preview and build the initial mapping.

        On success the wizard is in PREVIEW_MAP, or CONFIRM when auto
        advance is on and every required field is already mapped.
        """
        self._require_step(WizardStep.UPLOAD, "upload")
        ctx = self.context
        if ctx.file is None:
            self._reject(WizardTransitionError(
                "Choose a file to upload",
                context={"step": self.step.value}
            ))
        self._begin()
        try:
            preview = await self.uploads.preview(
                ctx.file.name, ctx.file.content, ctx.data_source_id, ctx.file.content_type
            )

            rows = preview.preview
            if not rows:
                rows = (await self.uploads.preview_data(preview.preview_url)).data
            columns = preview.columns or ([str(c) for c in rows[0]] if rows else [])
            if not columns:
                raise ResponseShapeError(
                    "Preview contains no columns",
                    context={"preview_url": preview.preview_url}
                )
            if not rows:
                rows = [list(columns)]

            # schema snapshot reused for the process request
            data_source = await self.datasources.get_data_source(ctx.data_source_id)
        except ConsoleException as e:
            self._fail(e, f"upload {ctx.file.name}")
            raise
        finally:
            ctx.busy = False

        schema = data_source.schema_definition
        derived = derive_column_mapping(schema.default_mappings if schema else None, columns)

        ctx.data_source = data_source
        ctx.preview_url = preview.preview_url
        ctx.columns = list(columns)
        ctx.preview_rows = rows
        ctx.column_mapping = merge_mappings(preview.suggested_mappings, derived, len(columns))
        if schema and schema.date_format:
            ctx.date_format = schema.date_format

        self.step = WizardStep.PREVIEW_MAP
        logger.info(
            f"Preview ready for {ctx.file.name}: {len(columns)} columns, "
            f"{len(rows) - 1} rows, {len(ctx.column_mapping)} fields mapped"
        )
        if self.auto_advance and not ctx.missing_fields():
            self.step = WizardStep.CONFIRM
            logger.info("All required fields mapped; moving to confirmation")
        return self.step

    # ------------------------------------------------------------------
    # Step 3: mapping
    # ------------------------------------------------------------------

    def set_mapping(self, field: str, column_index: Optional[int]) -> None:
        self._require_mapping_step()
        field = (field or "").strip()
        if not field:
            self._reject(ClientValidationError("Field name is required", context={"field_name": "field"}))
        if column_index is None:
            self.clear_mapping(field)
            return
        if not 0 <= column_index < len(self.context.columns):
            self._reject(ClientValidationError(
                f"No column {column_index} in the uploaded file",
                context={"field_name": field, "column_index": column_index}
            ))
        self.context.column_mapping[field] = column_index
        self.error = None

    def clear_mapping(self, field: str) -> None:
        self._require_mapping_step()
        self.context.column_mapping.pop(field, None)
        if self.step == WizardStep.CONFIRM and self.context.missing_fields():
            self.step = WizardStep.PREVIEW_MAP

    def set_date_format(self, date_format: str) -> None:
        self._require_open()
        date_format = (date_format or "").strip()
        if not date_format:
            self._reject(ClientValidationError("Date format is required", context={"field_name": "dateFormat"}))
        self.context.date_format = date_format

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def advance(self) -> WizardStep:
        """
        Move one step forward if the current step's guard allows it.

        Raises:
            WizardBusyError: an upload or process call is in flight
            MissingMappingError: required fields are unmapped (mapping step)
            WizardTransitionError: any other guard failure
        """
        self._require_open()

        guard = TRANSITION_GUARDS.get(self.step)
        if guard is None:
            self._reject(WizardTransitionError(
                "Submit the import to finish",
                context={"step": self.step.value}
            ))

        if self.step == WizardStep.PREVIEW_MAP:
            missing = self.context.missing_fields()
            if missing:
                self._reject(MissingMappingError(missing))

        problem = guard(self.context)
        if problem:
            self._reject(WizardTransitionError(
                problem,
                context={"step": self.step.value, "target": next_step(self.step).value}
            ))

        self.error = None
        self.step = next_step(self.step)
        logger.debug(f"Wizard advanced to {self.step.value}")
        return self.step

    def back(self) -> WizardStep:
        self._require_open()
        target = previous_step(self.step)
        if target is None:
            raise WizardTransitionError("Already at the first step", context={"step": self.step.value})
        self.step = target
        self.error = None
        return self.step

    # ------------------------------------------------------------------
    # Step 4: confirm
    # ------------------------------------------------------------------

    async def submit(self) -> str:
        """
        Send the process request exactly once.

        Returns:
            The import list route for the selected data source
        """
        self._require_step(WizardStep.CONFIRM, "submit")
        ctx = self.context
        missing = ctx.missing_fields()
        if missing:
            self._reject(MissingMappingError(missing))

        schema = ctx.schema_definition
        request = ProcessRequest(
            preview_url=ctx.preview_url,
            data_source_id=ctx.data_source_id,
            date_format=ctx.date_format,
            column_mappings=dict(ctx.column_mapping),
            create_import_record=True,
            filename=ctx.file.name,
            schema_definition=schema.to_payload() if schema else None
        )

        self._begin()
        try:
            self.process_result = await self.uploads.process(request)
        except ConsoleException as e:
            self._fail(e, f"process {ctx.file.name}")
            raise
        finally:
            ctx.busy = False

        self.step = WizardStep.DONE
        self.redirect_route = f"/datasources/{quote(ctx.data_source_id, safe='')}/imports"
        logger.info(f"Import of {ctx.file.name} submitted; continue at {self.redirect_route}")
        return self.redirect_route

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _known_source(self, data_source_id: Optional[str]) -> Optional[DataSource]:
        for source in self.data_sources:
            if source.id == data_source_id:
                return source
        return None

    def _begin(self) -> None:
        if self.context.busy:
            raise WizardBusyError("A request is already in flight", context={"step": self.step.value})
        self.context.busy = True
        self.error = None

    def _invalidate_preview(self, reason: str) -> None:
        if self.context.preview_url or self.context.column_mapping:
            logger.info(f"Discarding preview and mapping: {reason}")
        self.context.reset_preview()
        self.context.date_format = self.default_date_format
        if self.step in (WizardStep.PREVIEW_MAP, WizardStep.CONFIRM):
            self.step = WizardStep.UPLOAD

    def _require_idle(self) -> None:
        if self.context.busy:
            raise WizardBusyError("Wait for the current request to finish", context={"step": self.step.value})

    def _require_open(self) -> None:
        self._require_idle()
        if self.step == WizardStep.DONE:
            raise WizardTransitionError("Import already submitted", context={"step": self.step.value})

    def _require_step(self, step: WizardStep, action: str) -> None:
        self._require_idle()
        if self.step != step:
            raise WizardTransitionError(
                f"Cannot {action} from step {self.step.value}",
                context={"step": self.step.value, "expected": step.value}
            )

    def _require_mapping_step(self) -> None:
        self._require_idle()
        if self.step not in (WizardStep.PREVIEW_MAP, WizardStep.CONFIRM):
            raise WizardTransitionError(
                "Column mappings can only be edited after the preview",
                context={"step": self.step.value}
            )

    def _reject(self, error: ConsoleException) -> None:
        self.error = error.message
        raise error

    def _fail(self, error: ConsoleException, action: str) -> None:
        self.error = diagnostic(error)
        logger.error(
            f"Failed to {action}: {self.error}",
            extra={"error_context": error.to_dict()}
        )
