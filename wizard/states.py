"""
Import wizard states, transition guards and session context
"""

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
from pydantic import BaseModel, Field
from schemas.datasource import DataSource, SchemaDefinition
from wizard.mapping import missing_required_fields, required_fields_for
import enum
import mimetypes


class WizardStep(str, enum.Enum):
    """Linear wizard steps; DONE is terminal"""
    SELECT_SOURCE = "select_source"
    UPLOAD = "upload"
    PREVIEW_MAP = "preview_map"
    CONFIRM = "confirm"
    DONE = "done"


STEP_ORDER = [
    WizardStep.SELECT_SOURCE,
    WizardStep.UPLOAD,
    WizardStep.PREVIEW_MAP,
    WizardStep.CONFIRM,
    WizardStep.DONE,
]


def next_step(step: WizardStep) -> Optional[WizardStep]:
    index = STEP_ORDER.index(step)
    return STEP_ORDER[index + 1] if index + 1 < len(STEP_ORDER) else None


def previous_step(step: WizardStep) -> Optional[WizardStep]:
    index = STEP_ORDER.index(step)
    return STEP_ORDER[index - 1] if index > 0 else None


class UploadFile(BaseModel):
    """A file chosen by the operator"""
    name: str
    content: bytes
    content_type: str = "text/csv"

    @classmethod
    def from_path(cls, path) -> "UploadFile":
        path = Path(path)
        content_type = mimetypes.guess_type(path.name)[0] or "text/csv"
        return cls(name=path.name, content=path.read_bytes(), content_type=content_type)

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def is_csv(self) -> bool:
        return self.name.lower().endswith(".csv")


class WizardContext(BaseModel):
    """Everything the operator has selected or received so far"""
    data_source_id: Optional[str] = None
    data_source: Optional[DataSource] = None
    file: Optional[UploadFile] = None
    preview_url: Optional[str] = None
    columns: List[str] = Field(default_factory=list)
    preview_rows: List[List[Any]] = Field(default_factory=list)
    column_mapping: Dict[str, int] = Field(default_factory=dict)
    date_format: str
    busy: bool = False

    @property
    def schema_definition(self) -> Optional[SchemaDefinition]:
        return self.data_source.schema_definition if self.data_source else None

    @property
    def has_preview(self) -> bool:
        return bool(self.preview_url) and bool(self.columns)

    def required_fields(self) -> List[str]:
        return required_fields_for(self.schema_definition)

    def missing_fields(self) -> List[str]:
        return missing_required_fields(self.required_fields(), self.column_mapping)

    def reset_preview(self) -> None:
        self.data_source = None
        self.preview_url = None
        self.columns = []
        self.preview_rows = []
        self.column_mapping = {}


Guard = Callable[[WizardContext], Optional[str]]


def _source_selected(ctx: WizardContext) -> Optional[str]:
    if not (ctx.data_source_id or "").strip():
        return "Select a data source first"
    return None


def _preview_received(ctx: WizardContext) -> Optional[str]:
    if ctx.file is None:
        return "Choose a file to upload"
    if ctx.busy:
        return "Upload in progress"
    if not ctx.has_preview:
        return "Upload the file to get a preview"
    return None


def _required_fields_mapped(ctx: WizardContext) -> Optional[str]:
    missing = ctx.missing_fields()
    if missing:
        return f"Missing required field mappings: {', '.join(missing)}"
    return None


# Forward transitions; CONFIRM -> DONE happens only through submit()
TRANSITION_GUARDS: Dict[WizardStep, Guard] = {
    WizardStep.SELECT_SOURCE: _source_selected,
    WizardStep.UPLOAD: _preview_received,
    WizardStep.PREVIEW_MAP: _required_fields_mapped,
}
