"""
Pydantic schemas for the SQL Analyst.

Two groups live here:

* pipeline values exchanged between agents within one chat
  turn (triage decision, query candidates, execution outcome,
  insight, chart spec, assembled response);
* API request/response models for the HTTP endpoints.
"""

from typing import Optional, List, Any, Dict, Literal, Union
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, model_validator


# --- Pipeline Schemas ---

class TableDefinition(BaseModel):
    """One table of the uploaded database, as its DDL."""

    model_config = ConfigDict(frozen=True)

    name: str
    ddl: str = ""


class TriageDecision(BaseModel):
    """Routing decision for a single turn."""

    action: Literal["query", "noquery"]
    multi: bool = False
    subtask: Union[str, List[str], None] = ""
    visualization: bool = False
    reason: Optional[str] = None


class QueryCandidate(BaseModel):
    """A generated SQL statement and why it was chosen."""

    sql: str
    rationale: str = ""


class QueryBatch(BaseModel):
    """Several query candidates produced in multi mode.

    Accepts either ``{"sqls": [...]}`` or a bare JSON array.
    """

    sqls: List[QueryCandidate]

    @model_validator(mode="before")
    @classmethod
    def _wrap_bare_list(cls, data: Any) -> Any:
        """Treat a top-level array as the ``sqls`` list."""
        if isinstance(data, list):
            return {"sqls": data}
        return data


class ExecutionOutcome(BaseModel):
    """Rows from a successful statement, or the engine error."""

    rows: List[Dict[str, Any]] = []
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BatchOutcome(BaseModel):
    """Result of running query candidates in order.

    ``results`` holds one row list per statement that ran
    successfully.  When ``error`` is set the batch stopped at
    that statement and the remaining candidates never ran.
    """

    results: List[List[Dict[str, Any]]] = []
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Insight(BaseModel):
    """Markdown explanation of a result, free of SQL."""

    markdown: str
    summary: str = ""


class Clarification(BaseModel):
    """Question put back to the user after a failed query."""

    clarification: str


class AxisRange(BaseModel):
    """Optional bounds for one chart axis."""

    min: Optional[Any] = None
    max: Optional[Any] = None


class ChartScale(BaseModel):
    """Axis bounds suggested for wide data ranges."""

    x: Optional[AxisRange] = None
    y: Optional[AxisRange] = None


class ChartData(BaseModel):
    """Axis keys and the records to plot."""

    model_config = ConfigDict(extra="allow")

    x: str = ""
    y: str = ""
    data: List[Any] = []


class ChartSpec(BaseModel):
    """
    Rendering-agnostic chart description.

    A ``None`` chart type means no chart was produced.
    Field names are serialised in camelCase for the UI, and
    unknown keys from the model are kept as-is.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    chart_type: Optional[str] = Field(default=None, alias="chartType")
    chart_data: Optional[ChartData] = Field(
        default=None, alias="chartData",
    )
    chart_description: str = Field(
        default="", alias="chartDescription",
    )
    scale: Optional[ChartScale] = None

    def to_payload(self) -> Dict[str, Any]:
        """Serialise with the UI's camelCase keys."""
        return self.model_dump(by_alias=True, exclude_none=True)


ResponseType = Literal["text", "markdown+chart", "clarification"]


class AssembledResponse(BaseModel):
    """The single value a turn hands back for rendering."""

    type: ResponseType
    content: str = ""
    chart: Optional[ChartSpec] = None


# --- API Schemas ---

class ChatRequest(BaseModel):
    """Schema for an inbound chat turn."""

    user: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)


class TurnReply(BaseModel):
    """Outbound chat turn, in the shape the UI expects."""

    model_config = ConfigDict(populate_by_name=True)

    response: str
    chart: Optional[Dict[str, Any]] = None
    download_url: Optional[str] = Field(
        default=None, alias="downloadUrl",
    )
    response_type: ResponseType = Field(
        default="text", alias="responseType",
    )

    def to_payload(self) -> Dict[str, Any]:
        """Serialise with the UI's camelCase keys."""
        return self.model_dump(by_alias=True)


class ChatTurnResponse(BaseModel):
    """Schema for a persisted chat turn."""

    id: str
    user: str
    message: str
    response: str
    created_at: Optional[datetime] = Field(
        default=None, serialization_alias="createdAt",
    )

    model_config = {"from_attributes": True}


class ClearHistoryRequest(BaseModel):
    """Schema for clearing one user's history."""

    user: str = Field(..., min_length=1, max_length=255)


class ClearHistoryResult(BaseModel):
    """Schema for the clear-history response."""

    success: bool
    deleted: int


class UploadResult(BaseModel):
    """Schema for the database upload response."""

    success: bool
    filename: str
