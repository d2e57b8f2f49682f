"""Shared pydantic models — the contract between the source, the pipeline and the tracker."""

from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field

# Column order of the sheet, A..I
ROW_FIELDS = (
    "title",
    "labels",
    "overview",
    "ref",
    "background",
    "goals",
    "acceptance_criteria",
    "notes",
    "out_of_scope",
)


class RawRow(BaseModel):
    """One sheet row, cells as strings. Missing cells are empty strings."""

    model_config = ConfigDict(frozen=True)

    row_number: int = 0  # sheet row number, header is row 1
    title: str = ""
    labels: str = ""
    overview: str = ""
    ref: str = ""
    background: str = ""
    goals: str = ""
    acceptance_criteria: str = ""
    notes: str = ""
    out_of_scope: str = ""

    @classmethod
    def from_cells(cls, cells: Sequence[object], row_number: int = 0) -> "RawRow":
        values = ["" if cell is None else str(cell) for cell in cells[: len(ROW_FIELDS)]]
        values += [""] * (len(ROW_FIELDS) - len(values))
        return cls(row_number=row_number, **dict(zip(ROW_FIELDS, values)))

    @property
    def has_title(self) -> bool:
        return bool(self.title.strip())


class TicketRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = Field(min_length=1)
    labels: tuple[str, ...] = ()
    overview: str | None = None
    ref: str | None = None
    background: str | None = None
    goals: str | None = None
    acceptance_criteria: str | None = None
    notes: str | None = None
    out_of_scope: str | None = None

    def with_labels(self, labels: Sequence[str]) -> "TicketRequest":
        return self.model_copy(update={"labels": tuple(labels)})


class LabelRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    color: str = ""
    description: str | None = None


class ValidationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    valid_labels: tuple[str, ...] = ()
    invalid_labels: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.invalid_labels


class SubmissionOutcome(BaseModel):
    """Result of submitting one row — minimal, just what the summary needs."""

    model_config = ConfigDict(frozen=True)

    succeeded: bool
    ticket_reference: str | None = None  # issue URL on success
    error_detail: str | None = None
    used_fallback: bool = False  # created without the project after a project failure
    row_number: int | None = None
    title: str | None = None


class RunSummary(BaseModel):
    """Accumulated per-run counts. Mutable, owned by the pipeline."""

    success_count: int = 0
    error_count: int = 0
    skipped_count: int = 0  # rows dropped for a blank title, never attempted
    outcomes: list[SubmissionOutcome] = []

    @property
    def total_count(self) -> int:
        return self.success_count + self.error_count

    @property
    def status(self) -> str:
        if self.total_count == 0:
            return "empty"
        if self.error_count == 0:
            return "success"
        if self.success_count > 0:
            return "partial"
        return "failed"

    def record(self, outcome: SubmissionOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.succeeded:
            self.success_count += 1
        else:
            self.error_count += 1
