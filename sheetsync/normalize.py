"""Sheet row → TicketRequest."""

from sheetsync.models import RawRow, TicketRequest


def parse_labels(cell: str | None) -> tuple[str, ...]:
    """Split a comma separated labels cell. Blank pieces are dropped, order is kept."""
    if not cell or not cell.strip():
        return ()
    return tuple(label.strip() for label in cell.split(",") if label.strip())


def _optional(value: str) -> str | None:
    # Blank means "not supplied"; content is trimmed later by the body composer
    return value if value.strip() else None


def normalize(row: RawRow) -> TicketRequest:
    """Build a TicketRequest from a row. The caller drops rows without a title."""
    return TicketRequest(
        title=row.title.strip(),
        labels=parse_labels(row.labels),
        overview=_optional(row.overview),
        ref=_optional(row.ref),
        background=_optional(row.background),
        goals=_optional(row.goals),
        acceptance_criteria=_optional(row.acceptance_criteria),
        notes=_optional(row.notes),
        out_of_scope=_optional(row.out_of_scope),
    )
