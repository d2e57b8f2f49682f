"""Render the Markdown issue body for a TicketRequest."""

from sheetsync.models import TicketRequest

# (heading, request field, placeholder) in output order.
# Goals has no placeholder: the heading is emitted alone.
_SECTIONS: tuple[tuple[str, str, str], ...] = (
    ("### Overview", "overview", "<!-- Summarize the issue -->"),
    ("## Ref", "ref", "<!-- Related issues -->"),
    ("## Background", "background", "<!-- Why this issue exists -->"),
    ("## Goals", "goals", ""),
    (
        "### Acceptance Criteria",
        "acceptance_criteria",
        "<!-- Describe when this issue can be considered done -->",
    ),
    ("### Notes", "notes", "<!-- Anything else worth mentioning -->"),
    ("### Out of Scope", "out_of_scope", "<!-- What this issue will not cover -->"),
)

SECTION_HEADINGS = tuple(heading for heading, _, _ in _SECTIONS)


def normalize_newlines(text: str) -> str:
    r"""Turn literal ``\n`` sequences from spreadsheet cells into real line breaks.

    Real line breaks are left alone and the result is trimmed.
    """
    return text.replace("\\r\\n", "\n").replace("\\n", "\n").strip()


def compose(request: TicketRequest) -> str:
    """Return the issue body. Every section is always present, in fixed order."""
    blocks = []
    for heading, field, placeholder in _SECTIONS:
        value = getattr(request, field)
        content = normalize_newlines(value) if value else ""
        content = content or placeholder
        blocks.append(f"{heading}\n{content}" if content else heading)
    return "\n\n".join(blocks)
