"""Turn pipeline output into table rows and a printable summary."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Iterable

from copyeditor.models import PipelineResult, Severity, Suggestion

logger = logging.getLogger(__name__)

OUTPUT_COLUMNS = [
    "page_number",
    "issue",
    "original_text",
    "suggested_edit",
    "rationale",
    "severity",
    "confidence",
    "is_valid",
]

_SEVERITY_ORDER = {severity.value: index for index, severity in enumerate(Severity)}


def _to_row(suggestion: Suggestion) -> dict[str, Any]:
    return {
        "page_number": suggestion.page_number,
        "issue": suggestion.issue,
        "original_text": suggestion.original_text,
        "suggested_edit": suggestion.suggested_edit,
        "rationale": suggestion.rationale,
        "severity": suggestion.severity.value,
        "confidence": suggestion.confidence,
        "is_valid": suggestion.is_valid,
    }


def format_results(suggestions: Iterable[Suggestion | dict[str, Any]]) -> list[dict[str, Any]]:
    """Return one row per suggestion with an ``is_valid`` flag.

    Raw dicts are validated into :class:`Suggestion` first. Rows are sorted by
    page, then severity (critical first). Rows without a page number sort last.
    """
    normalised = [
        s if isinstance(s, Suggestion) else Suggestion.model_validate(s)
        for s in suggestions
    ]
    rows = [_to_row(s) for s in normalised]
    rows.sort(
        key=lambda row: (
            row["page_number"] is None,
            row["page_number"] or 0,
            _SEVERITY_ORDER[row["severity"]],
        )
    )

    invalid = sum(1 for row in rows if not row["is_valid"])
    if invalid:
        logger.warning(
            "%d suggestion(s) are missing a page number or original text and are "
            "marked invalid",
            invalid,
        )
    return rows


def estimate_cost(tokens: int, cost_per_1m_input: float) -> float:
    """Dollar cost of ``tokens`` input tokens at ``cost_per_1m_input`` USD per million."""
    return tokens / 1_000_000 * cost_per_1m_input


def summarise_results(
    result: PipelineResult, *, cost_per_1m_input: float | None = None
) -> str:
    """Return a short multi-line summary of a run for the console.

    With ``cost_per_1m_input`` the input cost of the reported prompt tokens is
    included. Output tokens are not priced.
    """
    counts = Counter(s.severity for s in result.all_suggestions)
    lines = [f"Total suggestions: {len(result.all_suggestions)}"]
    for severity in Severity:
        lines.append(f"  {severity.value}: {counts.get(severity, 0)}")

    lines.append(f"Chunks processed: {result.chunk_count}")
    if result.failed_chunks:
        lines.append(f"Failed chunks: {len(result.failed_chunks)}")
        for failed in result.failed_chunks:
            start, end = failed.page_range
            pages = f"page {start}" if start == end else f"pages {start}-{end}"
            lines.append(f"  chunk {failed.chunk_id} ({pages}): {failed.error}")
    elif not result.all_suggestions and result.chunk_count:
        lines.append("No issues found.")

    usage = result.total_usage
    if usage is not None:
        lines.append(
            "Token usage: "
            f"prompt={usage.prompt_tokens}, completion={usage.completion_tokens}, "
            f"total={usage.total_tokens}"
        )
        if cost_per_1m_input is not None and usage.prompt_tokens is not None:
            cost = estimate_cost(usage.prompt_tokens, cost_per_1m_input)
            lines.append(f"Estimated input cost: ${cost:.4f}")
    return "\n".join(lines)


def filter_results(
    rows: Iterable[dict[str, Any]],
    *,
    severities: Iterable[Severity | str] | None = None,
    pages: Iterable[int] | None = None,
    min_confidence: float | None = None,
) -> list[dict[str, Any]]:
    """Keep rows matching every given criterion; ``None`` criteria are ignored."""
    wanted_severities = (
        {Severity(s).value for s in severities} if severities is not None else None
    )
    wanted_pages = set(pages) if pages is not None else None

    filtered = []
    for row in rows:
        if wanted_severities is not None and row["severity"] not in wanted_severities:
            continue
        if wanted_pages is not None and row["page_number"] not in wanted_pages:
            continue
        if min_confidence is not None and row["confidence"] < min_confidence:
            continue
        filtered.append(row)
    return filtered
