"""Command-line interface for the document copyeditor.

Extracts a PDF page by page, sends it to the configured LLM in as few chunks as
the model's context window allows, and writes the suggested edits to CSV.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import tempfile
from pathlib import Path

from dotenv import load_dotenv

from copyeditor.extraction import DocumentExtractionError, extract_document
from copyeditor.llm import LLMProviderConfigurationError, create_provider
from copyeditor.llm.provider_registry import (
    available_providers,
    default_model_for,
    resolve_provider_name,
)
from copyeditor.models import Chunk, ContentMode, DetailLevel, PageUnit, Severity
from copyeditor.pipeline import (
    ConfigurationError,
    PipelineConfiguration,
    PipelineOrchestrator,
    TokenEstimator,
    plan_chunks,
)
from copyeditor.prompt import load_system_prompt, render_context_header
from copyeditor.results import (
    default_output_path,
    estimate_cost,
    export_results,
    filter_results,
    format_results,
    summarise_results,
)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_PARTIAL = 3
EXIT_INTERRUPTED = 130


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="copyeditor",
        description="Flag copyediting issues in a PDF using an LLM",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Review extracted text (default)
  python -m copyeditor report.pdf --document-type "Annual report" --audience "Board members"

  # Review rendered page images at low detail
  python -m copyeditor slides.pdf --document-type Slides --audience Public --mode images --detail low

  # Show how the document would be chunked without calling the API
  python -m copyeditor report.pdf --document-type Report --audience Staff --dry-run

Environment Variables:
  LLM_PROVIDER                 Transport to use: openai (default) or gemini
  OPENAI_API_KEY               API key for the OpenAI provider
  GEMINI_API_KEY               API key for the Gemini provider
  COPYEDITOR_MODEL             Model name (default: gpt-5 for openai, gemini-2.5-flash for gemini)
  COPYEDITOR_CONTEXT_WINDOW    Context window in tokens (default: 400000 text, 180000 images)
  COPYEDITOR_IMAGES_PER_CHUNK  Maximum page images per request (default: 20)
  COPYEDITOR_MAX_ATTEMPTS      Attempts per chunk, including the first (default: 3)
  COPYEDITOR_DETAIL            Image detail: high or low (default: high)
  COPYEDITOR_REQUEST_TIMEOUT   Seconds before a request is abandoned (default: 120)
  COPYEDITOR_COST_PER_1M_INPUT USD per million input tokens for cost estimates (default: 1.25)
        """,
    )

    parser.add_argument("pdf", type=Path, help="PDF document to review")

    # Document context
    parser.add_argument(
        "--document-type",
        required=True,
        help='Type of document, e.g. "Policy brief" or "Grant proposal"',
    )
    parser.add_argument(
        "--audience",
        required=True,
        help='Intended readers, e.g. "General public" or "Technical reviewers"',
    )

    # Content and model
    parser.add_argument(
        "--mode",
        choices=ContentMode.all_values(),
        default=ContentMode.TEXT.value,
        help="Send extracted text or rendered page images (default: text)",
    )
    parser.add_argument(
        "--model",
        help="Model name (default: COPYEDITOR_MODEL or the provider default)",
    )
    parser.add_argument(
        "--provider",
        choices=available_providers(),
        help="LLM provider (default: openai or LLM_PROVIDER)",
    )
    parser.add_argument(
        "--context-window",
        type=int,
        help="Context window budget in tokens",
    )
    parser.add_argument(
        "--images-per-chunk",
        type=int,
        help="Maximum page images per request in image mode",
    )
    parser.add_argument(
        "--max-attempts",
        type=int,
        help="Attempts per chunk before it is recorded as failed",
    )
    parser.add_argument(
        "--detail",
        choices=DetailLevel.all_values(),
        help="Image detail level in image mode (default: high)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Request timeout in seconds (default: 120)",
    )
    parser.add_argument(
        "--cost-per-1m-input",
        type=float,
        help="USD per million input tokens used for cost estimates (default: 1.25)",
    )

    # Inputs and outputs
    parser.add_argument(
        "--system-prompt",
        type=Path,
        help="File with custom copyediting instructions (default: bundled prompt)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="CSV output path (default: <pdf stem>_copyedit_<timestamp>.csv next to the PDF)",
    )
    parser.add_argument(
        "--severity",
        nargs="+",
        choices=Severity.all_values(),
        help="Only export suggestions with these severities",
    )
    parser.add_argument(
        "--min-confidence",
        type=float,
        help="Only export suggestions with at least this confidence (0-1)",
    )
    parser.add_argument(
        "--dotenv",
        type=Path,
        help="Path to .env file for API keys and settings",
    )

    # Execution mode
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Plan and print the chunks without calling the API",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )

    return parser.parse_args(args)


def build_configuration(
    args: argparse.Namespace, provider_name: str
) -> PipelineConfiguration:
    """Merge CLI flags over environment settings and per-mode defaults.

    Without --model or COPYEDITOR_MODEL the chosen provider's default model is used.
    """
    model = (
        args.model
        or os.environ.get("COPYEDITOR_MODEL")
        or default_model_for(provider_name)
    )
    return PipelineConfiguration.from_env(
        args.mode,
        dotenv_path=args.dotenv,
        model=model,
        context_window=args.context_window,
        max_units_per_chunk=args.images_per_chunk,
        max_attempts=args.max_attempts,
        detail=args.detail,
        request_timeout=args.timeout,
        cost_per_1m_input=args.cost_per_1m_input,
    )


def print_plan(chunks: list[Chunk], cost_per_1m_input: float | None = None) -> None:
    print(f"Planned {len(chunks)} chunk(s):")
    for chunk in chunks:
        flag = "  [overflow]" if chunk.overflow else ""
        print(
            f"  {chunk.describe()}: {chunk.page_count} page(s), "
            f"~{chunk.estimated_tokens} tokens{flag}"
        )

    if cost_per_1m_input is not None:
        total_tokens = sum(chunk.estimated_tokens for chunk in chunks)
        cost = estimate_cost(total_tokens, cost_per_1m_input)
        print(
            f"Estimated minimum cost: ${cost:.4f} "
            f"({total_tokens} input tokens at ${cost_per_1m_input}/1M)"
        )
        print("Note: final cost also depends on response length.")


def _print_progress(chunk: Chunk, index: int, total: int) -> None:
    print(f"  [{index}/{total}] Reviewing {chunk.describe()}...")


def run_review(
    args: argparse.Namespace,
    provider_name: str,
    config: PipelineConfiguration,
    units: list[PageUnit],
    header: str,
) -> int:
    if args.dry_run:
        chunks = plan_chunks(
            units,
            header,
            config.context_window,
            estimator=TokenEstimator(config.model),
            max_units_per_chunk=config.units_per_chunk,
            detail=config.detail,
        )
        print_plan(chunks, config.cost_per_1m_input)
        print("Dry run: no requests sent")
        return EXIT_OK

    system_prompt = load_system_prompt(args.system_prompt)
    provider = create_provider(
        provider_name,
        system_prompt=system_prompt,
        model=config.model,
        dotenv_path=args.dotenv,
        max_completion_tokens=config.max_completion_tokens,
        reasoning_effort=config.reasoning_effort,
    )
    print(f"Using LLM provider: {provider.name} ({provider.model})")

    orchestrator = PipelineOrchestrator(config, provider)
    chunks = orchestrator.plan(units, header)
    print_plan(chunks, config.cost_per_1m_input)
    result = orchestrator.run_chunks(chunks, progress=_print_progress)

    rows = filter_results(
        format_results(result.all_suggestions),
        severities=args.severity,
        min_confidence=args.min_confidence,
    )
    output_path = args.output or default_output_path(args.pdf)
    export_results(rows, output_path)

    print("\n" + "=" * 60)
    print("Summary:")
    print(summarise_results(result, cost_per_1m_input=config.cost_per_1m_input))
    print(f"Results saved to {output_path}")
    print("=" * 60)

    if result.has_failures:
        print(
            "Warning: some chunks failed; their pages were not reviewed.",
            file=sys.stderr,
        )
        return EXIT_PARTIAL
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI.

    Returns:
        0 on success, 3 when some chunks failed, 1 on error, 130 on interrupt
    """
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        # Load .env before anything reads LLM_PROVIDER or COPYEDITOR_* settings
        if args.dotenv:
            load_dotenv(dotenv_path=str(args.dotenv), override=True)
        else:
            load_dotenv(override=True)

        provider_name = resolve_provider_name(args.provider)
        config = build_configuration(args, provider_name)
        header = render_context_header(args.document_type, args.audience)

        print(f"Extracting {args.pdf} ({config.mode.value} mode)...")
        if config.mode is ContentMode.IMAGES:
            # Rendered pages must exist until every request has been sent
            with tempfile.TemporaryDirectory(prefix="copyeditor_") as image_dir:
                units = extract_document(args.pdf, config.mode, image_dir=image_dir)
                print(f"Extracted {len(units)} page(s)")
                return run_review(args, provider_name, config, units, header)

        units = extract_document(args.pdf, config.mode)
        print(f"Extracted {len(units)} page(s)")
        return run_review(args, provider_name, config, units, header)

    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return EXIT_INTERRUPTED
    except (
        ConfigurationError,
        DocumentExtractionError,
        LLMProviderConfigurationError,
        FileNotFoundError,
    ) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        import traceback

        traceback.print_exc()
        return EXIT_ERROR
