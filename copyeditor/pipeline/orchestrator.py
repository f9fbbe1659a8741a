from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, Sequence

from copyeditor.llm.provider import LLMProvider
from copyeditor.models import Chunk, PageUnit, PipelineResult

from .chunk_planner import Estimator, plan_chunks
from .config import PipelineConfiguration
from .executor import RequestExecutor
from .tokens import TokenEstimator

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Chunk, int, int], None]


class PipelineOrchestrator:
    """Plan a document into chunks and run each one through the executor.

    Every chunk is planned before the first request, so configuration errors
    surface without any network activity. Chunks run one at a time in page
    order; a failed chunk is recorded and the run continues.
    """

    def __init__(
        self,
        config: PipelineConfiguration,
        provider: LLMProvider,
        *,
        estimator: Estimator | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.provider = provider
        self.estimator = estimator or TokenEstimator(config.model)
        self.executor = RequestExecutor(
            provider,
            max_attempts=config.max_attempts,
            timeout=config.request_timeout,
            backoff_seconds=config.backoff_seconds,
            sleep=sleep,
        )

    def plan(self, units: Iterable[PageUnit], header: str) -> list[Chunk]:
        return plan_chunks(
            units,
            header,
            self.config.context_window,
            estimator=self.estimator,
            max_units_per_chunk=self.config.units_per_chunk,
            detail=self.config.detail,
        )

    def run(
        self,
        units: Iterable[PageUnit],
        header: str,
        progress: ProgressCallback | None = None,
    ) -> PipelineResult:
        chunks = self.plan(units, header)
        return self.run_chunks(chunks, progress=progress)

    def run_chunks(
        self, chunks: Sequence[Chunk], progress: ProgressCallback | None = None
    ) -> PipelineResult:
        result = PipelineResult()
        total = len(chunks)
        if total == 0:
            logger.info("No pages to review")
            return result

        logger.info(
            "Reviewing %d chunk(s) with %s model %s",
            total,
            self.provider.name,
            self.provider.model,
        )
        for index, chunk in enumerate(chunks, start=1):
            if progress is not None:
                progress(chunk, index, total)
            outcome = self.executor.execute(chunk)
            result.record(outcome)
            if outcome.succeeded:
                logger.info(
                    "%s: %d suggestion(s)",
                    chunk.describe().capitalize(),
                    len(outcome.suggestions),
                )

        if result.has_failures:
            logger.warning(
                "%d of %d chunk(s) failed: %s",
                len(result.failed_chunks),
                total,
                ", ".join(str(chunk_id) for chunk_id in result.failed_chunk_ids),
            )
        return result


def run_pipeline(
    units: Iterable[PageUnit],
    header: str,
    config: PipelineConfiguration,
    provider: LLMProvider,
    *,
    progress: ProgressCallback | None = None,
) -> PipelineResult:
    """Convenience wrapper: build an orchestrator and run it once."""
    return PipelineOrchestrator(config, provider).run(units, header, progress=progress)
