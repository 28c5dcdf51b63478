"""Extraction pipeline: strategies and ML in parallel, merge, validate, LLM fallback.

Stages:
1. Run every applicable strategy and the optional ML extractor concurrently
2. Merge their candidates and select one value per field
3. Sanitize the selected values
4. Ask the LLM extractor when confidence is low or essentials are missing

A failing strategy or extractor never fails the run; a failure of the
pipeline itself yields an empty result carrying the error message.
"""

import asyncio
import inspect
import logging
import time
from dataclasses import replace
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Optional

from jobfusion.config import settings
from jobfusion.constants import (
    LLM_FALLBACK_THRESHOLD,
    MAX_LLM_TEXT_LENGTH,
    MIN_PAGE_TEXT_LENGTH,
)
from jobfusion.models import ExtractionResult, FieldMap
from jobfusion.source import ContentSource, PageSource
from .merger import Merger, flatten_results
from .strategies import StrategyRegistry, StrategyResult, default_strategies
from .validators import sanitize_text

logger = logging.getLogger(__name__)

MLExtractor = Callable[[str], Awaitable[Optional[FieldMap]]]
LLMExtractor = Callable[[str, ExtractionResult], Awaitable[Optional[FieldMap]]]


class PipelineState(str, Enum):
    INIT = "init"
    RUNNING_STRATEGIES = "running_strategies"
    MERGING = "merging"
    VALIDATING = "validating"
    LLM_FALLBACK = "llm_fallback"
    DONE = "done"
    ERROR = "error"


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class ExtractionPipeline:
    """
    Orchestrates one extraction over a page.

    A pipeline instance serves a single page; create a new one per call.
    """

    def __init__(
        self,
        source: ContentSource | str,
        llm_enabled: Optional[bool] = None,
        ml_extractor: Optional[MLExtractor] = None,
        llm_extractor: Optional[LLMExtractor] = None,
        debug: Optional[bool] = None,
        strategies: Optional[Iterable[Any] | StrategyRegistry] = None,
        timeout: Optional[float] = None,
        merger: Optional[Merger] = None,
    ):
        """
        Initialize pipeline.

        Args:
            source: Page to extract from (raw HTML is wrapped in a PageSource)
            llm_enabled: Allow the LLM fallback stage (default from settings)
            ml_extractor: Async callable ``(page_text) -> FieldMap | None``
            llm_extractor: Async callable ``(text, current_result) -> FieldMap | None``
            debug: Log final results and timings at INFO (default from settings)
            strategies: Strategies or a registry (default: built-in strategies)
            timeout: Seconds allowed per external extractor or async strategy
            merger: Merger to use (default: a fresh Merger)
        """
        self.source = PageSource(source) if isinstance(source, str) else source
        self.llm_enabled = settings.llm_enabled if llm_enabled is None else llm_enabled
        self.ml_extractor = ml_extractor
        self.llm_extractor = llm_extractor
        self.debug = settings.debug if debug is None else debug
        self.timeout = settings.extractor_timeout if timeout is None else timeout
        self.merger = merger or Merger()

        if strategies is None:
            self.strategies = default_strategies()
        elif isinstance(strategies, StrategyRegistry):
            self.strategies = strategies.all()
        else:
            self.strategies = sorted(strategies, key=lambda s: getattr(s, "priority", 100))

        self.state = PipelineState.INIT
        self.timing: dict[str, float] = {}

    @property
    def platform(self) -> Optional[str]:
        return getattr(self.source, "platform", None)

    async def extract(self) -> ExtractionResult:
        """
        Run the full pipeline.

        Returns:
            ExtractionResult; never raises
        """
        start = time.perf_counter()
        self.timing = {}

        try:
            self.state = PipelineState.RUNNING_STRATEGIES
            strategy_results, ml_result = await asyncio.gather(
                self.run_dom_strategies(),
                self.run_ml_extraction(),
            )

            self.state = PipelineState.MERGING
            stage_start = time.perf_counter()
            merged = self.merger.merge_results(strategy_results)
            merged = self.merger.merge_dom_and_ml(merged, ml_result)
            result = self.merger.select_best_candidates(merged)
            self.timing["merging"] = _elapsed_ms(stage_start)

            self.state = PipelineState.VALIDATING
            result = self.validate_results(result)

            if self.should_use_llm_fallback(result):
                self.state = PipelineState.LLM_FALLBACK
                stage_start = time.perf_counter()
                result = await self.run_llm_fallback(result)
                self.timing["llm_fallback"] = _elapsed_ms(stage_start)

            self.timing["total"] = _elapsed_ms(start)
            result.meta.timing = dict(self.timing)
            result.meta.platform = self.platform
            self.state = PipelineState.DONE

            if self.debug:
                self._log_result(result)
            return result

        except Exception as e:
            return self._error_result(e, start)

    async def extract_quick(self) -> ExtractionResult:
        """Strategies, selection and sanitization only (no ML, no LLM)."""
        start = time.perf_counter()
        self.timing = {}

        try:
            self.state = PipelineState.RUNNING_STRATEGIES
            strategy_results = await self.run_dom_strategies()

            self.state = PipelineState.MERGING
            stage_start = time.perf_counter()
            result = self.merger.select_best_candidates(self.merger.merge_results(strategy_results))
            self.timing["merging"] = _elapsed_ms(stage_start)

            self.state = PipelineState.VALIDATING
            result = self.validate_results(result)

            self.timing["total"] = _elapsed_ms(start)
            result.meta.timing = dict(self.timing)
            result.meta.platform = self.platform
            self.state = PipelineState.DONE
            return result

        except Exception as e:
            return self._error_result(e, start)

    async def extract_flat(self) -> dict[str, Any]:
        """Full extraction in the flattened consumer form."""
        return flatten_results(await self.extract())

    async def run_dom_strategies(self) -> list[StrategyResult]:
        """Run applicable strategies concurrently; failed ones are dropped."""
        start = time.perf_counter()
        applicable = [s for s in self.strategies if self.is_strategy_applicable(s)]
        logger.debug(f"Running {len(applicable)}/{len(self.strategies)} strategies")

        results = await asyncio.gather(*(self.run_strategy(s) for s in applicable))
        self.timing["dom_strategies"] = _elapsed_ms(start)
        return [r for r in results if r is not None]

    def is_strategy_applicable(self, strategy: Any) -> bool:
        """A strategy without ``is_applicable`` always applies; a raising check does not."""
        check = getattr(strategy, "is_applicable", None)
        if check is None:
            return True
        try:
            return bool(check(self.source))
        except Exception as e:
            logger.debug(f"Applicability check failed for {self._strategy_name(strategy)}: {e}")
            return False

    async def run_strategy(self, strategy: Any) -> Optional[StrategyResult]:
        """
        Run one strategy, sync or async, isolating its failures.

        Returns:
            StrategyResult, or None if the strategy failed, timed out or
            returned something other than a StrategyResult or dict
        """
        name = self._strategy_name(strategy)
        try:
            outcome = strategy.extract(self.source)
            if inspect.isawaitable(outcome):
                outcome = await asyncio.wait_for(outcome, timeout=self.timeout)

            if outcome is None:
                return None
            if isinstance(outcome, dict):
                data = dict(outcome)
                data["metadata"] = {"source": name, **(data.get("metadata") or {})}
                outcome = StrategyResult.from_dict(data)
            elif not isinstance(outcome, StrategyResult):
                logger.debug(f"Strategy {name} returned unsupported {type(outcome).__name__}")
                return None

            dropped = outcome.drop_malformed()
            if dropped:
                logger.debug(f"Strategy {name}: dropped {dropped} malformed candidates")

            logger.debug(f"Strategy {name}: {outcome.total} candidates in {outcome.timing:.1f}ms")
            return outcome
        except asyncio.TimeoutError:
            logger.debug(f"Strategy {name} timed out after {self.timeout}s")
            return None
        except Exception as e:
            logger.debug(f"Strategy {name} failed: {e}")
            return None

    async def run_ml_extraction(self) -> Optional[FieldMap]:
        """Call the ML extractor on the page text; failures yield None."""
        if self.ml_extractor is None:
            return None

        start = time.perf_counter()
        try:
            text = self.source.page_text()
            if len(text) < MIN_PAGE_TEXT_LENGTH:
                logger.debug(f"Page text too short for ML extraction ({len(text)} chars)")
                return None
            return await asyncio.wait_for(self.ml_extractor(text), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"ML extraction timed out after {self.timeout}s")
            return None
        except Exception as e:
            logger.warning(f"ML extraction failed: {e}")
            return None
        finally:
            self.timing["ml_extraction"] = _elapsed_ms(start)

    def validate_results(self, result: ExtractionResult) -> ExtractionResult:
        """Sanitize every value that leaves the pipeline."""
        result.fields = {
            f: replace(
                r,
                value=sanitize_text(r.value),
                alternates=[replace(c, value=sanitize_text(c.value)) for c in r.alternates],
            )
            for f, r in result.fields.items()
        }
        result.meta.conflicts = {
            f: [sanitize_text(v) for v in values] for f, values in result.meta.conflicts.items()
        }
        return result

    def should_use_llm_fallback(self, result: ExtractionResult) -> bool:
        if not self.llm_enabled or self.llm_extractor is None:
            return False
        return (
            result.overall_confidence < LLM_FALLBACK_THRESHOLD
            or not result.position.value
            or not result.company.value
        )

    async def run_llm_fallback(self, result: ExtractionResult) -> ExtractionResult:
        """
        Ask the LLM extractor to fill or confirm fields.

        Args:
            result: Current best result, passed to the extractor as context

        Returns:
            Result merged with the LLM output, or ``result`` unchanged on failure
        """
        try:
            text = self.source.page_text()[:MAX_LLM_TEXT_LENGTH]
            llm_result = await asyncio.wait_for(
                self.llm_extractor(text, result), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.warning(f"LLM fallback timed out after {self.timeout}s")
            return result
        except Exception as e:
            logger.warning(f"LLM fallback failed: {e}")
            return result

        if not llm_result:
            logger.debug("LLM fallback returned nothing")
            return result
        return self.merger.merge_with_llm(result, llm_result)

    def _error_result(self, error: Exception, start: float) -> ExtractionResult:
        self.state = PipelineState.ERROR
        logger.error(f"Extraction pipeline failed: {error}")
        self.timing["total"] = _elapsed_ms(start)

        result = ExtractionResult.empty(error=str(error) or type(error).__name__)
        result.meta.timing = dict(self.timing)
        try:
            result.meta.platform = self.platform
        except Exception:
            result.meta.platform = None
        return result

    def _log_result(self, result: ExtractionResult) -> None:
        for f, field_result in result.fields.items():
            if field_result.value:
                logger.info(
                    f"{f.value}: {field_result.value[:80]!r} "
                    f"({field_result.confidence:.2f}, {field_result.source})"
                )
        timings = ", ".join(f"{stage}={ms:.1f}ms" for stage, ms in result.meta.timing.items())
        logger.info(
            f"Overall confidence {result.overall_confidence:.2f}, "
            f"llm_used={result.meta.llm_used}, {timings}"
        )

    @staticmethod
    def _strategy_name(strategy: Any) -> str:
        return getattr(strategy, "name", None) or type(strategy).__name__


def create_pipeline(source: ContentSource | str, **options) -> ExtractionPipeline:
    """Build a pipeline; options are ExtractionPipeline keyword arguments."""
    return ExtractionPipeline(source, **options)


async def extract(source: ContentSource | str, **options) -> ExtractionResult:
    """Run the full pipeline over a page."""
    return await create_pipeline(source, **options).extract()


async def extract_quick(source: ContentSource | str) -> ExtractionResult:
    """Strategies-only extraction, no ML or LLM."""
    return await create_pipeline(source).extract_quick()
