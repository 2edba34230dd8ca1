"""Base class for the crawl phases run by the crawl job."""

from abc import ABC, abstractmethod
from time import perf_counter
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from provider_crawler.jobs.crawl_job import CrawlContext

logger = structlog.get_logger()


class StepError(Exception):
    """A phase hit a known dead end, e.g. no reachable home page."""


class BaseStep(ABC):
    """Base class for all crawl phases."""

    label: str = "Crawl Phase"
    description: str = ""

    def __init__(self):
        self.log = logger.bind(step=self.label)

    @abstractmethod
    async def run(self, ctx: "CrawlContext") -> str | None:
        """Do the phase's work on `ctx`; return a short result summary."""
        pass

    async def execute(self, ctx: "CrawlContext", step_num: int, total_steps: int) -> bool:
        """Wrapper around run() that handles logging and failure isolation.

        A failing phase never aborts the crawl; the next phase still runs.

        Returns:
            True if the step completed, False if it failed
        """
        log = self.log.bind(seed=ctx.slug)
        log.info(f"Starting step {step_num}/{total_steps}")
        start = perf_counter()

        try:
            result_msg = await self.run(ctx)
        except StepError as e:
            log.warning(f"Step {step_num} gave up", reason=str(e))
            ctx.step_results[self.label] = f"failed: {e}"
            return False
        except Exception as e:
            log.error(f"Step {step_num} failed", error=str(e), error_type=type(e).__name__)
            ctx.step_results[self.label] = f"failed: {e}"
            return False

        duration_ms = round((perf_counter() - start) * 1000, 2)
        ctx.step_results[self.label] = result_msg or "done"
        log.info(f"Step {step_num}/{total_steps} completed", duration_ms=duration_ms, result=result_msg)
        return True
