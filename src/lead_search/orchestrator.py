"""Search run orchestration: pagination loop, result cap, progress and cancellation."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field

from .config import SearchConfig
from .errors import ProviderError
from .fetchers import PoliteFetcher, RequestsFetcher, RobotsPolicy, make_retry_session
from .leads import LeadExtractor
from .logging_utils import run_logger
from .models import (
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_RUNNING,
    STATUS_STOPPED,
    Lead,
    PlacesProvider,
    ProgressRecord,
    ProgressStore,
    RunOutcome,
    RunStats,
    SearchFilters,
)
from .places import MAX_PAGES, PlacesClient
from .query import build_query
from .taxonomy import SectorTaxonomy
from .validation import mx_check, validate_filters

RUNNING_PROGRESS_SHARE = 80.0
RUNNING_PROGRESS_CEILING = 99.0

ClockFn = Callable[[], float]


def new_run_id() -> str:
    return uuid.uuid4().hex


@dataclass
class _RunState:
    run_id: str
    max_results: int
    started_at: float
    leads: list[Lead] = field(default_factory=list)
    examined: int = 0
    progress: float = 0.0
    stop_seen: bool = False
    terminal_written: bool = False


class SearchOrchestrator:
    """Drives one search run at a time against a places provider.

    The orchestrator is the only writer of a run's progress record while it is
    running. Once the record reads ``stopped`` it is left alone until the final
    stopped record; the loop itself ends before the next page fetch, never in
    the middle of a network call.
    """

    def __init__(
        self,
        *,
        provider: PlacesProvider,
        store: ProgressStore,
        extractor: LeadExtractor,
        logger: logging.Logger,
        taxonomy: SectorTaxonomy | None = None,
        fallback_term: str = "business",
        max_pages: int = MAX_PAGES,
        enrich_websites: bool = False,
        clock: ClockFn = time.monotonic,
    ) -> None:
        self._provider = provider
        self._store = store
        self._extractor = extractor
        self._logger = logger
        self._taxonomy = taxonomy or SectorTaxonomy()
        self._fallback_term = fallback_term
        self._max_pages = min(max_pages, MAX_PAGES)
        self._enrich_websites = enrich_websites
        self._clock = clock

    def _stats(self, state: _RunState) -> RunStats:
        scores = [lead.quality_score for lead in state.leads]
        return RunStats(
            total_found=state.examined,
            processed=len(state.leads),
            avg_quality=round(sum(scores) / len(scores), 3) if scores else 0.0,
            duration_seconds=round(self._clock() - state.started_at, 3),
        )

    def _write(self, state: _RunState, status: str, message: str) -> None:
        record = ProgressRecord(
            run_id=state.run_id,
            status=status,
            progress=state.progress,
            message=message,
            stats=self._stats(state),
        )
        self._store.set(record)
        if record.is_terminal:
            state.terminal_written = True

    def _stop_requested(self, run_id: str) -> bool:
        if self._store.stop_requested(run_id):
            return True
        record = self._store.get(run_id)
        return record is not None and record.status == STATUS_STOPPED

    def _advance(self, state: _RunState) -> None:
        # a stopped record is final for pollers; keep the stop and skip the write
        if state.stop_seen or self._stop_requested(state.run_id):
            state.stop_seen = True
            return
        share = RUNNING_PROGRESS_SHARE * state.examined / state.max_results
        state.progress = max(state.progress, round(min(share, RUNNING_PROGRESS_CEILING), 2))
        self._write(
            state,
            STATUS_RUNNING,
            f"Processed {state.examined} results, {len(state.leads)} leads",
        )

    def run(self, filters: SearchFilters, run_id: str | None = None) -> RunOutcome:
        """Execute a search run and return its leads.

        Raises ValidationError before anything is written, and re-raises
        ProviderError after recording the run as failed.
        """
        validate_filters(filters)
        state = _RunState(
            run_id=run_id or new_run_id(),
            max_results=filters.max_results,
            started_at=self._clock(),
        )
        log = run_logger(self._logger, state.run_id)
        query = build_query(filters, self._taxonomy, fallback_term=self._fallback_term)
        log.info("Starting lead search: %s", query)
        self._write(state, STATUS_RUNNING, f"Searching: {query}")

        try:
            stopped = self._paginate(state, query, filters, log)
            if stopped:
                log.info("Search stopped with %d leads", len(state.leads))
                self._write(state, STATUS_STOPPED, "Search stopped by user")
                stats = self._stats(state)
                return RunOutcome(state.run_id, STATUS_STOPPED, tuple(state.leads), stats)

            state.progress = 100.0
            stats = self._stats(state)
            self._write(state, STATUS_COMPLETED, f"Search completed: {len(state.leads)} leads")
            log.info(
                "Search completed: %d leads from %d results, avg quality %.2f in %.1fs",
                stats.processed,
                stats.total_found,
                stats.avg_quality,
                stats.duration_seconds,
            )
            return RunOutcome(state.run_id, STATUS_COMPLETED, tuple(state.leads), stats)
        except ProviderError as exc:
            log.error("Provider error: %s", exc)
            self._write(state, STATUS_FAILED, str(exc))
            raise
        except Exception as exc:
            log.exception("Search failed unexpectedly")
            self._write(state, STATUS_FAILED, f"Unexpected error: {exc}")
            raise
        finally:
            if not state.terminal_written:
                self._write(state, STATUS_FAILED, "Search interrupted")

    def _paginate(
        self,
        state: _RunState,
        query: str,
        filters: SearchFilters,
        log: logging.LoggerAdapter,
    ) -> bool:
        """Run the page loop; return True when a stop request ended it."""
        page_token: str | None = None
        pages = 0
        while len(state.leads) < state.max_results and pages < self._max_pages:
            if pages and page_token is None:
                break
            if state.stop_seen or self._stop_requested(state.run_id):
                return True

            page = self._provider.fetch_page(query, page_token, filters)
            pages += 1
            log.info("Fetched page %d with %d results", pages, len(page.results))
            if not page.results:
                break

            for raw in page.results:
                if len(state.leads) >= state.max_results:
                    break
                state.examined += 1
                detail = self._provider.fetch_details(raw.place_id)
                page_html = ""
                if self._enrich_websites and detail is not None and detail.website:
                    page_html = self._extractor.enrich_page(detail.website)
                lead = self._extractor.to_lead(raw, detail, filters, page_html or None)
                if lead is None:
                    log.debug("Skipped %s", raw.name)
                else:
                    state.leads.append(lead)
                    log.debug("Accepted %s (quality %.2f)", lead.company_name, lead.quality_score)
                self._advance(state)

            page_token = page.next_page_token
        return False


class BackgroundRunner:
    """Runs searches on daemon threads so callers can return immediately and poll."""

    def __init__(
        self,
        orchestrator_factory: Callable[[], SearchOrchestrator],
        *,
        store: ProgressStore,
        logger: logging.Logger,
    ) -> None:
        self._factory = orchestrator_factory
        self._store = store
        self._logger = logger
        self._threads: dict[str, threading.Thread] = {}
        self._outcomes: dict[str, RunOutcome] = {}
        self._errors: dict[str, BaseException] = {}
        self._lock = threading.Lock()

    def start(self, filters: SearchFilters, run_id: str | None = None) -> str:
        """Validate, spawn the run and return its id without waiting."""
        validate_filters(filters)
        run_id = run_id or new_run_id()
        thread = threading.Thread(
            target=self._work, args=(filters, run_id), name=f"lead-search-{run_id}", daemon=True
        )
        with self._lock:
            self._threads[run_id] = thread
        thread.start()
        return run_id

    def _work(self, filters: SearchFilters, run_id: str) -> None:
        try:
            outcome = self._factory().run(filters, run_id=run_id)
        except Exception as exc:
            self._logger.error("Background run %s failed: %s", run_id, exc)
            with self._lock:
                self._errors[run_id] = exc
            return
        with self._lock:
            self._outcomes[run_id] = outcome

    def is_alive(self, run_id: str) -> bool:
        with self._lock:
            thread = self._threads.get(run_id)
        return thread is not None and thread.is_alive()

    def status(self, run_id: str) -> ProgressRecord | None:
        return self._store.get(run_id)

    def request_stop(self, run_id: str) -> bool:
        return self._store.request_stop(run_id)

    def join(self, run_id: str, timeout: float | None = None) -> bool:
        """Block up to ``timeout``; return True once the run thread has finished."""
        with self._lock:
            thread = self._threads.get(run_id)
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def wait(self, run_id: str, timeout: float | None = None) -> RunOutcome | None:
        """Join the run thread; re-raise its error, or return its outcome.

        A finished run is forgotten once its result has been handed out, so a
        second call returns None.
        """
        if not self.join(run_id, timeout):
            return None
        with self._lock:
            self._threads.pop(run_id, None)
            error = self._errors.pop(run_id, None)
            outcome = self._outcomes.pop(run_id, None)
        if error is not None:
            raise error
        return outcome


def build_orchestrator(
    config: SearchConfig, *, store: ProgressStore, logger: logging.Logger
) -> SearchOrchestrator:
    """Wire the concrete provider, extractor and fetchers for one run."""
    session = make_retry_session(config.user_agent, language=config.language)
    provider = PlacesClient(
        session=session,
        api_key=config.api_key,
        timeout=config.request_timeout,
        logger=logger,
        language=config.language,
        region=config.region,
        page_delay=config.page_delay,
        min_request_interval=config.min_request_interval,
        max_pages=config.max_pages,
    )
    fetcher = (
        RequestsFetcher(
            session=session,
            robots_policy=RobotsPolicy(config.user_agent),
            timeout=config.request_timeout,
            logger=logger,
        )
        if config.enrich_websites
        else None
    )
    extractor = LeadExtractor(
        logger=logger,
        fetcher=PoliteFetcher(fetcher, config.min_delay, config.max_delay) if fetcher else None,
        mx_checker=mx_check if config.check_mx else None,
    )
    return SearchOrchestrator(
        provider=provider,
        store=store,
        extractor=extractor,
        logger=logger,
        fallback_term=config.fallback_term,
        max_pages=config.max_pages,
        enrich_websites=config.enrich_websites,
    )
