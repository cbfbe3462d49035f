"""
Search Coordinator
Fans a query out to every enabled source, then scores, enriches and dedups the results
"""
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlparse
import logging
import math
import re
import threading
import time

from ..models.search_result import PartialResult, RankedResult
from ..sources.base import SourceDefinition
from ..sources.registry import SourceRegistry
from .content_type import ContentTypeClassifier
from .dedup import dedupe, rank_key
from .event_bus import EventBus, Events
from .extract import extract_rows, magnet_from_detail_url, resolve_detail
from .fetch import FetchGateway
from .scoring import score
from .settings_manager import SearchConfig

logger = logging.getLogger(__name__)

MAX_VARIANTS = 6
_SOUNDTRACK_RE = re.compile(r"soundtrack|original soundtrack|\bost\b", re.IGNORECASE)
_PARENS_RE = re.compile(r"\(.*?\)")


@dataclass
class SourceHealth:
    attempts: int = 0
    successes: int = 0
    failures: int = 0
    last_error: str = ""
    last_latency_ms: float = 0.0
    last_attempt_at: float = 0.0
    last_success_at: float = 0.0


@dataclass
class SearchReport:
    query: str
    variants: List[str]
    results: List[RankedResult] = field(default_factory=list)
    source_warnings: Dict[str, str] = field(default_factory=dict)


def _strip_parens(text: str) -> str:
    return " ".join(_PARENS_RE.sub(" ", text or "").split())


def build_query_variants(query: Optional[str] = None, title: Optional[str] = None,
                         artist: Optional[str] = None, year=None) -> List[str]:
    """
    Rephrase one request into at most six queries, most specific first.

    Free text yields itself and its parenthesis-free form. A structured
    request also tries title/creator in both orders, the bare title and a
    soundtrack phrasing.
    """
    title = " ".join(str(title or "").split())
    artist = " ".join(str(artist or "").split())
    year = str(year or "").strip()

    if title or artist:
        raw = " ".join(p for p in (title, artist, year) if p)
        candidates = [raw]
        if title and artist:
            candidates.append(f"{title} {artist}")
            candidates.append(f"{artist} {title}")
        if title:
            candidates.append(title)
        if title and artist and not _SOUNDTRACK_RE.search(title):
            candidates.append(f"{title} soundtrack {artist}")
        candidates.append(_strip_parens(raw))
    else:
        raw = " ".join(str(query or "").split())
        candidates = [raw, _strip_parens(raw)]

    variants: List[str] = []
    for candidate in candidates:
        if candidate and candidate not in variants:
            variants.append(candidate)
    return variants[:MAX_VARIANTS]


def fetch_pool_size(registry: SourceRegistry, config: SearchConfig) -> int:
    """Enough fetch workers for every source x variant listing request at once."""
    return max(config.max_workers, MAX_VARIANTS * max(1, len(registry.definitions())))


class SearchCoordinator:
    """Concurrent multi-source search with ranking and dedup"""

    def __init__(
        self,
        registry: SourceRegistry,
        gateway: Optional[FetchGateway] = None,
        event_bus: Optional[EventBus] = None,
        config: Optional[SearchConfig] = None,
    ):
        self.registry = registry
        self.event_bus = event_bus or registry.event_bus or EventBus()
        self.config = config or SearchConfig()
        self.gateway = gateway or FetchGateway(
            max_workers=fetch_pool_size(registry, self.config),
            default_timeout=self.config.per_url_timeout_seconds,
        )
        self.classifier = ContentTypeClassifier(self.config.content_filter_mode)
        self._executor = ThreadPoolExecutor(max_workers=self.config.max_workers,
                                            thread_name_prefix="swarmsearch-enrich")
        self._lock = threading.RLock()
        self._health: Dict[str, SourceHealth] = {}

    def list_sources(self) -> List[Dict]:
        return self.registry.list()

    def source_status(self) -> List[Dict]:
        """Registry listing plus session state and health counters."""
        health = self.get_source_health_snapshot()
        out = []
        for entry in self.registry.list():
            session = self.registry.session(entry["id"])
            entry = dict(entry)
            entry["session"] = session.status() if session is not None else None
            entry["health"] = health.get(entry["id"])
            out.append(entry)
        return out

    def get_source_health_snapshot(self) -> Dict[str, Dict]:
        with self._lock:
            return {
                source_id: {
                    "attempts": h.attempts,
                    "successes": h.successes,
                    "failures": h.failures,
                    "last_error": h.last_error,
                    "last_latency_ms": round(h.last_latency_ms, 2),
                    "last_attempt_at": h.last_attempt_at,
                    "last_success_at": h.last_success_at,
                }
                for source_id, h in self._health.items()
            }

    def search(
        self,
        query: Optional[str] = None,
        *,
        title: Optional[str] = None,
        artist: Optional[str] = None,
        year=None,
        page: int = 1,
        timeout_seconds: Optional[float] = None,
    ) -> List[RankedResult]:
        """
        Search every enabled source and return deduplicated, ranked results.

        Source failures and timeouts only show up as ``source_warnings`` on the
        ``search_completed`` event; only malformed input raises ValueError.
        """
        return self.search_report(
            query, title=title, artist=artist, year=year, page=page, timeout_seconds=timeout_seconds,
        ).results

    def search_report(
        self,
        query: Optional[str] = None,
        *,
        title: Optional[str] = None,
        artist: Optional[str] = None,
        year=None,
        page: int = 1,
        timeout_seconds: Optional[float] = None,
    ) -> SearchReport:
        """Like search(), but also returns the variants and per-source warnings."""
        if isinstance(page, bool) or not isinstance(page, int) or page < 1:
            raise ValueError("page must be an integer >= 1")
        if not (str(query or "").strip() or str(title or "").strip() or str(artist or "").strip()):
            raise ValueError("a query or a title/artist is required")

        variants = build_query_variants(query, title=title, artist=artist, year=year)
        if timeout_seconds is None:
            timeout_seconds = self.config.search_timeout_seconds
        global_timeout = float(timeout_seconds)
        if global_timeout < 0:
            raise ValueError("timeout_seconds must be >= 0")

        self.event_bus.emit(Events.SEARCH_STARTED, {"query": variants[0], "variants": variants, "page": page})

        sources = self.registry.enabled()
        source_warnings: Dict[str, str] = {}
        if not sources:
            self._emit_completed(variants, [], source_warnings)
            return SearchReport(query=variants[0], variants=variants)

        # One worker per source x variant so no listing request waits behind another.
        fan_out = ThreadPoolExecutor(
            max_workers=max(self.config.max_workers, len(sources) * len(variants)),
            thread_name_prefix="swarmsearch-search",
        )
        futures = {}
        try:
            for source in sources:
                for variant in variants:
                    future = fan_out.submit(self._search_source, source, variant, page)
                    futures[future] = (source, variant)

            done, not_done = wait(futures.keys(), timeout=global_timeout)
        finally:
            # In-flight tasks are left running; each is bounded by the per-URL timeout.
            fan_out.shutdown(wait=False)

        collected: List[RankedResult] = []
        completed = 0
        total = len(futures)
        for future in futures:
            source, variant = futures[future]
            if future in done:
                try:
                    partials, latency_ms = future.result()
                    self._record_source_outcome(source.id, True, "", latency_ms)
                    collected.extend(RankedResult.from_partial(p, variant) for p in partials)
                except Exception as e:
                    logger.warning("Source %r failed for query %r: %s", source.id, variant, e)
                    source_warnings.setdefault(source.name, str(e))
                    self._record_source_outcome(source.id, False, str(e), 0.0)
            else:
                message = (
                    f"{source.name} timed out after {global_timeout:g}s; "
                    "results from this source were skipped."
                )
                source_warnings.setdefault(source.name, message)
                self._record_source_outcome(source.id, False, message, 0.0)
            completed += 1
            self.event_bus.emit(Events.SEARCH_PROGRESS, {
                "completed": completed,
                "total": total,
                "source": source.name,
                "warning": source_warnings.get(source.name, ""),
            })
        if not_done:
            logger.info("Global search timeout of %gs exceeded; processing results gathered so far.",
                        global_timeout)

        for result in collected:
            result.score = score(result.query_variant, result.title, result.seeders)

        candidates = self._select_candidates(collected)
        excluded = self._enrich(candidates)

        survivors = [c for c in candidates if c.magnet and id(c) not in excluded]
        final = [c for c in survivors if c.score >= self.config.min_score]
        if not final:
            final = sorted(survivors, key=rank_key)[:self.config.fallback_cap]

        results = dedupe(final)
        self._emit_completed(variants, results, source_warnings)
        return SearchReport(query=variants[0], variants=variants, results=results, source_warnings=source_warnings)

    def _search_source(self, source: SourceDefinition, variant: str, page: int) -> Tuple[List[PartialResult], float]:
        start = time.perf_counter()
        session = self.registry.session(source.id)
        if session is not None:
            # Returns None once attempts are exhausted; the source then runs unauthenticated.
            session.ensure_session(self.gateway)

        urls = source.build_urls(variant, page)
        if not urls:
            raise ValueError(f"{source.name} produced no search URL")
        headers = dict(source.headers())
        parsed = urlparse(urls[0])
        if parsed.scheme and parsed.netloc:
            headers.setdefault("Referer", f"{parsed.scheme}://{parsed.netloc}/")

        response = self.gateway.try_fetch_any(urls, headers=headers, timeout=self.config.per_url_timeout_seconds)
        partials = extract_rows(source, response.text, response.url)
        return partials, (time.perf_counter() - start) * 1000.0

    def _select_candidates(self, collected: List[RankedResult]) -> List[RankedResult]:
        candidates = [r for r in collected if r.score >= self.config.min_score]
        if candidates or not collected:
            return candidates
        k = int(math.floor(len(collected) * self.config.topk_fraction + 0.5))
        k = min(self.config.topk_max, max(self.config.topk_min, k))
        return sorted(collected, key=lambda r: -r.score)[:k]

    def _enrich(self, candidates: List[RankedResult]) -> set:
        """Resolve magnets and rescore; returns ids of records the content policy drops."""
        excluded = set()
        if not candidates:
            return excluded
        futures = {self._executor.submit(self._enrich_one, r): r for r in candidates}
        for future in futures:
            record = futures[future]
            try:
                keep = future.result()
            except Exception as e:
                logger.error("Enrichment failed for %r: %s", record.title, e)
                keep = True
            if not keep:
                excluded.add(id(record))
        return excluded

    def _enrich_one(self, record: RankedResult) -> bool:
        if not record.magnet and record.detail_url:
            record.set_magnet(magnet_from_detail_url(record.detail_url, record.title))
            source = self.registry.get(record.source_id)
            if not record.magnet and source is not None and source.magnet_selector:
                detail = resolve_detail(
                    self.gateway,
                    record.detail_url,
                    source.magnet_selector,
                    headers=source.headers(),
                    timeout=self.config.detail_timeout_seconds,
                )
                if detail:
                    record.set_magnet(detail["magnet"])
                    record.seeders = detail.get("seeders", record.seeders)
                    record.leechers = detail.get("leechers", record.leechers)

        adjusted = self.classifier.apply(
            score(record.query_variant, record.title, record.seeders),
            record.title,
        )
        if adjusted is None:
            return False
        record.score = adjusted
        return True

    def _record_source_outcome(self, source_id: str, ok: bool, error_message: str, latency_ms: float):
        with self._lock:
            h = self._health.setdefault(source_id, SourceHealth())
            now = time.time()
            h.attempts += 1
            h.last_attempt_at = now
            h.last_latency_ms = float(latency_ms or 0.0)
            if ok:
                h.successes += 1
                h.last_error = ""
                h.last_success_at = now
            else:
                h.failures += 1
                h.last_error = error_message

    def _emit_completed(self, variants: List[str], results: List[RankedResult], source_warnings: Dict[str, str]):
        self.event_bus.emit(Events.SEARCH_COMPLETED, {
            "query": variants[0] if variants else "",
            "variants": variants,
            "results": results,
            "count": len(results),
            "source_warnings": source_warnings,
            "source_health": self.get_source_health_snapshot(),
        })

    def shutdown(self):
        self._executor.shutdown(wait=False)
        self.gateway.shutdown()
