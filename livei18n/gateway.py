"""Translation gateway: cache-first dispatch, retries, and request batching.

Responsibilities:
- Validate and normalize translate calls, compute cache keys, and serve cache hits.
- Deliver cache misses individually with bounded exponential backoff, or
  coalesce them into batch requests with a single fixed-delay retry.
- Write successful results through to the cache and never raise from `translate`.
- Expose cache maintenance, default-language pub/sub, feedback, and lifecycle hooks.

All queue and cache mutation runs on the event-loop thread. Blocking HTTP calls
are moved to a worker thread with `asyncio.to_thread`.
"""

from __future__ import annotations

import asyncio
from time import monotonic
from types import TracebackType
from typing import Any, Awaitable, Callable, Coroutine

from .cache import (
    FileKeyValueStore,
    KeyValueStore,
    LRUCache,
    PersistentCache,
    TranslationCache,
    compute_cache_key,
)
from .client.http import LiveI18nHTTPClient
from .config import LiveI18nConfig
from .errors import TranslationError
from .events import LanguageChangeNotifier, LanguageListener
from .locales import detect_locale
from .models.datatypes import (
    BatchTranslationResponse,
    CacheStats,
    QueuedTranslation,
    RetryObserver,
    TranslationOptions,
    TranslationRequest,
    TranslationResponse,
)
from .parsing import clip_text, normalize_optional_string
from .telemetry.logger import EventLogger

MAX_TEXT_LENGTH = 5000
MAX_TONE_LENGTH = 50
MAX_CONTEXT_LENGTH = 500

Sleeper = Callable[[float], Awaitable[None]]


class LiveI18n:
    """Client-side translation gateway.

    Construct one instance per application and pass it to the code that needs
    translations. `translate` never raises: every failure resolves to the
    original text. Use `async with` (or `ready()`/`aclose()`) to start the
    cache preload and to drain pending batches on shutdown.
    """

    def __init__(
        self,
        config: LiveI18nConfig,
        *,
        cache: TranslationCache | None = None,
        store: KeyValueStore | None = None,
        http_client: LiveI18nHTTPClient | None = None,
        logger: EventLogger | None = None,
        clock: Callable[[], float] = monotonic,
        sleeper: Sleeper = asyncio.sleep,
        locale_detector: Callable[[], str] = detect_locale,
    ) -> None:
        """Build the cache and transport selected by `config`."""

        config.validate()
        self.config = config
        self._logger = logger if logger is not None else EventLogger(debug=config.debug)
        self._log = self._logger.child("gateway")
        self._clock = clock
        self._sleeper = sleeper
        self._locale_detector = locale_detector
        self._http = http_client if http_client is not None else LiveI18nHTTPClient(
            api_key=config.api_key,
            customer_id=config.customer_id,
            endpoint=config.endpoint,
            timeout_seconds=config.timeout_seconds,
        )
        self.cache: TranslationCache = cache if cache is not None else self._create_cache(store)
        self._retry_policy = config.retry.policy()
        self._batch_policy = config.batching.retry_policy()
        self._default_language = normalize_optional_string(config.default_language)
        self._language_notifier = LanguageChangeNotifier()
        self._queue: list[QueuedTranslation] = []
        self._flush_handle: asyncio.TimerHandle | None = None
        self._background_tasks: set[asyncio.Task[Any]] = set()
        self._preload_task: asyncio.Task[int] | None = None
        self._preload_cache: PersistentCache | None = (
            self.cache
            if config.cache.preload and isinstance(self.cache, PersistentCache)
            else None
        )

    def _create_cache(self, store: KeyValueStore | None) -> TranslationCache:
        settings = self.config.cache
        if not settings.persistent:
            return LRUCache(settings.entry_size, settings.ttl_hours)
        if store is None:
            store = FileKeyValueStore(settings.resolved_storage_dir())
        return PersistentCache(
            store,
            settings.entry_size,
            settings.ttl_hours,
            logger=self._logger,
        )

    # Lifecycle

    async def __aenter__(self) -> LiveI18n:
        self._ensure_preload_started()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.aclose()

    def _ensure_preload_started(self) -> None:
        if self._preload_cache is None or self._preload_task is not None:
            return
        self._preload_task = asyncio.get_running_loop().create_task(
            self._run_preload(self._preload_cache)
        )

    async def _run_preload(self, cache: PersistentCache) -> int:
        try:
            return await cache.preload(self.config.cache.preload_max_items)
        except Exception as exc:
            self._log.warning("preload_failed", error_type=type(exc).__name__)
            return 0

    async def ready(self) -> None:
        """Start the cache preload if needed and wait for it to finish."""

        self._ensure_preload_started()
        if self._preload_task is not None:
            await self._preload_task

    async def aclose(self) -> None:
        """Flush the pending batch and wait for in-flight background work."""

        self._flush_queue()
        pending = set(self._background_tasks)
        if self._preload_task is not None and not self._preload_task.done():
            pending.add(self._preload_task)
        if pending:
            await asyncio.gather(*pending)

    # Translation

    async def translate(
        self,
        text: str,
        options: TranslationOptions | None = None,
        on_retry: RetryObserver | None = None,
    ) -> str:
        """Translate `text`, returning the original text on any failure."""

        try:
            return await self._translate(text, options, on_retry)
        except Exception as exc:
            self._log.error("translate_failed_unexpectedly", error_type=type(exc).__name__)
            return text

    async def _translate(
        self,
        text: str,
        options: TranslationOptions | None,
        on_retry: RetryObserver | None,
    ) -> str:
        if not text:
            return text
        if len(text) > MAX_TEXT_LENGTH:
            self._log.error("text_too_long", length=len(text), limit=MAX_TEXT_LENGTH)
            return text

        self._ensure_preload_started()
        request = self.prepare_request(text, options)
        self._log.debug("cache_key_computed", cache_key=request.cache_key, locale=request.locale)

        cached = self.cache.get(request.cache_key)
        if cached is not None:
            self._log.debug("cache_hit", cache_key=request.cache_key)
            return cached

        if self.config.batch_requests:
            return await self._enqueue(request, on_retry)
        return await self._translate_individually(request, on_retry)

    def resolve_locale(self, options: TranslationOptions | None = None) -> str:
        """Return the per-call language, else the default language, else the detected locale."""

        explicit = normalize_optional_string(options.language) if options is not None else None
        return explicit or self._default_language or self._locale_detector()

    def prepare_request(
        self,
        text: str,
        options: TranslationOptions | None = None,
    ) -> TranslationRequest:
        """Truncate options, resolve the locale, and compute the cache key for one call.

        The same truncated tone/context feed both the key and the wire payload.
        """

        resolved_options = options if options is not None else TranslationOptions()
        locale = self.resolve_locale(resolved_options)
        tone = clip_text(resolved_options.tone, MAX_TONE_LENGTH)
        context = clip_text(resolved_options.context, MAX_CONTEXT_LENGTH)
        return TranslationRequest(
            text=text,
            locale=locale,
            tone=tone,
            context=context,
            cache_key=compute_cache_key(self.config.customer_id, text, locale, context, tone),
        )

    async def _call(self, func: Callable[..., Any], *args: Any) -> Any:
        return await asyncio.to_thread(func, *args)

    def _elapsed_ms(self, started: float) -> float:
        return (self._clock() - started) * 1000.0

    def _notify_retry(self, on_retry: RetryObserver | None, attempt: int) -> None:
        if on_retry is None:
            return
        try:
            on_retry(attempt)
        except Exception as exc:
            self._log.warning("retry_observer_failed", error_type=type(exc).__name__)

    def _store_result(
        self,
        request: TranslationRequest,
        translated: str,
        confidence: float | None,
    ) -> None:
        self.cache.set(request.cache_key, translated)
        if confidence is not None and confidence < self.config.low_confidence_threshold:
            self._log.warning(
                "low_confidence",
                cache_key=request.cache_key,
                confidence=f"{confidence:.2f}",
                locale=request.locale,
            )

    async def _attempt_translate(
        self,
        request: TranslationRequest,
        remaining_ms: float,
    ) -> TranslationResponse:
        """Send one individual request; both the HTTP timeout and the wait end with the budget."""

        timeout_seconds = remaining_ms / 1000.0
        try:
            return await asyncio.wait_for(
                self._call(self._http.translate, request.as_payload(), timeout_seconds),
                timeout=timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise TranslationError(
                "LiveI18n request exceeded the retry budget.",
                failure_kind="timeout",
            ) from exc

    async def _translate_individually(
        self,
        request: TranslationRequest,
        on_retry: RetryObserver | None,
    ) -> str:
        """Run the per-call retry loop and return the translation or the original text."""

        policy = self._retry_policy
        started = self._clock()
        for attempt in range(policy.max_attempts):
            if self._elapsed_ms(started) >= policy.budget_ms:
                self._log.warning("retry_budget_exhausted", budget_ms=int(policy.budget_ms))
                break
            if attempt > 0:
                self._notify_retry(on_retry, attempt)

            try:
                response = await self._attempt_translate(
                    request,
                    policy.remaining_ms(self._elapsed_ms(started)),
                )
            except TranslationError as exc:
                if exc.is_validation_error:
                    self._log.error(
                        "translate_rejected",
                        cache_key=request.cache_key,
                        status=exc.status_code,
                    )
                    return request.text
                elapsed_ms = self._elapsed_ms(started)
                if policy.is_exhausted(attempt, elapsed_ms):
                    self._log.error(
                        "translate_failed",
                        attempts=attempt + 1,
                        cache_key=request.cache_key,
                        failure_kind=exc.failure_kind,
                    )
                    return request.text
                delay_ms = policy.delay_ms(attempt, elapsed_ms)
                self._log.warning(
                    "translate_retry_scheduled",
                    attempt=attempt + 1,
                    delay_ms=int(delay_ms),
                    failure_kind=exc.failure_kind,
                )
                await self._sleeper(delay_ms / 1000.0)
                continue

            if attempt > 0:
                self._log.info("translate_recovered", attempts=attempt + 1)
            self._store_result(request, response.translated, response.confidence)
            return response.translated

        return request.text

    # Batching

    @property
    def pending_batch_size(self) -> int:
        return len(self._queue)

    def _enqueue(
        self,
        request: TranslationRequest,
        on_retry: RetryObserver | None,
    ) -> asyncio.Future[str]:
        """Append a miss to the queue and flush or arm the timer in the same step."""

        loop = asyncio.get_running_loop()
        item = QueuedTranslation(request=request, future=loop.create_future(), on_retry=on_retry)
        self._queue.append(item)
        if len(self._queue) >= self.config.batching.max_items:
            self._flush_queue()
        elif self._flush_handle is None:
            self._flush_handle = loop.call_later(
                self.config.batching.window_ms / 1000.0,
                self._flush_queue,
            )
        return item.future

    def _flush_queue(self) -> None:
        if self._flush_handle is not None:
            self._flush_handle.cancel()
            self._flush_handle = None
        if not self._queue:
            return
        batch, self._queue = self._queue, []
        self._log.debug("batch_flush", size=len(batch))
        self._spawn(self._send_batch(batch))

    def _spawn(self, coroutine: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coroutine)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _send_batch(self, batch: list[QueuedTranslation]) -> None:
        try:
            await self._deliver_batch(batch)
        except Exception as exc:
            self._log.error(
                "batch_failed_unexpectedly",
                error_type=type(exc).__name__,
                size=len(batch),
            )
        finally:
            for item in batch:
                item.resolve(item.request.text)

    async def _deliver_batch(self, batch: list[QueuedTranslation]) -> None:
        sendable: list[QueuedTranslation] = []
        for item in batch:
            if len(item.request.text) > MAX_TEXT_LENGTH:
                self._log.error(
                    "text_too_long",
                    length=len(item.request.text),
                    limit=MAX_TEXT_LENGTH,
                )
                item.resolve(item.request.text)
            else:
                sendable.append(item)
        if not sendable:
            return

        payloads: dict[str, dict[str, str]] = {}
        for item in sendable:
            payloads.setdefault(item.request.cache_key, item.request.as_payload())

        try:
            response = await self._post_batch_with_retry(list(payloads.values()))
        except TranslationError as exc:
            await self._recover_failed_batch(sendable, exc)
            return

        entries = response.by_cache_key()
        missing = 0
        for item in sendable:
            entry = entries.get(item.request.cache_key)
            if entry is None:
                missing += 1
                item.resolve(item.request.text)
                continue
            self._store_result(item.request, entry.translated, entry.confidence)
            item.resolve(entry.translated)
        if missing:
            self._log.warning("batch_entries_missing", missing=missing, size=len(sendable))

    async def _post_batch_with_retry(
        self,
        payloads: list[dict[str, str]],
    ) -> BatchTranslationResponse:
        policy = self._batch_policy
        attempt = 1
        while True:
            try:
                return await self._call(self._http.translate_batch, payloads)
            except TranslationError as exc:
                if exc.is_validation_error or not policy.should_retry(attempt):
                    raise
                self._log.warning(
                    "batch_retry_scheduled",
                    attempt=attempt,
                    delay_ms=int(policy.retry_delay_ms),
                    failure_kind=exc.failure_kind,
                )
                await self._sleeper(policy.retry_delay_ms / 1000.0)
                attempt += 1

    async def _recover_failed_batch(
        self,
        items: list[QueuedTranslation],
        exc: TranslationError,
    ) -> None:
        fallback = self.config.batching.fallback
        self._log.error(
            "batch_failed",
            fallback=fallback,
            failure_kind=exc.failure_kind,
            size=len(items),
            status=exc.status_code or "none",
        )
        if fallback == "individual":
            results = await asyncio.gather(
                *(self._translate_individually(item.request, item.on_retry) for item in items)
            )
            for item, result in zip(items, results):
                item.resolve(result)
            return
        for item in items:
            item.resolve(item.request.text)

    # Cache, language, and feedback

    def clear_cache(self) -> None:
        self.cache.clear()

    def get_cache_stats(self) -> CacheStats:
        return CacheStats(size=self.cache.size(), max_size=self.cache.max_size)

    @property
    def default_language(self) -> str | None:
        return self._default_language

    def get_default_language(self) -> str | None:
        return self._default_language

    def update_default_language(self, language: str | None) -> None:
        """Set the default language and notify subscribed listeners synchronously."""

        self._default_language = normalize_optional_string(language)
        self._language_notifier.publish(self._default_language)

    def add_language_change_listener(self, listener: LanguageListener) -> Callable[[], None]:
        """Subscribe to default-language changes; returns an unsubscribe callable."""

        return self._language_notifier.subscribe(listener)

    async def submit_feedback(
        self,
        original_text: str,
        translated_text: str,
        locale: str,
        rating: int,
        correction: str | None = None,
    ) -> bool:
        """Send a 1-5 rating (and optional correction) for a translation.

        Returns `False` instead of raising when the rating is out of range or
        the request fails.
        """

        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            self._log.warning("feedback_rejected", reason="rating_out_of_range")
            return False
        payload: dict[str, Any] = {
            "original_text": original_text,
            "translated_text": translated_text,
            "locale": locale,
            "rating": rating,
        }
        if normalize_optional_string(correction) is not None:
            payload["correction"] = correction
        try:
            await self._call(self._http.submit_feedback, payload)
        except TranslationError as exc:
            self._log.warning(
                "feedback_failed",
                failure_kind=exc.failure_kind,
                status=exc.status_code or "none",
            )
            return False
        self._log.info("feedback_submitted", rating=rating)
        return True
