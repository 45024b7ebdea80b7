"""Dispatching summarization requests from a synchronous pipeline stage.

The inference client is asynchronous while a pipeline stage is not. Requests
are run on a background event loop thread and the stage waits on a
single-slot channel with a ceiling. The inference callback only ever writes to
that channel, and only while the stage is still waiting; a response arriving
after the ceiling is discarded.
"""

import asyncio
import concurrent.futures
import json
import queue
import threading
from dataclasses import dataclass
from typing import Any, Coroutine, Mapping

from jsonpath_ng.ext import parse as parse_jsonpath
from loguru import logger

from contextpipe.compaction.types import SummaryResult
from contextpipe.constants import SUMMARIZATION_TIMEOUT_SECONDS
from contextpipe.providers.base import InferenceClient, InferenceResponse


@dataclass
class _Delivery:
    """What the inference callback hands to the waiting stage."""
    data: Any = None
    error: str | None = None


class BackgroundLoop:
    """An asyncio event loop running on a daemon thread."""

    def __init__(self, name: str = "contextpipe-inference"):
        self.name = name
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _ensure_started(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._loop is None or not self.running:
                loop = asyncio.new_event_loop()
                thread = threading.Thread(
                    target=self._run, args=(loop,), name=self.name, daemon=True
                )
                thread.start()
                self._loop = loop
                self._thread = thread
            return self._loop

    @staticmethod
    def _run(loop: asyncio.AbstractEventLoop) -> None:
        asyncio.set_event_loop(loop)
        try:
            loop.run_forever()
        finally:
            loop.close()

    def submit(self, coro: Coroutine[Any, Any, Any]) -> concurrent.futures.Future:
        """Schedule a coroutine on the background loop."""
        return asyncio.run_coroutine_threadsafe(coro, self._ensure_started())

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the loop and join its thread."""
        with self._lock:
            loop, thread = self._loop, self._thread
            self._loop = None
            self._thread = None
        if loop is not None and thread is not None and thread.is_alive():
            loop.call_soon_threadsafe(loop.stop)
            thread.join(timeout)


_default_loop: BackgroundLoop | None = None
_default_loop_lock = threading.Lock()


def get_background_loop() -> BackgroundLoop:
    """Get the process-wide background loop used for inference calls."""
    global _default_loop
    with _default_loop_lock:
        if _default_loop is None:
            _default_loop = BackgroundLoop()
        return _default_loop


def extract_summary(data: Any, response_filter: str | None = None) -> str | None:
    """
    Extract summary text from an inference payload.

    Args:
        data: The response payload.
        response_filter: Optional JSONPath expression locating the text.

    Returns:
        Summary text, or None if the payload shape is not recognized.
    """
    if not isinstance(data, Mapping):
        logger.error(f"Failed to extract summary from response of type {type(data).__name__}")
        return None

    if response_filter:
        try:
            matches = parse_jsonpath(response_filter).find(data)
            if matches:
                value = matches[0].value
                return value.strip() if isinstance(value, str) else json.dumps(value)
            logger.debug(
                f"JSONPath filter '{response_filter}' not found, falling back to default parsing"
            )
        except Exception as e:
            logger.warning(f"Error applying JSONPath filter, falling back to default parsing: {e}")

    if len(data) == 1 and isinstance(data.get("response"), str):
        return data["response"].strip()

    # Last resort: JSON representation of the whole payload
    try:
        return json.dumps(dict(data))
    except (TypeError, ValueError) as e:
        logger.error(f"Failed to serialize response payload: {e}")
        return None


def request_summary(
    client: InferenceClient,
    model_id: str,
    parameters: dict[str, str],
    response_filter: str | None = None,
    timeout: float = SUMMARIZATION_TIMEOUT_SECONDS,
    loop: BackgroundLoop | None = None,
    label: str = "Summarization",
) -> SummaryResult:
    """
    Run a summarization request and block until it resolves or times out.

    Args:
        client: Inference client.
        model_id: Model to call.
        parameters: Inference parameters (prompt, system_prompt, ...).
        response_filter: Optional JSONPath for summary extraction.
        timeout: Ceiling in seconds.
        loop: Background loop to run the request on.
        label: Prefix for log messages.

    Returns:
        SummaryResult. Only an "ok" result carries a summary.
    """
    channel: queue.Queue[_Delivery] = queue.Queue(maxsize=1)
    timed_out = threading.Event()

    def on_done(future: concurrent.futures.Future) -> None:
        if timed_out.is_set():
            logger.warning(f"{label} response arrived after timeout, discarding")
            return
        if future.cancelled():
            delivery = _Delivery(error="request cancelled")
        elif future.exception() is not None:
            delivery = _Delivery(error=str(future.exception()))
        else:
            response: InferenceResponse = future.result()
            if response is None or not response.ok:
                error = response.error if response is not None else "empty response"
                delivery = _Delivery(error=error)
            else:
                delivery = _Delivery(data=response.data)
        try:
            channel.put_nowait(delivery)
        except queue.Full:
            pass

    coro = None
    try:
        coro = client.invoke(model_id, parameters)
        future = (loop or get_background_loop()).submit(coro)
        future.add_done_callback(on_done)
    except Exception as e:
        if coro is not None:
            coro.close()
        logger.warning(f"Failed to dispatch {label.lower()} request: {e}")
        return SummaryResult(status="failed", error=str(e))

    try:
        delivery = channel.get(timeout=timeout)
    except queue.Empty:
        timed_out.set()
        logger.warning(f"{label} timed out after {timeout}s; skipping late results")
        return SummaryResult(status="timeout")

    if delivery.error is not None:
        logger.warning(f"{label} request failed, keeping originals: {delivery.error}")
        return SummaryResult(status="failed", error=delivery.error)

    summary = extract_summary(delivery.data, response_filter)
    if summary is None:
        logger.warning(f"{label} summary extraction failed, keeping originals")
        return SummaryResult(status="extraction_failed")

    return SummaryResult(status="ok", summary=summary)
