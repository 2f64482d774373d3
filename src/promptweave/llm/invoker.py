"""Single completion call with trace reporting on failure."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from promptweave.exceptions import RequestCancelledError, RequestError
from promptweave.expansion.trace import TraceBuilder
from promptweave.llm.transport import ChatRequest, ChatTransport
from promptweave.models import TransformResponse

logger = logging.getLogger(__name__)

InfoCallback = Callable[[TransformResponse], None]


def _notify(info_cb: InfoCallback | None, trace: TraceBuilder, text: str) -> None:
    if info_cb is not None:
        info_cb(TransformResponse(trace=trace.render(), text=text))


async def invoke_completion(
    request: ChatRequest,
    transport: ChatTransport,
    trace: TraceBuilder,
    info_cb: InfoCallback | None = None,
    cancel_event: asyncio.Event | None = None,
) -> str:
    """
    Issue exactly one completion request.

    On failure the trace gets a section describing the error, ``info_cb``
    receives the partial result, and the exception is re-raised.

    Args:
        request: Resolved request
        transport: Backend sending the request
        trace: Run trace
        info_cb: Optional callback receiving partial results
        cancel_event: Optional cancellation signal handed to the transport

    Returns:
        Completion text
    """
    _notify(info_cb, trace, "> Waiting for response...")
    logger.info(f"Requesting completion from {request.model}")
    try:
        return await transport.complete(request, cancel_event=cancel_event)
    except RequestError as e:
        logger.error(f"Completion request failed: {e}")
        trace.request_error(e)
        _notify(info_cb, trace, "Request error")
        raise
    except (RequestCancelledError, asyncio.CancelledError):
        logger.info("Completion request cancelled")
        trace.request_cancelled()
        _notify(info_cb, trace, "Request cancelled")
        raise
    except Exception as e:
        if cancel_event is not None and cancel_event.is_set():
            logger.info(f"Completion request cancelled ({type(e).__name__})")
            trace.request_cancelled()
            _notify(info_cb, trace, "Request cancelled")
        else:
            logger.error(f"Completion request failed: {e}")
            trace.request_failed(e)
            _notify(info_cb, trace, "Request failed")
        raise
