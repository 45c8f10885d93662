"""Windowed batch dispatcher for move explanation calls."""
import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from schemas import BatchExplanationProgress, ExplanationRequest, MoveExplanation

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[BatchExplanationProgress], None]
ExplainFn = Callable[[ExplanationRequest], Awaitable[MoveExplanation]]

DEFAULT_CONCURRENCY = 3
DEFAULT_DELAY_SECONDS = 0.1


async def _explain_one(
    request: ExplanationRequest, explain: ExplainFn, errors: list[str]
) -> MoveExplanation | None:
    try:
        return await explain(request)
    except Exception as e:
        message = f"Move {request.move_number}: {str(e) or type(e).__name__}"
        logger.warning(f"Explanation failed: {message}")
        errors.append(message)
        return None


async def batch_explain(
    requests: Sequence[ExplanationRequest],
    explain: ExplainFn,
    concurrency: int = DEFAULT_CONCURRENCY,
    on_progress: ProgressCallback | None = None,
    delay: float = DEFAULT_DELAY_SECONDS,
    cancel_event: asyncio.Event | None = None,
) -> list[MoveExplanation]:
    """Explain ``requests`` in consecutive windows of ``concurrency`` calls.

    Calls within a window run concurrently; windows run one after another with
    a ``delay`` second pause in between. A failing call is recorded in the
    progress error list and skipped, it never aborts the batch. After each
    window, ``on_progress`` receives one snapshot per item in request order.

    Args:
        requests: Moves to explain.
        explain: Coroutine function producing one explanation.
        concurrency: Window size, must be positive.
        on_progress: Optional observer for progress snapshots.
        delay: Pause between windows, in seconds.
        cancel_event: When set, no further window is started.

    Returns:
        Successful explanations, ordered by move number.

    Raises:
        ValueError: If ``concurrency`` is not positive.
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be a positive integer, got {concurrency}")

    results: list[MoveExplanation] = []
    progress = BatchExplanationProgress(total=len(requests))

    for start in range(0, len(requests), concurrency):
        if cancel_event is not None and cancel_event.is_set():
            logger.info(f"Batch cancelled after {progress.completed}/{progress.total} moves")
            break

        window = requests[start:start + concurrency]
        window_results = await asyncio.gather(
            *(_explain_one(request, explain, progress.errors) for request in window)
        )

        for result in window_results:
            if result is not None:
                results.append(result)
            progress.completed += 1
            progress.current = f"Move {result.move_number}" if result is not None else None
            if on_progress is not None:
                on_progress(progress.model_copy(deep=True))

        if start + concurrency < len(requests):
            await asyncio.sleep(delay)

    logger.info(
        f"Explained {len(results)} of {progress.total} moves ({len(progress.errors)} errors)"
    )
    results.sort(key=lambda explanation: explanation.move_number)
    return results
