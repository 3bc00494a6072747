import concurrent.futures
import logging
from typing import Any, Callable, Iterator, List, Optional, Sequence

from browser import BrowserEndpoint
from config import DEFAULT_CONCURRENCY, parse_concurrency
from lighthouse import AuditResult

logger = logging.getLogger(__name__)

Invoker = Callable[[str, BrowserEndpoint], AuditResult]


def coerce_window_size(value: Any, default: int = DEFAULT_CONCURRENCY) -> int:
    size = parse_concurrency(value, default=0)
    if not size:
        logger.warning("Invalid window size %r, using %d", value, default)
        return default
    return size


def windows(targets: Sequence[str], size: int) -> Iterator[List[str]]:
    for i in range(0, len(targets), size):
        yield list(targets[i : i + size])


def _run_one(invoker: Invoker, target: str, endpoint: BrowserEndpoint) -> AuditResult:
    try:
        return invoker(target, endpoint)
    except Exception as e:
        logger.exception("Audit of %s raised", target)
        return AuditResult.failed(target, f"Unexpected error: {e}")


def run_batch(
    targets: Sequence[str],
    window_size: Any,
    endpoint: BrowserEndpoint,
    invoker: Invoker,
    on_result: Optional[Callable[[AuditResult], None]] = None,
) -> List[AuditResult]:
    """
    Audit targets in consecutive windows of at most window_size.

    Audits inside a window run concurrently; the next window starts only once
    every audit in the current one has finished. Results come back in target
    order, one per target, whatever the completion order was.
    """
    size = coerce_window_size(window_size)
    chunks = list(windows(targets, size))
    results: List[AuditResult] = []

    for n, window in enumerate(chunks, start=1):
        logger.info("Window %d/%d: %d target(s)", n, len(chunks), len(window))
        with concurrent.futures.ThreadPoolExecutor(max_workers=len(window)) as pool:
            futures = [pool.submit(_run_one, invoker, target, endpoint) for target in window]
        # Executor exit joined every future; index order is target order
        window_results = [fut.result() for fut in futures]

        for result in window_results:
            results.append(result)
            if on_result:
                on_result(result)

    return results
