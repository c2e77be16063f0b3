"""Background execution for work that must not delay the HTTP response."""

from contextvars import copy_context
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

from structlog.contextvars import bind_contextvars, get_contextvars


_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="prox2-bg")


def run_async(
    func: Callable[..., Any],
    /,
    *args: Any,
    trace_id: str | None = None,
    **kwargs: Any,
) -> Future:
    """Run *func* on the shared pool, carrying the caller's structlog context."""

    context = copy_context()

    if trace_id is not None and context.run(lambda: get_contextvars().get("trace_id")) != trace_id:
        context.run(lambda: bind_contextvars(trace_id=trace_id))

    return _executor.submit(context.run, func, *args, **kwargs)
