import traceback
import time
from typing import Any, Dict, List

TRACE_LIMIT = 200  # oldest events are dropped past this many


def add_traceback(obj, step: str, info: str, *, with_stack: bool = False) -> None:
    """
    Record one pipeline event on `obj.traceback_info`.

    Parameters
    ----------
    obj        : the engine (or anything) owning a `traceback_info` list.
    step       : stage label, e.g. 'tokenize', 'build', 'evaluate', 'error'.
    info       : free-form description of what the stage produced.
    with_stack : attach the formatted call-stack, minus this helper's frame.
    """
    events = getattr(obj, "traceback_info", None)
    if events is None:
        raise AttributeError(f"{obj!r} has no attribute 'traceback_info'")

    event: Dict[str, Any] = {"step": step, "info": info, "timestamp": time.time()}
    if with_stack:
        event["stack"] = traceback.format_stack()[:-1]

    events.append(event)
    if len(events) > TRACE_LIMIT:
        del events[:len(events) - TRACE_LIMIT]


def last_events(obj, count: int = 5) -> List[str]:
    """Render the newest `count` events of `obj` as 'step: info' lines."""
    return [f"{ev['step']}: {ev['info']}" for ev in obj.traceback_info[-count:]]
