"""Drag and drop handlers. The payload travels as JSON under application/json."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from jsonia.runtime.handlers.base import store_result
from jsonia.runtime.types import DRAG_DATA_FORMAT

if TYPE_CHECKING:
    from jsonia.runtime.runtime import Runtime

logger = logging.getLogger(__name__)


async def _handle_set_data(rt: Runtime, action: dict, event: Any) -> None:
    transfer = getattr(event, "data_transfer", None)
    if transfer is None:
        logger.warning("drag.setData: event has no data transfer")
        return
    data = rt.resolve_value(action.get("data"), event)
    transfer.effect_allowed = action.get("effectAllowed") or "copy"
    transfer.set_data(DRAG_DATA_FORMAT, json.dumps(data, default=str))


async def _handle_get_data(rt: Runtime, action: dict, event: Any) -> Any:
    transfer = getattr(event, "data_transfer", None)
    if transfer is None:
        logger.warning("drag.getData: event has no data transfer")
        return None
    raw = transfer.get_data(DRAG_DATA_FORMAT)
    try:
        data = json.loads(raw) if raw else None
    except json.JSONDecodeError as e:
        logger.error("drag.getData: payload is not JSON: %s", e)
        data = None
    return store_result(rt, action, data)


DRAG_HANDLERS = {
    "drag.setData": _handle_set_data,
    "drag.getData": _handle_get_data,
}
