"""
Action handler library.

BUILTIN_HANDLERS are installed into every dispatcher's handler registry;
CORE_HANDLERS are consulted after the registry.
"""

from jsonia.runtime.handlers.base import Handler
from jsonia.runtime.handlers.core import CORE_HANDLERS, _handle_sequence
from jsonia.runtime.handlers.data import DATA_HANDLERS
from jsonia.runtime.handlers.dom import DOM_HANDLERS
from jsonia.runtime.handlers.drag import DRAG_HANDLERS
from jsonia.runtime.handlers.template import TEMPLATE_HANDLERS
from jsonia.runtime.handlers.utils import UTIL_HANDLERS

BUILTIN_HANDLERS: dict[str, Handler] = {
    **DOM_HANDLERS,
    **DATA_HANDLERS,
    **UTIL_HANDLERS,
    **TEMPLATE_HANDLERS,
    "sequence": _handle_sequence,
    **DRAG_HANDLERS,
}

__all__ = ["BUILTIN_HANDLERS", "CORE_HANDLERS", "Handler"]
