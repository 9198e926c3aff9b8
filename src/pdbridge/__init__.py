"""pdbridge - Python scripts for Pure Data over a line-delimited JSON pipe."""

from .api import HostBridge, ScriptApi, __version__, pd
from .codec import WireCodec
from .dispatch import Dispatcher
from .marshal import marshal_outlet
from .registry import HandlerRegistry
from .runtime import BridgeRuntime
from .types import (
    DispatchContext,
    ErrorMessage,
    InboundMessage,
    LogMessage,
    OutletMessage,
    ReadyMessage,
)

__all__ = [
    "BridgeRuntime",
    "DispatchContext",
    "Dispatcher",
    "ErrorMessage",
    "HandlerRegistry",
    "HostBridge",
    "InboundMessage",
    "LogMessage",
    "OutletMessage",
    "ReadyMessage",
    "ScriptApi",
    "WireCodec",
    "__version__",
    "marshal_outlet",
    "pd",
]
