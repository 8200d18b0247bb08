from assistant_chat.controller import SessionController
from assistant_chat.instrumentation import instrument, uninstrument
from assistant_chat.message import DisplayMessage, DisplayRole
from assistant_chat.reducer import reduce, reduce_all
from assistant_chat.session import ChatSession
from assistant_chat.tools import function_call_handler, tool
from assistant_chat.transport import ProxyTransport

__all__ = [
    "ChatSession",
    "DisplayMessage",
    "DisplayRole",
    "ProxyTransport",
    "SessionController",
    "function_call_handler",
    "instrument",
    "reduce",
    "reduce_all",
    "tool",
    "uninstrument",
]
