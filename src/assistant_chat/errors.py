class AssistantChatError(Exception):
    """Base class for errors raised by ``assistant_chat``."""


class ConfigurationError(AssistantChatError):
    """Raised when required proxy settings are missing."""


class TransportError(AssistantChatError):
    """Raised when the proxy answers with a non-2xx status.

    Args:
        status_code: HTTP status returned by the proxy.
        body: Response body, decoded as text.
    """

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Proxy returned {status_code}: {body}")


class MissingThreadError(AssistantChatError):
    """Raised when a message is sent before a thread exists."""


class StreamError(AssistantChatError):
    """Raised when the event stream reports an error."""


class StreamDecodeError(StreamError):
    """Raised when a stream line is not valid JSON."""


class ToolDispatchError(AssistantChatError):
    """Raised when a tool-call handler fails.

    The whole batch is abandoned; no outputs are submitted.
    """

    def __init__(self, tool_call_id: str, cause: BaseException):
        self.tool_call_id = tool_call_id
        super().__init__(f"Handler for tool call {tool_call_id} failed: {cause}")
