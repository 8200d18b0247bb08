from pydantic import BaseModel

from assistant_chat.message import DisplayMessage, DisplayRole


class ChatSession(BaseModel):
    """Renderable state of one conversation.

    Every helper returns a new session; the receiver is left untouched.
    Only the most recent message can be amended.
    """

    thread_id: str = ""
    messages: list[DisplayMessage] = []
    input_locked: bool = False

    @property
    def last_message(self) -> DisplayMessage | None:
        return self.messages[-1] if self.messages else None

    def with_thread(self, thread_id: str) -> "ChatSession":
        return self.model_copy(update={"thread_id": thread_id})

    def append_message(self, role: DisplayRole, text: str = "") -> "ChatSession":
        messages = [*self.messages, DisplayMessage(role=role, text=text)]
        return self.model_copy(update={"messages": messages})

    def amend_last(self, text: str) -> "ChatSession":
        return self.replace_last(self.messages[-1].amended(text))

    def replace_last(self, message: DisplayMessage) -> "ChatSession":
        if message.role != self.messages[-1].role:
            raise ValueError("the role of a message cannot change")
        messages = [*self.messages[:-1], message]
        return self.model_copy(update={"messages": messages})

    def lock_input(self) -> "ChatSession":
        return self.model_copy(update={"input_locked": True})

    def unlock_input(self) -> "ChatSession":
        return self.model_copy(update={"input_locked": False})

    def has_user_message(self, text: str) -> bool:
        return any(
            m.role == DisplayRole.USER and m.text == text
            for m in self.messages
        )
