from enum import Enum
from pydantic import BaseModel, ConfigDict, field_serializer


class DisplayRole(Enum):
    USER = "user"
    ASSISTANT = "assistant"
    CODE = "code"


class DisplayMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: DisplayRole
    text: str = ""

    @field_serializer('role')
    def serialize_role(self, role: DisplayRole, _info) -> str:
        return role.value

    def amended(self, suffix: str) -> "DisplayMessage":
        return self.model_copy(update={"text": self.text + suffix})
