"""Response envelope handed to the callback statement."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from http_port.schemas import jsontext


class Envelope(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: int = Field(..., ge=0, le=65535)
    body: Any

    def dumps(self) -> str:
        """Serialise as ``{"status":<int>,"body":<json>}``."""
        return jsontext.dumps({"status": self.status, "body": self.body})
