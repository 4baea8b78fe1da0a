"""Request schema — what a notification payload describes.

Wire shape:

    {"method": "GET" | {"POST": {"body": <any JSON>}},
     "url": "<string>",
     "callback": "<string>"}

Learn: ``method`` is a tagged union. The wire form is translated into a
``kind`` discriminator before validation, so pydantic picks exactly one
variant and never guesses between them.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_serializer, field_validator


class GetMethod(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["GET"] = "GET"

    def to_wire(self) -> str:
        return "GET"


class PostMethod(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["POST"] = "POST"
    body: Any  # required, null allowed

    def to_wire(self) -> dict:
        return {"POST": {"body": self.body}}


Method = Annotated[Union[GetMethod, PostMethod], Field(discriminator="kind")]


class Request(BaseModel):
    """One outbound HTTP call plus the statement that receives its result."""

    model_config = ConfigDict(frozen=True)

    method: Method
    url: StrictStr
    callback: StrictStr

    @field_validator("method", mode="before")
    @classmethod
    def parse_wire_method(cls, value: Any) -> Any:
        if isinstance(value, (GetMethod, PostMethod)):
            return value
        if value == "GET":
            return {"kind": "GET"}
        if isinstance(value, dict) and list(value) == ["POST"]:
            post = value["POST"]
            if not isinstance(post, dict):
                raise ValueError("POST method must be an object with a 'body' field")
            if "body" not in post:
                raise ValueError("POST method is missing its 'body' field")
            return {"kind": "POST", "body": post["body"]}
        raise ValueError('method must be "GET" or {"POST": {"body": ...}}')

    @field_serializer("method")
    def serialize_method(self, method: Union[GetMethod, PostMethod]) -> Any:
        return method.to_wire()

    def to_payload(self) -> dict:
        """Re-serialise to the notification wire shape."""
        return self.model_dump()
