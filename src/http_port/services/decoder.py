"""Request decoder — notification payload text → Request."""

from pydantic import ValidationError

from http_port.errors import DecodeError
from http_port.schemas import Request
from http_port.schemas import jsontext


def decode_request(payload: str) -> Request:
    """Parse and validate a notification payload.

    Raises DecodeError (carrying the raw payload) on malformed JSON, a
    missing or mistyped field, or a method other than GET/POST.
    """
    try:
        data = jsontext.loads(payload)
    except ValueError as e:
        raise DecodeError(f"malformed JSON: {e}", payload=payload) from e

    try:
        return Request.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'payload'}: {err['msg']}"
            for err in e.errors()
        )
        raise DecodeError(f"invalid request: {problems}", payload=payload) from e
