"""Response encoder — HTTP status + body → serialised Envelope."""

from typing import Optional

from http_port.errors import EncodeError
from http_port.schemas import Envelope
from http_port.schemas import jsontext


def encode_response(status: int, content: bytes, callback: Optional[str] = None) -> str:
    """Parse ``content`` as JSON and return the envelope's JSON text.

    A body that is empty or not JSON raises EncodeError; the callback is
    then never invoked.
    """
    try:
        body = jsontext.loads(content)
    except ValueError as e:
        raise EncodeError(
            f"response body is not JSON (status {status}): {e}", callback=callback
        ) from e
    return Envelope(status=status, body=body).dumps()
