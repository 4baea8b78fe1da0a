"""HTTP dispatcher — executes a decoded Request against a shared httpx client.

Learn: One httpx.AsyncClient is shared by every in-flight notification.
The client is safe to use concurrently and keeps its own connection pool,
so each pipeline task just borrows it.

- GET: no body, so no Content-Type or Content-Length either
- POST: compact JSON body, Content-Type: application/json and a
  Content-Length equal to the body's UTF-8 byte length

Any status code counts as a successful dispatch. Only an unusable URL (not
absolute http/https) or a transport failure (refused, DNS, timeout) aborts
the pipeline.
"""

import httpx

from http_port.config import Settings
from http_port.errors import DispatchError
from http_port.schemas import PostMethod, Request
from http_port.schemas import jsontext


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    """Build the process-wide client. ``http_timeout = 0`` means no timeout."""
    return httpx.AsyncClient(timeout=settings.http_timeout or None)


class HttpDispatcher:
    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    def build(self, request: Request) -> httpx.Request:
        """Translate a Request into the outbound httpx.Request."""
        try:
            url = httpx.URL(request.url)
            if url.scheme not in ("http", "https") or not url.host:
                raise httpx.InvalidURL("expected an absolute http:// or https:// URL")
            if isinstance(request.method, PostMethod):
                content = jsontext.dumps(request.method.body).encode("utf-8")
                return self.client.build_request(
                    "POST",
                    url,
                    content=content,
                    headers={
                        "Content-Type": "application/json",
                        "Content-Length": str(len(content)),
                    },
                )
            return self.client.build_request("GET", url)
        except httpx.InvalidURL as e:
            raise DispatchError(
                f"invalid url {request.url!r}: {e}", callback=request.callback
            ) from e

    async def send(self, request: Request) -> httpx.Response:
        """Issue the call and return the response with its body read."""
        http_request = self.build(request)
        try:
            return await self.client.send(http_request)
        except httpx.HTTPError as e:
            raise DispatchError(
                f"{type(e).__name__}: {e} ({request.url})", callback=request.callback
            ) from e
