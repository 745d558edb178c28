"""Document rendering HTTP client for sale contracts"""

import httpx
from dataclasses import dataclass
from typing import Any, Dict
from crediario.config import settings
from crediario.domain.exceptions import DocumentRenderError
from crediario.infrastructure.observability.metrics import document_failure_counter


@dataclass
class RenderedDocument:
    """Opaque printable artifact returned by the renderer"""

    content: bytes
    media_type: str


class DocumentClient:
    """Client for the external contract rendering service"""

    def __init__(
        self,
        renderer_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.renderer_url = renderer_url or settings.document_renderer_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def render_contract(self, snapshot: Dict[str, Any]) -> RenderedDocument:
        """
        Send a sale + installments + customer snapshot and return the document.

        Failures are not retried here; the caller reports them as "try again".

        Raises:
            DocumentRenderError: On timeout, HTTP errors, or empty response
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(self.renderer_url, json=snapshot)
                response.raise_for_status()
            except httpx.TimeoutException as e:
                document_failure_counter.inc()
                raise DocumentRenderError(f"Document renderer timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                document_failure_counter.inc()
                raise DocumentRenderError(f"Document renderer error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                document_failure_counter.inc()
                raise DocumentRenderError(f"Document renderer unreachable: {e}") from e

        if not response.content:
            document_failure_counter.inc()
            raise DocumentRenderError("Document renderer returned an empty document")

        return RenderedDocument(
            content=response.content,
            media_type=response.headers.get("content-type", "application/pdf"),
        )
