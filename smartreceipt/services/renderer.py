"""
smartreceipt/services/renderer.py

Purpose: Receipt rendering collaborator

- Renderer/RenderPage interface used by the receipt pipeline
- RemoteBrowserRenderer: a headless browser service reached over HTTP
- One long-lived client shared by every render; one page per receipt
- Non-OK page loads raise RenderError
"""

from abc import ABC, abstractmethod
from typing import Optional

import httpx

from smartreceipt.core.config import settings
from smartreceipt.core.exceptions import RenderError
from smartreceipt.core.logging import get_logger

logger = get_logger(__name__)

PAGE_WIDTH = 800
DEVICE_SCALE_FACTOR = 2


class RenderPage(ABC):
    """A single page, scoped to one receipt."""

    @abstractmethod
    async def goto(self, url: str) -> None:
        """Loads `url`; raises RenderError when the page does not load."""

    @abstractmethod
    async def pdf(self) -> bytes:
        ...

    @abstractmethod
    async def screenshot(self) -> bytes:
        """Full-page PNG."""

    @abstractmethod
    async def close(self) -> None:
        ...

    @property
    @abstractmethod
    def is_closed(self) -> bool:
        ...


class Renderer(ABC):
    @abstractmethod
    async def new_page(self) -> RenderPage:
        ...

    async def render(self, url: str, as_format: str = "png") -> bytes:
        """
        Convenience wrapper: open a page, capture, close.
        """
        page = await self.new_page()
        try:
            await page.goto(url)
            if as_format == "pdf":
                return await page.pdf()
            return await page.screenshot()
        finally:
            if not page.is_closed:
                await page.close()


class RemotePage(RenderPage):
    """
    Page handle on the rendering service.
    The service loads the URL on each capture, so goto() only checks that it loads.
    """

    def __init__(self, client: httpx.AsyncClient):
        self._client = client
        self._url: Optional[str] = None
        self._closed = False

    async def goto(self, url: str) -> None:
        try:
            response = await self._client.get(url, follow_redirects=True)
        except httpx.HTTPError as e:
            raise RenderError(f"Failed to load receipt page: {e}") from e

        if response.status_code != 200:
            raise RenderError(
                f"Failed to load receipt page: {response.status_code}",
                details={"status_code": response.status_code},
            )
        self._url = url

    async def _capture(self, endpoint: str, options: dict) -> bytes:
        if self._url is None:
            raise RenderError("No page loaded")

        try:
            response = await self._client.post(
                f"{settings.RENDER_SERVICE_URL.rstrip('/')}/{endpoint}",
                json={"url": self._url, "waitUntil": "networkidle0", **options},
            )
        except httpx.TimeoutException as e:
            raise RenderError("Rendering service timed out") from e
        except httpx.HTTPError as e:
            raise RenderError(f"Rendering service unreachable: {e}") from e

        if response.status_code != 200:
            logger.error(f"❌ Render service error: {response.status_code} - {response.text[:200]}")
            raise RenderError(
                f"Rendering service returned {response.status_code}",
                details={"status_code": response.status_code},
            )
        return response.content

    async def pdf(self) -> bytes:
        return await self._capture("pdf", {
            "printBackground": True,
            "width": f"{PAGE_WIDTH}px",
        })

    async def screenshot(self) -> bytes:
        return await self._capture("screenshot", {
            "fullPage": True,
            "type": "png",
            "viewport": {"width": PAGE_WIDTH, "height": 10, "deviceScaleFactor": DEVICE_SCALE_FACTOR},
        })

    async def close(self) -> None:
        self._closed = True
        self._url = None

    @property
    def is_closed(self) -> bool:
        return self._closed


class RemoteBrowserRenderer(Renderer):
    """
    Renderer backed by a remote headless browser.
    The HTTP client is created lazily and shared until shutdown().
    """

    def __init__(self, timeout: Optional[float] = None):
        self._timeout = timeout or settings.RENDER_TIMEOUT
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def new_page(self) -> RenderPage:
        return RemotePage(self._get_client())

    async def shutdown(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Renderer client closed")


_renderer: Optional[Renderer] = None


def get_renderer() -> Renderer:
    """
    Returns the process-wide renderer (singleton pattern).
    """
    global _renderer
    if _renderer is None:
        _renderer = RemoteBrowserRenderer()
    return _renderer


def set_renderer(renderer: Optional[Renderer]) -> None:
    global _renderer
    _renderer = renderer
