"""Playwright-backed DevTools connection."""

import asyncio
from typing import Any, Dict, Optional

from playwright.async_api import Browser, CDPSession, Page, Playwright, async_playwright

from ..core.errors import BrowserNotAvailableError, CDPError
from ..types import ChromyOptions
from ..utils.logger import ChromyLogger
from .base import Connection, EventHandler


class PlaywrightConnection(Connection):
    """
    Opens a CDP session on one page through Playwright.

    With ``launch_browser`` a Chromium instance is started and owned by the connection;
    otherwise the connection attaches to a browser already listening on ``host:port``
    and focuses its first page target.
    """

    def __init__(self, options: ChromyOptions, logger: ChromyLogger):
        self._options = options
        self._logger = logger.child(component="cdp")
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._page: Optional[Page] = None
        self._session: Optional[CDPSession] = None

    @property
    def connected(self) -> bool:
        return self._session is not None

    @property
    def endpoint(self) -> str:
        return f"http://{self._options.host}:{self._options.port}"

    async def connect(self) -> None:
        if self._session is not None:
            return
        try:
            self._playwright = await async_playwright().start()
            if self._options.launch_browser:
                self._page = await self._launch()
            else:
                self._page = await self._attach()

            session = await self._page.context.new_cdp_session(self._page)
            await asyncio.gather(
                session.send("Network.enable"),
                session.send("Page.enable"),
                session.send("Runtime.enable"),
            )
            await self._page.bring_to_front()
            self._session = session
        except Exception as e:
            self._logger.error("cdp:connect", f"Connection failed: {e}", endpoint=self.endpoint)
            await self._shutdown()
            raise BrowserNotAvailableError(str(e)) from e

        self._logger.debug("cdp:connect", "CDP session created", session_id=id(self._session))

    async def _launch(self) -> Page:
        browser_args = list(self._options.browser_args)
        if not any(arg.startswith("--disable-blink-features") for arg in browser_args):
            browser_args.append("--disable-blink-features=AutomationControlled")

        self._browser = await self._playwright.chromium.launch(
            headless=self._options.headless,
            args=browser_args,
        )
        context = await self._browser.new_context()
        return await context.new_page()

    async def _attach(self) -> Page:
        self._browser = await self._playwright.chromium.connect_over_cdp(self.endpoint)
        for context in self._browser.contexts:
            if context.pages:
                return context.pages[0]
        context = self._browser.contexts[0] if self._browser.contexts else await self._browser.new_context()
        return await context.new_page()

    async def disconnect(self) -> None:
        if self._session is not None:
            try:
                await self._session.detach()
            except Exception as e:
                # Session may already be gone with its target
                self._logger.debug("cdp:disconnect", f"Detach failed: {e}")
        await self._shutdown()

    async def _shutdown(self) -> None:
        self._session = None
        self._page = None
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def send(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if self._session is None:
            raise CDPError(method, "not connected")
        return await self._session.send(method, params or {})

    def on(self, event: str, handler: EventHandler) -> None:
        if self._session is None:
            raise CDPError(event, "not connected")
        self._session.on(event, handler)

    def remove_listener(self, event: str, handler: EventHandler) -> None:
        if self._session is not None:
            self._session.remove_listener(event, handler)
