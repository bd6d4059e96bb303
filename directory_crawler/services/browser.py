import logging
import re
import time
from pathlib import Path

from playwright.async_api import Browser, BrowserContext, Error as PlaywrightError, Playwright, Route, async_playwright

from directory_crawler.exceptions.custom import RenderError
from directory_crawler.schemas.work import RenderedPage
from directory_crawler.services.fetcher import USER_AGENT
from directory_crawler.services.renderer import PrepareHook

logger = logging.getLogger(__name__)

_BLOCKED_ASSET_RE = re.compile(r"\.(png|jpg|jpeg|gif|svg|woff2?|ttf|ico)$")
_BLOCKED_TRACKER_RE = re.compile(r"doubleclick|google-analytics|googletag|facebook\.net|analytics")

_BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
]


async def _block_heavy_requests(route: Route) -> None:
    url = route.request.url
    if _BLOCKED_ASSET_RE.search(url) or _BLOCKED_TRACKER_RE.search(url):
        await route.abort()
    else:
        await route.continue_()


class PlaywrightRenderer:
    """Headless Chromium renderer for directories that build their markup client-side."""

    def __init__(
        self,
        navigation_timeout_secs: float = 45.0,
        headless: bool = True,
        debug_screenshots: bool = False,
        screenshot_dir: str = "storage",
    ):
        self._timeout_ms = navigation_timeout_secs * 1000
        self._headless = headless
        self._debug_screenshots = debug_screenshots
        self._screenshot_dir = Path(screenshot_dir)
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None

    async def start(self) -> None:
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self._headless, args=_BROWSER_ARGS,
        )
        self._context = await self._browser.new_context(
            user_agent=USER_AGENT,
            viewport={"width": 1920, "height": 1080},
            locale="en-US",
        )
        await self._context.add_init_script(
            "Object.defineProperty(navigator, 'webdriver', { get: () => false });"
        )
        await self._context.route("**/*", _block_heavy_requests)

    async def stop(self) -> None:
        if self._context:
            await self._context.close()
        if self._browser:
            await self._browser.close()
        if self._playwright:
            await self._playwright.stop()
        self._context = self._browser = self._playwright = None

    async def render(self, url: str, prepare: PrepareHook | None = None) -> RenderedPage:
        if self._context is None:
            raise RenderError("browser not started", url=url)

        page = None
        try:
            page = await self._context.new_page()
            resp = await page.goto(url, wait_until="domcontentloaded", timeout=self._timeout_ms)
            if resp is not None and resp.status >= 400:
                raise RenderError(f"HTTP {resp.status}", url=url, status_code=resp.status)
            if prepare is not None:
                await prepare(page)
            markup = await page.content()
            text = await page.inner_text("body")
            return RenderedPage(url=page.url, markup=markup, text=text)
        except PlaywrightError as exc:
            if page is not None:
                await self._save_failure_screenshot(page, url)
            raise RenderError(str(exc), url=url) from exc
        except RenderError:
            await self._save_failure_screenshot(page, url)
            raise
        finally:
            if page is not None:
                await page.close()

    async def _save_failure_screenshot(self, page, url: str) -> None:
        if not self._debug_screenshots:
            return
        self._screenshot_dir.mkdir(parents=True, exist_ok=True)
        path = self._screenshot_dir / f"{int(time.time() * 1000)}_fail.png"
        try:
            await page.screenshot(path=str(path), full_page=True)
            logger.info("Saved failure screenshot for %s to %s", url, path)
        except PlaywrightError:
            logger.debug("Could not capture failure screenshot for %s", url)
