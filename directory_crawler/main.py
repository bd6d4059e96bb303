import logging
import sys
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from directory_crawler.config import Settings
from directory_crawler.exceptions.custom import CrawlConfigError, RenderError
from directory_crawler.exceptions.handlers import crawl_config_error_handler, render_error_handler
from directory_crawler.jobs import JobStore
from directory_crawler.routers.crawl import router as crawl_router
from directory_crawler.services.browser import PlaywrightRenderer
from directory_crawler.services.renderer import HttpRenderer


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = Settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)

    async with httpx.AsyncClient(timeout=30.0) as client:
        browser: PlaywrightRenderer | None = None
        if settings.renderer == "playwright":
            browser = PlaywrightRenderer(
                navigation_timeout_secs=settings.navigation_timeout_secs,
                debug_screenshots=settings.debug_screenshots,
                screenshot_dir=settings.screenshot_dir,
            )
            await browser.start()
            app.state.renderer = browser
        else:
            app.state.renderer = HttpRenderer(client, timeout=settings.navigation_timeout_secs)

        app.state.settings = settings
        app.state.http_client = client
        app.state.job_store = JobStore()

        try:
            yield
        finally:
            if browser is not None:
                await browser.stop()


app = FastAPI(title="Directory Crawler", lifespan=lifespan)

app.add_exception_handler(RenderError, render_error_handler)
app.add_exception_handler(CrawlConfigError, crawl_config_error_handler)

app.include_router(crawl_router)
