import httpx
import pytest
from httpx import ASGITransport


@pytest.fixture
def mock_env(monkeypatch):
    monkeypatch.setenv("RENDERER", "http")
    monkeypatch.setenv("DIRECTORY_BASE_URL", "https://dir.test")
    monkeypatch.setenv("SEARCH", "plumber")
    monkeypatch.setenv("LOCATION", "Springfield")
    monkeypatch.setenv("WEBSITE_DELAY_MIN_MS", "0")
    monkeypatch.setenv("WEBSITE_DELAY_MAX_MS", "0")
    monkeypatch.setenv("WEBSITE_MAX_RETRIES", "0")
    monkeypatch.setenv("OUTPUT_PATH", "")
    monkeypatch.setenv("SEARCH_URL", "")


@pytest.fixture
async def client(mock_env):
    from directory_crawler.main import app, lifespan

    async with lifespan(app):
        async with httpx.AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as c:
            yield c
