from typing import Annotated

import httpx
from fastapi import Depends, Request

from directory_crawler.config import Settings
from directory_crawler.jobs import JobStore
from directory_crawler.services.renderer import PageRenderer


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_renderer(request: Request) -> PageRenderer:
    return request.app.state.renderer


def get_job_store(request: Request) -> JobStore:
    return request.app.state.job_store


SettingsDep = Annotated[Settings, Depends(get_settings)]
HttpClientDep = Annotated[httpx.AsyncClient, Depends(get_http_client)]
RendererDep = Annotated[PageRenderer, Depends(get_renderer)]
JobStoreDep = Annotated[JobStore, Depends(get_job_store)]
