import asyncio
import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from directory_crawler.config import Settings, resolve_start_url
from directory_crawler.dependencies import HttpClientDep, JobStoreDep, RendererDep, SettingsDep
from directory_crawler.exceptions.custom import CrawlConfigError
from directory_crawler.jobs import JobStore
from directory_crawler.schemas.business import ResolutionReport
from directory_crawler.schemas.contacts import EnrichmentReport
from directory_crawler.schemas.crawl import CrawlOptions, CrawlSummary
from directory_crawler.schemas.responses import JobStatusResponse, JobSubmittedResponse
from directory_crawler.services import record_resolver
from directory_crawler.services.crawler import CrawlerService, build_crawler
from directory_crawler.services.fetcher import HttpFetcher
from directory_crawler.services.orchestrator import dismiss_consent_overlay
from directory_crawler.services.website_enricher import EnrichOptions, WebsiteEnricherService, get_stop_policy

logger = logging.getLogger(__name__)

router = APIRouter()


class CrawlRequest(BaseModel):
    search: str | None = None
    location: str | None = None
    search_url: str | None = None
    max_results: int | None = None
    fetch_contacts_from_website: bool | None = None
    contact_page_paths: list[str] | None = None
    max_concurrency: int | None = None
    stop_policy: str | None = None


class EnrichRequest(BaseModel):
    url: str
    contact_page_paths: list[str] | None = None
    stop_policy: str | None = None


class ResolveRequest(BaseModel):
    url: str


def build_options(settings: Settings, request: CrawlRequest | None) -> CrawlOptions:
    req = request or CrawlRequest()
    options = CrawlOptions(
        start_url=resolve_start_url(settings, req.search, req.location, req.search_url),
        max_results=req.max_results if req.max_results is not None else settings.max_results,
        fetch_contacts_from_website=(
            req.fetch_contacts_from_website
            if req.fetch_contacts_from_website is not None
            else settings.fetch_contacts_from_website
        ),
        contact_page_paths=req.contact_page_paths if req.contact_page_paths is not None else settings.contact_page_paths,
        max_concurrency=req.max_concurrency or settings.max_concurrency,
        stop_policy=req.stop_policy or settings.enrich_stop_policy,
    )
    if options.max_results < 1:
        raise CrawlConfigError("max_results must be at least 1")
    get_stop_policy(options.stop_policy)
    return options


async def _run_crawl(job_id: str, crawler: CrawlerService, store: JobStore) -> None:
    store.mark_running(job_id)
    try:
        result = await crawler.run()
        store.mark_completed(job_id, result)
    except Exception as exc:
        logger.exception("Crawl job %s failed", job_id)
        store.mark_failed(job_id, str(exc))


@router.post("/crawl", response_model=JobSubmittedResponse, status_code=202)
async def start_crawl(
    settings: SettingsDep,
    client: HttpClientDep,
    renderer: RendererDep,
    store: JobStoreDep,
    request: CrawlRequest | None = None,
) -> JobSubmittedResponse:
    options = build_options(settings, request)

    existing = store.has_active_job(options.start_url)
    if existing:
        return JSONResponse(content={
            "job_id": existing.job_id,
            "status": "already_running",
            "message": "A crawl for this search is already running",
            "start_url": options.start_url,
        })

    crawler = build_crawler(settings, client, renderer, options)
    job = store.create_job(start_url=options.start_url)
    asyncio.create_task(_run_crawl(job.job_id, crawler, store))
    return JobSubmittedResponse(
        job_id=job.job_id,
        status=job.status,
        message="Crawl job submitted",
        start_url=options.start_url,
    )


@router.get("/jobs/{job_id}", response_model=JobStatusResponse)
async def get_job_status(job_id: str, store: JobStoreDep) -> JobStatusResponse:
    job = store.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return JobStatusResponse(**job.model_dump())


@router.post("/crawl/sync", response_model=CrawlSummary)
async def crawl_sync(
    settings: SettingsDep,
    client: HttpClientDep,
    renderer: RendererDep,
    request: CrawlRequest | None = None,
) -> CrawlSummary:
    options = build_options(settings, request)
    return await build_crawler(settings, client, renderer, options).run()


@router.post("/enrich", response_model=EnrichmentReport)
async def enrich_website(
    settings: SettingsDep,
    client: HttpClientDep,
    request: EnrichRequest,
) -> EnrichmentReport:
    enricher = WebsiteEnricherService(
        HttpFetcher(client),
        stop_policy=get_stop_policy(request.stop_policy or settings.enrich_stop_policy),
        options=EnrichOptions.from_settings(settings),
    )
    paths = request.contact_page_paths if request.contact_page_paths is not None else settings.contact_page_paths
    return await enricher.harvest(request.url, paths)


@router.post("/resolve", response_model=ResolutionReport)
async def resolve_detail_page(renderer: RendererDep, request: ResolveRequest) -> ResolutionReport:
    page = await renderer.render(request.url, prepare=dismiss_consent_overlay)
    return record_resolver.resolve(page, request.url)
