from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from directory_crawler.mappers.normalize import normalize_url


class Label(StrEnum):
    SEARCH = "SEARCH"
    DETAIL = "DETAIL"


class WorkItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    label: str  # Label value; anything else is dropped by the orchestrator

    @property
    def key(self) -> str:
        """Queue identity: url with lowercased scheme/host and no fragment."""
        return normalize_url(self.url)


class RenderedPage(BaseModel):
    url: str
    markup: str = ""
    text: str = ""
