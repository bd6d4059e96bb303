from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BusinessRecord(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    scraped_at: datetime
    name: str | None = None
    categories: list[str] = []
    rating: float | None = None
    review_count: int | None = None
    price_level: str | None = None  # e.g. "$$"
    phone: str | None = None
    address: str | None = None
    source_url: str
    website: str | None = None  # origin only: scheme + host
    emails: list[str] = []
    phones_from_website: list[str] = []
    social_links: list[str] = []


class ResolutionReport(BaseModel):
    record: BusinessRecord
    sources: dict[str, str] = {}  # field -> strategy that produced it
    misses: dict[str, str] = {}  # field -> why every strategy came up empty
