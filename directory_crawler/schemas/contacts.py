from __future__ import annotations

from pydantic import BaseModel

from directory_crawler.mappers.normalize import unique


class ContactBundle(BaseModel):
    emails: list[str] = []
    phones: list[str] = []
    social_links: list[str] = []

    def merge(self, other: ContactBundle) -> ContactBundle:
        """Ordered union; entries from self keep their position."""
        return ContactBundle(
            emails=unique(self.emails + other.emails),
            phones=unique(self.phones + other.phones),
            social_links=unique(self.social_links + other.social_links),
        )

    def is_empty(self) -> bool:
        return not (self.emails or self.phones or self.social_links)


class FetchResult(BaseModel):
    url: str
    status: int
    body: str = ""


class FetchAttempt(BaseModel):
    url: str
    ok: bool
    status: int | None = None
    reason: str | None = None  # set when ok is False


class EnrichmentReport(BaseModel):
    origin: str | None = None
    contacts: ContactBundle = ContactBundle()
    attempts: list[FetchAttempt] = []
    stopped_early: bool = False
