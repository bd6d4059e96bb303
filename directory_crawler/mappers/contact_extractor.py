import re

from directory_crawler.mappers.normalize import unique
from directory_crawler.schemas.contacts import ContactBundle

_EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}")

# Optional country code and area code, then two digit groups; validated by digit count afterwards
_PHONE_RE = re.compile(r"(?:\+?\d{1,3}[ .-]?)?(?:\(?\d{2,4}\)?[ .-]?)?\d{3,4}[ .-]?\d{3,4}")

_SOCIAL_RE = re.compile(
    r"https?://(?:www\.)?(?:facebook|fb|instagram|twitter|x|linkedin|youtube|tiktok)\.com/[^\s\"'<>)]+",
    re.IGNORECASE,
)

# Placeholder addresses
_PLACEHOLDER_EMAIL_RE = re.compile(r"example|test", re.IGNORECASE)

# Retina asset names such as logo@2x.png look like emails
_ASSET_SUFFIXES = (".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp")

_MIN_PHONE_DIGITS = 7


def _digits_only(phone: str) -> str:
    return "".join(c for c in phone if c.isdigit())


def _is_valid_phone(phone: str) -> bool:
    return len(_digits_only(phone)) >= _MIN_PHONE_DIGITS


def _is_placeholder_email(email: str) -> bool:
    return bool(_PLACEHOLDER_EMAIL_RE.search(email)) or email.endswith(_ASSET_SUFFIXES)


def extract_emails(text: str) -> list[str]:
    return unique(
        email
        for email in (m.lower().strip(".") for m in _EMAIL_RE.findall(text))
        if not _is_placeholder_email(email)
    )


def extract_phones(text: str) -> list[str]:
    return unique(
        phone
        for phone in (m.strip() for m in _PHONE_RE.findall(text))
        if _is_valid_phone(phone)
    )


def extract_social_links(text: str) -> list[str]:
    return unique(m.rstrip(".,;:") for m in _SOCIAL_RE.findall(text))


def extract_contacts(page_text: str | None) -> ContactBundle:
    """Scan raw page text or markup for emails, phones and social profiles.

    Never raises: anything that is not a non-empty string yields an empty bundle.
    """
    if not page_text or not isinstance(page_text, str):
        return ContactBundle()
    return ContactBundle(
        emails=extract_emails(page_text),
        phones=extract_phones(page_text),
        social_links=extract_social_links(page_text),
    )
