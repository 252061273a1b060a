"""
Subject resolvers.

Turn a subject reference (event id or platform URL) into the display
text that seeds the narrative prompt. Resolvers only read.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import httpx
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubjectInfo:
    """What the analyzer knows about the promoted subject."""
    reference: str
    name: str
    description: str = ""

    @property
    def is_url(self) -> bool:
        return self.reference.startswith(("http://", "https://"))

    def describe(self) -> str:
        parts = [self.name]
        if self.is_url and self.reference != self.name:
            parts.append(f"({self.reference})")
        if self.description:
            parts.append(f"- {self.description}")
        return " ".join(parts)


class BaseSubjectResolver(ABC):
    @abstractmethod
    async def resolve(self, reference: str) -> SubjectInfo:
        pass

    async def close(self) -> None:
        pass


class StaticSubjectResolver(BaseSubjectResolver):
    """
    Resolver backed by records the caller already holds
    (e.g. an event row loaded by the CRUD layer).

    Unknown references resolve to themselves.
    """

    def __init__(self, subjects: Optional[Dict[str, SubjectInfo]] = None):
        self._subjects = dict(subjects or {})

    def add(self, reference: str, name: str, description: str = "") -> SubjectInfo:
        info = SubjectInfo(reference=reference, name=name, description=description)
        self._subjects[reference] = info
        return info

    async def resolve(self, reference: str) -> SubjectInfo:
        info = self._subjects.get(reference)
        if info is None:
            return SubjectInfo(reference=reference, name=reference)
        return info


def _meta_content(soup: BeautifulSoup, *lookups: dict) -> str:
    for attrs in lookups:
        tag = soup.find("meta", attrs=attrs)
        if tag and tag.get("content", "").strip():
            return tag["content"].strip()
    return ""


def extract_page_meta(html: str) -> Tuple[str, str]:
    """Return (title, description) from a page, empty strings when absent."""
    soup = BeautifulSoup(html, "html.parser")

    title = soup.title.get_text(strip=True) if soup.title else ""
    if not title:
        title = _meta_content(soup, {"property": "og:title"})

    description = _meta_content(
        soup,
        {"name": "description"},
        {"property": "og:description"},
    )
    return title, description


class WebPageSubjectResolver(BaseSubjectResolver):
    """
    Reads the page title and meta description of a URL subject.

    Fetch failures degrade to the bare URL; the reasoning provider can
    still research it through search grounding.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float = 15.0):
        self.client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def resolve(self, reference: str) -> SubjectInfo:
        if not reference.startswith(("http://", "https://")):
            return SubjectInfo(reference=reference, name=reference)

        try:
            response = await self.client.get(reference)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"[SUBJECT] Could not fetch {reference}: {e}")
            return SubjectInfo(reference=reference, name=reference)

        title, description = extract_page_meta(response.text)

        return SubjectInfo(
            reference=reference,
            name=title or reference,
            description=description,
        )

    async def close(self) -> None:
        await self.client.aclose()
