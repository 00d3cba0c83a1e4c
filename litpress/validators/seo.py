"""SEO checks on rendered pages."""

from __future__ import annotations

import json
from typing import Any, Mapping

from .base import ValidationContext, Validator
from .document import HTMLDocument, parse_document
from .sources import FetchedPage

MAX_TITLE_LENGTH = 60
_OG_REQUIRED = ("og:title", "og:description", "og:type")
_OG_RECOMMENDED = ("og:url", "og:image")


def _absolute(url: str) -> bool:
    return url.startswith(("http://", "https://", "//"))


class SEOValidator(Validator):
    """Meta tags, Open Graph, Twitter card, JSON-LD, canonical and heading outline.

    Only a missing meta description and a missing or empty title are errors;
    everything else is advisory.
    """

    name = "seo"
    description = "SEO meta tags and structured data"
    required_sources = ("html",)

    def validate(self, sources: Mapping[str, Any], context: ValidationContext) -> None:
        pages: Mapping[str, FetchedPage] = sources["html"]
        for url, page in pages.items():
            if not page.ok:
                self.result.add_warning(f"{url}: page could not be fetched ({page.error})", {"url": url})
                continue
            self.validate_html(url, page.html)

    def validate_html(self, url: str, html: str) -> None:
        document = parse_document(html)
        meta = {"url": url}
        self._basic_meta(url, document, meta)
        self._open_graph(url, document, meta)
        self._twitter(url, document, meta)
        self._json_ld(url, document, meta)
        self._canonical(url, document, meta)
        self._headings(url, document, meta)

    def _basic_meta(self, url: str, document: HTMLDocument, meta: dict) -> None:
        self.check(
            document.meta(name="description") is not None,
            f"{url}: meta description present",
            metadata=meta,
        )
        self.check(
            document.meta(name="keywords") is not None,
            f"{url}: meta keywords present",
            severity="warning",
            metadata=meta,
        )
        if document.title is None:
            self.check(False, f"{url}: title tag present", metadata=meta)
        elif self.check(bool(document.title), f"{url}: title tag is not empty", metadata=meta):
            length = len(document.title)
            self.check(
                length <= MAX_TITLE_LENGTH,
                f"{url}: title is {length} characters (recommended <= {MAX_TITLE_LENGTH})",
                severity="warning",
                metadata=meta,
            )
        self.check(
            document.meta(name="viewport") is not None,
            f"{url}: meta viewport present",
            severity="warning",
            metadata=meta,
        )

    def _open_graph(self, url: str, document: HTMLDocument, meta: dict) -> None:
        for prop in _OG_REQUIRED + _OG_RECOMMENDED:
            self.check(
                document.meta(prop=prop) is not None,
                f"{url}: Open Graph '{prop}' present",
                severity="warning",
                metadata=meta,
            )
        image = document.meta_content(prop="og:image")
        if image:
            self.check(_absolute(image), f"{url}: og:image is an absolute URL", severity="warning", metadata=meta)

    def _twitter(self, url: str, document: HTMLDocument, meta: dict) -> None:
        if not self.check(
            document.meta(name="twitter:card") is not None,
            f"{url}: Twitter card present",
            severity="warning",
            metadata=meta,
        ):
            return
        for field in ("title", "description"):
            self.check(
                document.meta(name=f"twitter:{field}") is not None or document.meta(prop=f"og:{field}") is not None,
                f"{url}: twitter:{field} or og:{field} present",
                severity="warning",
                metadata=meta,
            )

    def _json_ld(self, url: str, document: HTMLDocument, meta: dict) -> None:
        blocks = document.json_ld
        self.check(bool(blocks), f"{url}: JSON-LD structured data present", severity="warning", metadata=meta)
        for index, block in enumerate(blocks, start=1):
            try:
                data = json.loads(block)
            except json.JSONDecodeError as exc:
                self.result.add_warning(f"{url}: JSON-LD block {index} is malformed: {exc}", meta)
                continue
            items = data if isinstance(data, list) else [data]
            for item in items:
                if not isinstance(item, dict):
                    continue
                self.check("@context" in item, f"{url}: JSON-LD block {index} has @context", severity="warning", metadata=meta)
                self.check("@type" in item, f"{url}: JSON-LD block {index} has @type", severity="warning", metadata=meta)

    def _canonical(self, url: str, document: HTMLDocument, meta: dict) -> None:
        canonical = document.link("canonical")
        if not self.check(canonical is not None, f"{url}: canonical link present", severity="warning", metadata=meta):
            return
        href = canonical.get("href", "") if canonical else ""
        self.check(_absolute(href), f"{url}: canonical URL is absolute", severity="warning", metadata=meta)

    def _headings(self, url: str, document: HTMLDocument, meta: dict) -> None:
        h1_count = sum(1 for level, _ in document.headings if level == 1)
        self.check(
            h1_count == 1,
            f"{url}: exactly one H1 (found {h1_count})",
            severity="warning",
            metadata=meta,
        )
        previous = 0
        for level, text in document.headings:
            if previous and level > previous + 1:
                self.result.add_warning(
                    f"{url}: heading level skips from H{previous} to H{level} ('{text}')", meta
                )
            previous = level


__all__ = ["MAX_TITLE_LENGTH", "SEOValidator"]
