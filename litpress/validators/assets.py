"""Asset hygiene checks on rendered pages."""

from __future__ import annotations

from collections import Counter
from typing import Any, List, Mapping
from urllib.parse import urlparse

from .base import ValidationContext, Validator
from .document import HTMLDocument, parse_document
from .sources import FetchedPage

MAX_INLINE_STYLES = 3
MAX_INLINE_SCRIPTS = 2
MIN_LAZY_RATIO = 0.8
DEV_SERVER_MARKERS = ("localhost:5173", "@vite/client", "127.0.0.1:5173")


def _is_local(asset: str, host: str) -> bool:
    parsed = urlparse(asset)
    if not parsed.netloc:
        return not asset.startswith("data:")
    return parsed.netloc == host


class AssetValidator(Validator):
    name = "assets"
    description = "Inline asset counts, lazy loading, script loading and cache busting"
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
        self._inline_counts(url, document, meta)
        self._lazy_loading(url, document, meta)
        self._scripts(url, document, meta)
        self._dev_assets(url, html, meta)
        self._versioning(url, document, meta)

    def _inline_counts(self, url: str, document: HTMLDocument, meta: dict) -> None:
        styles = len(document.styles)
        scripts = len(document.inline_scripts)
        self.check(
            styles <= MAX_INLINE_STYLES,
            f"{url}: {styles} inline style blocks (max {MAX_INLINE_STYLES})",
            severity="warning",
            metadata=meta,
        )
        self.check(
            scripts <= MAX_INLINE_SCRIPTS,
            f"{url}: {scripts} inline scripts (max {MAX_INLINE_SCRIPTS})",
            severity="warning",
            metadata=meta,
        )

    def _lazy_loading(self, url: str, document: HTMLDocument, meta: dict) -> None:
        if not document.images:
            return
        lazy = sum(1 for image in document.images if image.get("loading", "").lower() == "lazy")
        ratio = lazy / len(document.images)
        self.check(
            ratio >= MIN_LAZY_RATIO,
            f"{url}: {ratio:.0%} of images use lazy loading (recommended >= {MIN_LAZY_RATIO:.0%})",
            severity="warning",
            metadata={**meta, "lazy": lazy, "images": len(document.images)},
        )

    def _scripts(self, url: str, document: HTMLDocument, meta: dict) -> None:
        sources = [script.src or "" for script in document.external_scripts]
        duplicates = sorted(src for src, count in Counter(sources).items() if count > 1)
        self.check(
            not duplicates,
            f"{url}: duplicate scripts {', '.join(duplicates)}" if duplicates else f"{url}: no duplicate scripts",
            metadata={**meta, "duplicates": duplicates},
        )
        for script in document.external_scripts:
            non_blocking = "async" in script.attrs or "defer" in script.attrs or script.type == "module"
            if not non_blocking:
                self.result.add_warning(
                    f"{url}: script {script.src} should use async, defer or type=\"module\"",
                    {**meta, "src": script.src},
                )

    def _dev_assets(self, url: str, html: str, meta: dict) -> None:
        found = [marker for marker in DEV_SERVER_MARKERS if marker in html]
        self.check(
            not found,
            f"{url}: development server assets in production HTML ({', '.join(found)})"
            if found
            else f"{url}: no development server assets",
            severity="warning",
            metadata=meta,
        )

    def _versioning(self, url: str, document: HTMLDocument, meta: dict) -> None:
        host = urlparse(url).netloc
        assets: List[str] = [script.src or "" for script in document.external_scripts]
        assets += [
            link.get("href", "")
            for link in document.links
            if "stylesheet" in link.get("rel", "").lower().split()
        ]
        for asset in assets:
            if asset and _is_local(asset, host) and "ver=" not in asset:
                self.result.add_warning(f"{url}: {asset} has no ver= cache-busting query", {**meta, "asset": asset})


__all__ = ["AssetValidator"]
