"""Tests for litpress.validators.assets."""

from __future__ import annotations

from litpress.validators import AssetValidator, Status

URL = "http://example.test/"


def _validate(head: str, body: str = "") -> AssetValidator:
    validator = AssetValidator()
    validator.validate_html(URL, f"<html><head>{head}</head><body>{body}</body></html>")
    return validator


def test_well_behaved_assets_pass() -> None:
    validator = _validate(
        '<link rel="stylesheet" href="/wp-content/themes/sample/style.css?ver=1.0.0">'
        '<script src="/wp-includes/js/app.js?ver=1.0.0" defer></script>'
        '<script type="module" src="https://cdn.example.com/widget.js"></script>',
        '<img src="/a.png" loading="lazy"><img src="/b.png" loading="lazy">',
    )

    assert validator.result.status is Status.PASS


def test_duplicate_scripts_fail() -> None:
    validator = _validate(
        '<script src="/app.js?ver=1" defer></script><script src="/app.js?ver=1" defer></script>'
    )

    assert validator.result.status is Status.FAIL
    assert [check.message for check in validator.result.errors] == [f"{URL}: duplicate scripts /app.js?ver=1"]


def test_blocking_script_and_missing_version_warn() -> None:
    validator = _validate('<script src="/wp-content/themes/sample/main.js"></script>')
    warnings = [check.message for check in validator.result.warnings]

    assert validator.result.status is Status.WARN
    assert f'{URL}: script /wp-content/themes/sample/main.js should use async, defer or type="module"' in warnings
    assert f"{URL}: /wp-content/themes/sample/main.js has no ver= cache-busting query" in warnings


def test_development_server_assets_warn() -> None:
    validator = _validate('<script type="module" src="http://localhost:5173/@vite/client"></script>')

    assert f"{URL}: development server assets in production HTML (localhost:5173, @vite/client)" in [
        check.message for check in validator.result.warnings
    ]


def test_lazy_loading_ratio_and_inline_limits() -> None:
    head = "<style>a{}</style>" * 4 + "<script>var a = 1;</script>" * 3
    body = '<img src="/a.png" loading="lazy"><img src="/b.png"><img src="/c.png">'

    warnings = [check.message for check in _validate(head, body).result.warnings]

    assert f"{URL}: 4 inline style blocks (max 3)" in warnings
    assert f"{URL}: 3 inline scripts (max 2)" in warnings
    assert f"{URL}: 33% of images use lazy loading (recommended >= 80%)" in warnings
