"""Shared fixtures and strict test-accounting guardrails."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Tuple, Union

import httpx
import pytest

# url -> html body, or (status, body), or (status, body, headers)
SitePage = Union[str, Tuple[int, str], Tuple[int, Union[str, bytes], Dict[str, str]]]


@dataclass
class FakeSite:
    """In-memory website served through ``httpx.MockTransport``."""

    pages: Dict[str, SitePage]
    requests: List[str] = field(default_factory=list)
    errors: Dict[str, Exception] = field(default_factory=dict)

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if url in self.errors:
            raise self.errors[url]
        page = self.pages.get(url)
        if page is None:
            return httpx.Response(404, text="not found")
        if isinstance(page, str):
            return httpx.Response(200, html=page)
        if len(page) == 2:
            status, body = page
            return httpx.Response(status, html=body)
        status, body, headers = page
        content = body.encode("utf-8") if isinstance(body, str) else body
        return httpx.Response(status, content=content, headers=headers)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.MockTransport(self.handler), follow_redirects=True
        )


@pytest.fixture
def fake_site() -> Callable[..., FakeSite]:
    def _make(pages: Dict[str, SitePage], **kwargs) -> FakeSite:
        return FakeSite(pages=dict(pages), **kwargs)

    return _make


def doc_page(title: str, body: str, *, extra: str = "") -> str:
    """Minimal documentation page with a main region and chrome around it."""
    return f"""<html>
<head><title>{title}</title></head>
<body>
  <header><a href="/">Site</a></header>
  <main>
    <h1>{title}</h1>
    {body}
  </main>
  {extra}
  <footer>Copyright</footer>
</body>
</html>"""


# ---------------------------------------------------------------------------
# Strict accounting: skipped/deselected/xfail tests fail the session.
# ---------------------------------------------------------------------------


@dataclass
class _TestAccounting:
    deselected: int = 0
    skipped: int = 0
    xfailed: int = 0
    xpassed: int = 0


_ACCOUNTING = _TestAccounting()


def pytest_deselected(items):  # pragma: no cover - pytest hook
    _ACCOUNTING.deselected += len(items)


def pytest_runtest_logreport(report):  # pragma: no cover - pytest hook
    if report.when not in {"setup", "call"}:
        return

    if getattr(report, "wasxfail", False):
        if report.outcome == "skipped":
            _ACCOUNTING.xfailed += 1
        elif report.outcome == "passed":
            _ACCOUNTING.xpassed += 1
        return

    if report.outcome == "skipped":
        _ACCOUNTING.skipped += 1


def pytest_sessionfinish(session, exitstatus):  # pragma: no cover - pytest hook
    violations = [
        f"{name}={count}"
        for name, count in (
            ("deselected", _ACCOUNTING.deselected),
            ("skipped", _ACCOUNTING.skipped),
            ("xfailed", _ACCOUNTING.xfailed),
            ("xpassed", _ACCOUNTING.xpassed),
        )
        if count
    ]
    if not violations:
        return

    reporter = session.config.pluginmanager.get_plugin("terminalreporter")
    if reporter:
        reporter.write_sep(
            "=",
            "Strict guard failed: test accounting violations detected "
            f"({', '.join(violations)})",
        )
    session.exitstatus = 1
