"""Tests for docchain.cli and docchain.cli_output modules."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from docchain.cli import _parse_crawl_args, _run_crawl_async, main
from docchain.cli_output import (
    format_index,
    url_to_filename,
    write_output,
)
from docchain.aggregate import aggregate
from docchain.document import AggregatedDocument, CrawlFailure, PageRecord

START = "https://docs.example.com/guide/intro"


def _doc() -> AggregatedDocument:
    pages = [
        PageRecord(url=START, title="Intro", content_markup="Hello there."),
        PageRecord(url="https://docs.example.com/guide/setup", title="Setup", content_markup="Install it."),
    ]
    doc = aggregate(pages, start_url=START, title="guide")
    doc.failures = [CrawlFailure(url="https://docs.example.com/guide/gone", reason="HTTP 404")]
    return doc


def _empty_doc() -> AggregatedDocument:
    return AggregatedDocument(
        url=START,
        title="guide",
        failures=[CrawlFailure(url=START, reason="HTTP 404")],
    )


def _args(**overrides) -> argparse.Namespace:
    values = dict(
        url=START,
        max_pages=5,
        title=None,
        output=None,
        json_output=False,
        index_only=False,
        no_images=False,
        timeout=None,
        verbose=False,
    )
    values.update(overrides)
    return argparse.Namespace(**values)


class TestFormatIndex:
    def test_lists_entries_and_failures(self):
        text = format_index(_doc())
        assert text.startswith("# guide")
        assert "1. Intro (words 0-" in text
        assert "2. Setup" in text
        assert "- https://docs.example.com/guide/gone: HTTP 404" in text


class TestUrlToFilename:
    def test_basic(self):
        assert url_to_filename("https://docs.example.com/guide/intro") == "docs_example_com_guide_intro"

    def test_root(self):
        assert url_to_filename("https://docs.example.com/") == "docs_example_com_index"

    def test_long_url_truncated(self):
        assert len(url_to_filename("https://example.com/" + "a" * 300)) <= 100


class TestWriteOutput:
    def test_stdout_markdown(self, capsys):
        doc = _doc()
        assert write_output(doc, None, False) is None
        assert capsys.readouterr().out.strip() == doc.content

    def test_stdout_json(self, capsys):
        write_output(_doc(), None, True)
        data = json.loads(capsys.readouterr().out)
        assert [entry["page_number"] for entry in data["index"]] == [1, 2]
        assert data["failures"][0]["reason"] == "HTTP 404"

    def test_stdout_index(self, capsys):
        write_output(_doc(), None, False, index_only=True)
        assert "2. Setup" in capsys.readouterr().out

    def test_to_file(self, tmp_path: Path):
        target = tmp_path / "out.md"
        assert write_output(_doc(), str(target), False) == target
        assert target.read_text(encoding="utf-8") == _doc().content

    def test_to_directory(self, tmp_path: Path):
        path = write_output(_doc(), f"{tmp_path}/nested/", True)
        assert path == tmp_path / "nested" / "docs_example_com_guide_intro.json"
        assert json.loads(path.read_text(encoding="utf-8"))["title"] == "guide"


class TestParseCrawlArgs:
    def test_defaults(self):
        args = _parse_crawl_args([START])
        assert args.url == START
        assert args.max_pages == 5
        assert args.title is None
        assert args.json_output is False
        assert args.index_only is False
        assert args.no_images is False
        assert args.timeout is None

    def test_all_options(self):
        args = _parse_crawl_args(
            [
                START,
                "--max-pages",
                "12",
                "--title",
                "Saved",
                "-o",
                "out/",
                "--json",
                "--index",
                "--no-images",
                "--timeout",
                "7.5",
                "-v",
            ]
        )
        assert args.max_pages == 12
        assert args.title == "Saved"
        assert args.output == "out/"
        assert args.json_output is True
        assert args.index_only is True
        assert args.no_images is True
        assert args.timeout == 7.5
        assert args.verbose is True


class TestRunCrawlAsync:
    @pytest.mark.asyncio
    async def test_success(self, capsys):
        with patch("docchain.crawl_docs_async", new_callable=AsyncMock, return_value=_doc()) as mock:
            result = await _run_crawl_async(_args(max_pages=3, title="Saved", no_images=True, timeout=4.0))
        assert result == 0
        request = mock.call_args.args[0]
        settings = mock.call_args.kwargs["settings"]
        assert request.max_pages == 3
        assert request.existing_title == "Saved"
        assert settings.capture_images is False
        assert settings.request_timeout == 4.0
        assert "Hello there." in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_failures_are_left_to_the_crawl_log(self, capsys, caplog):
        caplog.set_level(logging.DEBUG)
        with patch("docchain.crawl_docs_async", new_callable=AsyncMock, return_value=_doc()):
            result = await _run_crawl_async(_args())
        assert result == 0
        assert "guide/gone" not in caplog.text

    @pytest.mark.asyncio
    async def test_empty_document_fails(self, capsys):
        with patch("docchain.crawl_docs_async", new_callable=AsyncMock, return_value=_empty_doc()):
            result = await _run_crawl_async(_args())
        assert result == 1
        assert capsys.readouterr().out == ""

    @pytest.mark.asyncio
    async def test_empty_document_still_written_as_json(self, capsys):
        with patch("docchain.crawl_docs_async", new_callable=AsyncMock, return_value=_empty_doc()):
            result = await _run_crawl_async(_args(json_output=True))
        assert result == 1
        data = json.loads(capsys.readouterr().out)
        assert data["pages"] == []
        assert data["failures"] == [{"url": START, "reason": "HTTP 404"}]


class TestMainEntryPoint:
    def test_main_crawl(self):
        with patch("docchain.cli._load_config"), patch(
            "docchain.cli._run_crawl_async", new_callable=AsyncMock, return_value=0
        ):
            assert main([START]) == 0

    def test_main_invalid_request(self):
        with patch("docchain.cli._load_config"):
            assert main(["/not/absolute"]) == 2

    def test_main_zero_pages_is_invalid(self):
        with patch("docchain.cli._load_config"):
            assert main([START, "--max-pages", "0"]) == 2

    def test_main_crawl_error(self):
        with patch("docchain.cli._load_config"), patch(
            "docchain.cli._run_crawl_async",
            new_callable=AsyncMock,
            side_effect=Exception("error"),
        ):
            assert main([START]) == 1
