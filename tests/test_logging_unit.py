"""Unit tests for structured logging."""

import json
import logging
import os
from unittest.mock import patch

import pytest

from syndication.logging_config import (
    StructuredFormatter,
    create_execution_logger,
    setup_structured_logging,
)
from syndication.models import Feed, Item, Link, MediaContent, MerchantAttributes
from syndication.rss import RssTranslator, to_rss, to_rss_from_env


class TestLoggingUnit:
    """Unit tests for logging configuration and translator logging."""

    def test_structured_formatter_outputs_json(self):
        record = logging.LogRecord(
            name="syndication.rss_translator",
            level=logging.INFO,
            pathname=__file__,
            lineno=10,
            msg="Translated feed: %d items",
            args=(3,),
            exc_info=None,
        )
        record.execution_id = "exec_1"
        record.component = "rss_translator"
        record.feed_link = "https://example.com"
        record.item_guid = "guid-1"

        entry = json.loads(StructuredFormatter().format(record))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "syndication.rss_translator"
        assert entry["message"] == "Translated feed: 3 items"
        assert entry["execution_id"] == "exec_1"
        assert entry["component"] == "rss_translator"
        assert entry["feed_link"] == "https://example.com"
        assert entry["item_guid"] == "guid-1"
        assert "metrics" not in entry

    def test_setup_structured_logging_installs_formatter(self):
        root_logger = logging.getLogger()
        original_level = root_logger.level
        original_handlers = root_logger.handlers[:]

        try:
            setup_structured_logging("debug")

            assert root_logger.level == logging.DEBUG
            assert len(root_logger.handlers) == 1
            assert isinstance(root_logger.handlers[0].formatter, StructuredFormatter)
            assert logging.getLogger("syndication").level == logging.DEBUG
            assert logging.getLogger("syndication.xml_writer").level == logging.NOTSET
        finally:
            root_logger.handlers[:] = original_handlers
            root_logger.setLevel(original_level)
            logging.getLogger("syndication").setLevel(logging.NOTSET)

    def test_to_rss_from_env_configures_logging_and_output(self):
        feed = Feed(title="T", link=Link(href="L"))
        env = {
            "LOG_LEVEL": "WARNING",
            "RSS_PRETTY_PRINT": "false",
            "RSS_XML_DECLARATION": "false",
        }

        with (
            patch.dict(os.environ, env, clear=True),
            patch("syndication.rss.setup_structured_logging") as mock_setup,
        ):
            document = to_rss_from_env(feed)

        mock_setup.assert_called_once_with("WARNING")
        assert document == (
            '<rss version="2.0"><channel><title>T</title><link>L</link>'
            "<description></description></channel></rss>"
        )

    def test_to_rss_from_env_rejects_bad_settings(self):
        feed = Feed(title="T", link=Link(href="L"))

        with (
            patch.dict(os.environ, {"RSS_NAIVE_TIMEZONE": "Mars/Olympus_Mons"}, clear=True),
            patch("syndication.rss.setup_structured_logging"),
        ):
            with pytest.raises(ValueError, match="Unknown timezone"):
                to_rss_from_env(feed)

    def test_create_execution_logger_generates_id(self):
        logger = create_execution_logger("xml_writer")

        assert logger.execution_id.startswith("exec_")
        assert logger.logger.name == "syndication.xml_writer"

    def test_translator_logs_feed_and_items(self, caplog):
        feed = Feed(
            title="Feed",
            link=Link(href="https://example.com"),
            items=[Item(id="a"), Item(id="b")],
        )

        with caplog.at_level(logging.DEBUG, logger="syndication"):
            RssTranslator(execution_id="exec_test").translate_channel(feed)

        item_records = [r for r in caplog.records if hasattr(r, "item_guid")]
        assert [r.item_guid for r in item_records] == ["a", "b"]

        feed_records = [r for r in caplog.records if hasattr(r, "feed_link")]
        assert feed_records[-1].items_count == 2
        assert all(r.execution_id == "exec_test" for r in caplog.records)

    def test_warns_when_later_items_need_namespaces(self, caplog):
        feed = Feed(
            title="Feed",
            link=Link(href="https://example.com"),
            items=[
                Item(id="a"),
                Item(
                    id="b",
                    merchant=MerchantAttributes(id="SKU-B"),
                    media_content=MediaContent(url="https://example.com/b.mp4"),
                ),
            ],
        )

        with caplog.at_level(logging.WARNING, logger="syndication"):
            RssTranslator().feed_xml(feed)

        messages = [r.getMessage() for r in caplog.records]
        assert any("g namespace" in m for m in messages)
        assert any("media namespace" in m for m in messages)

    def test_warns_only_for_the_undeclared_namespace(self, caplog):
        feed = Feed(
            title="Feed",
            link=Link(href="https://example.com"),
            items=[
                Item(id="a", merchant=MerchantAttributes(id="SKU-A")),
                Item(
                    id="b",
                    merchant=MerchantAttributes(id="SKU-B"),
                    media_content=MediaContent(url="https://example.com/b.mp4"),
                ),
            ],
        )

        with caplog.at_level(logging.WARNING, logger="syndication"):
            RssTranslator().feed_xml(feed)

        messages = [r.getMessage() for r in caplog.records]
        assert not any("g namespace" in m for m in messages)
        assert any("media namespace" in m for m in messages)

    def test_no_warning_when_first_item_declares_everything(self, caplog):
        feed = Feed(
            title="Feed",
            link=Link(href="https://example.com"),
            items=[
                Item(
                    id="a",
                    merchant=MerchantAttributes(id="SKU-A"),
                    media_content=MediaContent(url="https://example.com/a.mp4"),
                ),
                Item(id="b", merchant=MerchantAttributes(id="SKU-B")),
            ],
        )

        with caplog.at_level(logging.WARNING, logger="syndication"):
            RssTranslator().feed_xml(feed)

        assert [r for r in caplog.records if r.levelno >= logging.WARNING] == []

    def test_to_rss_logs_metrics(self, caplog):
        feed = Feed(title="Feed", link=Link(href="https://example.com"), items=[Item(id="a")])

        with caplog.at_level(logging.INFO, logger="syndication"):
            document = to_rss(feed, execution_id="exec_metrics")

        metrics = [r.metrics for r in caplog.records if hasattr(r, "metrics")]
        assert metrics == [{"items_translated": 1, "document_size": len(document)}]
