# tests/test_template_store.py
"""
Template Store Tests - Unit Tests for Template Persistence

This module contains unit tests for the JSON-backed template store,
including startup behavior, write-through persistence, rollback on failed
writes, corrupted documents and concurrent use.

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- pricetag.adapters.persistence.template_store (TemplateStore)
- pricetag.domain (TemplateText, PersistenceError, StoreCorruptedError)
- pytest (testing framework)
"""
import json
import threading

import pytest  # Testing framework for writing and running tests

from unittest.mock import patch  # Patching to simulate disk failures

from pricetag.adapters.persistence.template_store import TemplateStore
from pricetag.domain.errors import PersistenceError, StoreCorruptedError
from pricetag.domain.models import TemplateEntry, TemplateText


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "config.json"


def _read(path):
    return json.loads(path.read_text(encoding="utf-8"))


class TestStartup:
    def test_missing_document_creates_empty(self, store_path):
        store = TemplateStore(store_path)

        assert store_path.exists()
        assert _read(store_path) == {}
        assert store.list_templates() == []

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "data" / "templates.json"
        TemplateStore(path)
        assert path.exists()

    def test_loads_existing_document(self, store_path):
        store_path.write_text(json.dumps({
            "-1001": {"7": {"text": "$price:5", "is_caption": True}},
        }), encoding="utf-8")

        store = TemplateStore(store_path)

        assert store.list_templates() == [
            TemplateEntry(channel_id=-1001, message_id=7,
                          template=TemplateText("$price:5", is_caption=True)),
        ]

    @pytest.mark.parametrize("content", [
        "{not json",
        "[]",
        '{"-1001": []}',
        '{"-1001": {"7": {"is_caption": false}}}',
        '{"channel": {"7": {"text": "x"}}}',
    ])
    def test_malformed_document_is_fatal(self, store_path, content):
        store_path.write_text(content, encoding="utf-8")

        with pytest.raises(StoreCorruptedError):
            TemplateStore(store_path)

        # The broken document is left for the operator to inspect
        assert store_path.read_text(encoding="utf-8") == content


class TestAddDelete:
    def test_add_then_list(self, store_path):
        store = TemplateStore(store_path)
        store.add(-100, 1, TemplateText("Price: $price:10"))

        entries = [e for e in store.list_templates() if (e.channel_id, e.message_id) == (-100, 1)]
        assert len(entries) == 1
        assert entries[0].template.text == "Price: $price:10"
        assert _read(store_path) == {"-100": {"1": {"text": "Price: $price:10", "is_caption": False}}}

    def test_add_overwrites(self, store_path):
        store = TemplateStore(store_path)
        store.add(-100, 1, TemplateText("$price:1"))
        store.add(-100, 1, TemplateText("$price:2", is_caption=True))

        assert store.get(-100, 1) == TemplateText("$price:2", is_caption=True)
        assert len(store) == 1

    def test_delete(self, store_path):
        store = TemplateStore(store_path)
        store.add(-100, 1, TemplateText("$price:1"))
        store.add(-100, 2, TemplateText("$price:2"))

        store.delete(-100, 1)

        assert [(e.channel_id, e.message_id) for e in store.list_templates()] == [(-100, 2)]
        assert _read(store_path) == {"-100": {"2": {"text": "$price:2", "is_caption": False}}}

    def test_delete_last_message_drops_channel(self, store_path):
        store = TemplateStore(store_path)
        store.add(-100, 1, TemplateText("$price:1"))
        store.delete(-100, 1)

        assert store.list_templates() == []
        assert _read(store_path) == {}

    def test_delete_absent_is_noop(self, store_path):
        store = TemplateStore(store_path)
        store.add(-100, 1, TemplateText("$price:1"))
        before = store.list_templates()
        document = store_path.read_text(encoding="utf-8")

        store.delete(-100, 99)
        store.delete(-555, 1)

        assert store.list_templates() == before
        assert store_path.read_text(encoding="utf-8") == document

    def test_survives_restart(self, store_path):
        store = TemplateStore(store_path)
        store.add(-100, 1, TemplateText("<b>$price:1</b>"))
        store.add(-200, 5, TemplateText("$price:2", is_caption=True))

        reopened = TemplateStore(store_path)

        assert sorted(reopened.list_templates(), key=lambda e: e.channel_id) == \
            sorted(store.list_templates(), key=lambda e: e.channel_id)

    def test_list_is_a_copy(self, store_path):
        store = TemplateStore(store_path)
        store.add(-100, 1, TemplateText("$price:1"))
        snapshot = store.list_templates()

        store.delete(-100, 1)

        assert len(snapshot) == 1


class TestPersistFailure:
    def test_failed_add_rolls_back_new_entry(self, store_path):
        store = TemplateStore(store_path)

        with patch("pricetag.adapters.persistence.template_store.os.replace",
                   side_effect=OSError("disk full")):
            with pytest.raises(PersistenceError):
                store.add(-100, 1, TemplateText("$price:1"))

        assert store.list_templates() == []
        assert _read(store_path) == {}
        assert list(store_path.parent.glob("*.tmp")) == []

    def test_failed_add_restores_previous_text(self, store_path):
        store = TemplateStore(store_path)
        store.add(-100, 1, TemplateText("$price:1"))

        with patch("pricetag.adapters.persistence.template_store.os.replace",
                   side_effect=OSError("disk full")):
            with pytest.raises(PersistenceError):
                store.add(-100, 1, TemplateText("$price:2"))

        assert store.get(-100, 1) == TemplateText("$price:1")

    def test_failed_delete_restores_entry(self, store_path):
        store = TemplateStore(store_path)
        store.add(-100, 1, TemplateText("$price:1"))

        with patch("pricetag.adapters.persistence.template_store.os.replace",
                   side_effect=OSError("read-only file system")):
            with pytest.raises(PersistenceError):
                store.delete(-100, 1)

        assert store.get(-100, 1) == TemplateText("$price:1")
        assert _read(store_path) == {"-100": {"1": {"text": "$price:1", "is_caption": False}}}


class TestConcurrency:
    def test_concurrent_adds_are_not_lost(self, store_path):
        store = TemplateStore(store_path)
        count = 20
        barrier = threading.Barrier(count)

        def worker(i):
            barrier.wait()
            store.add(-100, i, TemplateText(f"$price:{i}"))
            store.list_templates()

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert {e.message_id for e in store.list_templates()} == set(range(count))
        assert len(_read(store_path)["-100"]) == count
