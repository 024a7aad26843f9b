"""Tests for logging context management."""

import asyncio

import pytest

from poster_pipeline.logging.adapters.upload_adapter import set_upload_context
from poster_pipeline.logging.context import (
    bind_context,
    clear_context,
    get_correlation_id,
    get_extra_context,
    set_correlation_id,
    set_extra_context,
)


class TestCorrelationId:
    def test_default_empty(self):
        clear_context()
        assert get_correlation_id() == ""

    def test_set_and_get(self):
        set_correlation_id("upload-123")
        assert get_correlation_id() == "upload-123"
        clear_context()


class TestExtraContext:
    def test_default_empty(self):
        clear_context()
        assert get_extra_context() == {}

    def test_multiple_values(self):
        clear_context()
        set_extra_context(destination_id="evt-1", attempt=2)
        assert get_extra_context() == {"destination_id": "evt-1", "attempt": 2}
        clear_context()

    def test_updates_merge(self):
        clear_context()
        set_extra_context(destination_id="evt-1")
        set_extra_context(attempt=2)
        assert get_extra_context() == {"destination_id": "evt-1", "attempt": 2}
        clear_context()

    def test_returns_copy(self):
        clear_context()
        set_extra_context(destination_id="evt-1")
        context = get_extra_context()
        context["destination_id"] = "changed"
        assert get_extra_context()["destination_id"] == "evt-1"
        clear_context()


class TestUploadContext:
    def test_sets_correlation_id_and_destination(self):
        clear_context()
        set_upload_context("upload-1", "evt-9")
        assert get_correlation_id() == "upload-1"
        assert get_extra_context() == {"destination_id": "evt-9"}
        clear_context()

    @pytest.mark.asyncio
    async def test_isolated_between_tasks(self):
        async def run(upload_id, destination_id):
            set_upload_context(upload_id, destination_id)
            await asyncio.sleep(0)
            return get_correlation_id(), get_extra_context()["destination_id"]

        results = await asyncio.gather(run("upload-a", "evt-a"), run("upload-b", "evt-b"))

        assert results == [("upload-a", "evt-a"), ("upload-b", "evt-b")]
        assert get_correlation_id() == ""


class TestBindContext:
    def test_fields_visible_inside_block(self):
        clear_context()
        with bind_context(destination_id="evt-3"):
            assert get_extra_context() == {"destination_id": "evt-3"}

    def test_restores_previous_fields(self):
        clear_context()
        set_extra_context(destination_id="evt-1")
        with bind_context(destination_id="evt-2", path="event_posters/evt-2/poster.jpg"):
            assert get_extra_context()["destination_id"] == "evt-2"
        assert get_extra_context() == {"destination_id": "evt-1"}
        clear_context()

    def test_restores_after_error(self):
        clear_context()
        with pytest.raises(RuntimeError), bind_context(destination_id="evt-4"):
            raise RuntimeError("boom")
        assert get_extra_context() == {}
