"""
Unit tests for structured logging context propagation.
"""

import logging

import pytest

from gauntlet.core.logging.logger import (
    ContextFilter,
    LogContext,
    clear_log_context,
    get_log_context,
    set_log_context,
)


def make_record(**extra):
    record = logging.LogRecord("gauntlet.modules.arena", logging.INFO, __file__, 1, "msg", (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def reset_context():
    clear_log_context()
    yield
    clear_log_context()


class TestLogContext:
    """Test context scoping."""

    def test_context_scoped_to_block(self):
        with LogContext(player_id="p1", operation="resolve_floor"):
            assert get_log_context()["player_id"] == "p1"

        assert get_log_context() == {}

    @pytest.mark.asyncio
    async def test_async_context(self):
        async with LogContext(dungeon_id="forgotten-catacombs", correlation_id="abc"):
            context = get_log_context()

        assert context["dungeon_id"] == "forgotten-catacombs"
        assert context["correlation_id"] == "abc"

    def test_set_log_context_merges(self):
        set_log_context(player_id="p1")
        set_log_context(operation="challenge")

        context = get_log_context()
        assert context["player_id"] == "p1"
        assert context["operation"] == "challenge"


class TestContextFilter:
    """Test record enrichment."""

    def test_context_values_applied(self):
        record = make_record()

        with LogContext(player_id="p1", operation="enter_dungeon", correlation_id="c1"):
            ContextFilter().filter(record)

        assert record.player_id == "p1"
        assert record.operation == "enter_dungeon"
        assert record.correlation_id == "c1"
        assert record.component == "gauntlet"

    def test_explicit_extra_survives_empty_context(self):
        record = make_record(player_id="p9", operation="arena_challenge")

        ContextFilter().filter(record)

        assert record.player_id == "p9"
        assert record.operation == "arena_challenge"
        assert record.dungeon_id == "N/A"
