"""
Tests for kanban board transitions

Tests cover:
- Drop resolution (column, card, self, same column)
- Optimistic update precedes the remote write
- Failed write surfaces a notice and resyncs to the server's state
- Apply-now preconditions and URL opening
- Edit, create and delete flows
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from jobtracker.client.api import TrackerAPIError
from jobtracker.client.board import BoardWorkflow, DropTarget, resolve_drop
from jobtracker.client.notices import ERROR, NoticeBoard
from jobtracker.client.store import BoardState, RecordStore


def build_board(records, api=None):
    api = api or MagicMock()
    store = RecordStore(api, state=BoardState(records=tuple(records), loaded=True))
    notices = NoticeBoard()
    opened = []
    return BoardWorkflow(store, notices, open_url=opened.append), store, notices, opened


def echo_update(records_by_id):
    """update_application that returns the record with the changes applied."""

    async def _update(record_id, **changes):
        return records_by_id[record_id].model_copy(update=changes)

    return AsyncMock(side_effect=_update)


class TestResolveDrop:
    """Drop target to status."""

    def test_column_drop(self, make_record):
        record = make_record(id="a", status="applied")
        state = BoardState(records=(record,))
        assert resolve_drop(state, "a", DropTarget.column("interview")) == "interview"

    def test_own_column_is_noop(self, make_record):
        state = BoardState(records=(make_record(id="a", status="applied"),))
        assert resolve_drop(state, "a", DropTarget.column("applied")) is None

    def test_card_drop_adopts_target_status(self, make_record):
        state = BoardState(records=(
            make_record(id="a", status="applied"),
            make_record(id="b", status="offer"),
        ))
        assert resolve_drop(state, "a", DropTarget.card("b")) == "offer"

    def test_drop_on_itself_is_noop(self, make_record):
        state = BoardState(records=(make_record(id="a"),))
        assert resolve_drop(state, "a", DropTarget.card("a")) is None

    def test_drop_on_card_in_same_column_is_noop(self, make_record):
        state = BoardState(records=(
            make_record(id="a", status="applied"),
            make_record(id="b", status="applied"),
        ))
        assert resolve_drop(state, "a", DropTarget.card("b")) is None

    def test_drop_outside_any_target(self, make_record):
        state = BoardState(records=(make_record(id="a"),))
        assert resolve_drop(state, "a", None) is None
        assert resolve_drop(state, "a", DropTarget.column("nowhere")) is None


class TestStatusTransitions:
    """Optimistic drag transitions."""

    @pytest.mark.asyncio
    async def test_optimistic_update_precedes_write(self, make_record):
        record = make_record(id="a", status="applied")
        api = MagicMock()
        board, store, notices, _ = build_board([record], api)
        seen_during_write = []

        async def update(record_id, **changes):
            seen_during_write.append(store.state.get(record_id).status)
            return record.model_copy(update=changes)

        api.update_application = AsyncMock(side_effect=update)

        assert await board.handle_drop("a", DropTarget.column("interview"))
        assert seen_during_write == ["interview"]
        api.update_application.assert_awaited_once_with("a", status="interview")
        assert store.state.get("a").status == "interview"

    @pytest.mark.asyncio
    async def test_noop_drop_issues_no_write(self, make_record):
        api = MagicMock()
        api.update_application = AsyncMock()
        board, store, _, _ = build_board([make_record(id="a", status="applied")], api)
        before = store.state

        assert not await board.handle_drop("a", DropTarget.column("applied"))
        assert not await board.handle_drop("a", DropTarget.card("a"))
        api.update_application.assert_not_awaited()
        assert store.state is before

    @pytest.mark.asyncio
    async def test_failed_write_resyncs_to_remote_state(self, make_record):
        record = make_record(id="a", status="applied")
        api = MagicMock()
        api.update_application = AsyncMock(side_effect=TrackerAPIError("boom", 500))
        api.list_applications = AsyncMock(return_value=[record])
        board, store, notices, _ = build_board([record], api)

        assert not await board.handle_drop("a", DropTarget.column("interview"))

        api.list_applications.assert_awaited_once()
        assert store.state.get("a").status == "applied"
        assert notices.latest().level == ERROR
        assert "boom" in notices.latest().message

    @pytest.mark.asyncio
    async def test_failed_resync_is_also_reported(self, make_record):
        api = MagicMock()
        api.update_application = AsyncMock(side_effect=TrackerAPIError("write failed"))
        api.list_applications = AsyncMock(side_effect=TrackerAPIError("offline"))
        board, _, notices, _ = build_board([make_record(id="a")], api)

        await board.change_status("a", "offer")

        messages = [n.message for n in notices.notices]
        assert any("write failed" in m for m in messages)
        assert any("offline" in m for m in messages)
        assert board.store.state.loading is False

    @pytest.mark.asyncio
    async def test_stale_echo_not_applied(self, make_record):
        """A slow response for an older move must not undo a newer one."""
        record = make_record(id="a", status="applied")
        api = MagicMock()
        board, store, _, _ = build_board([record], api)

        async def slow_update(record_id, **changes):
            store.state = BoardState(records=(store.state.get("a").model_copy(update={"status": "offer"}),))
            return record.model_copy(update=changes)

        api.update_application = AsyncMock(side_effect=slow_update)

        await board.change_status("a", "interview")
        assert store.state.get("a").status == "offer"


class TestApplyNow:
    """saved -> applied with the posting opened."""

    @pytest.mark.asyncio
    async def test_opens_url_and_marks_applied(self, make_record):
        record = make_record(id="a", status="saved", job_url="https://acme.example/jobs/1")
        api = MagicMock()
        api.update_application = echo_update({"a": record})
        board, store, _, opened = build_board([record], api)

        assert await board.apply_now("a")

        assert opened == ["https://acme.example/jobs/1"]
        api.update_application.assert_awaited_once_with("a", status="applied")
        assert store.state.get("a").status == "applied"

    @pytest.mark.asyncio
    async def test_without_url_no_write(self, make_record):
        api = MagicMock()
        api.update_application = AsyncMock()
        board, store, notices, opened = build_board([make_record(id="a", status="saved", job_url=None)], api)

        assert not await board.apply_now("a")

        api.update_application.assert_not_awaited()
        assert opened == []
        assert store.state.get("a").status == "saved"
        assert notices.latest().level == ERROR

    @pytest.mark.asyncio
    async def test_only_from_saved(self, make_record):
        api = MagicMock()
        api.update_application = AsyncMock()
        board, _, notices, opened = build_board(
            [make_record(id="a", status="interview", job_url="https://x.example")], api
        )

        assert not await board.apply_now("a")
        api.update_application.assert_not_awaited()
        assert opened == []


class TestEditCreateDelete:
    """Other record mutations."""

    @pytest.mark.asyncio
    async def test_save_edit(self, make_record):
        record = make_record(id="a", company="Acme")
        api = MagicMock()
        api.update_application = echo_update({"a": record})
        board, store, _, _ = build_board([record], api)

        assert await board.save_edit("a", company="Acme Corp", location="Remote")

        api.update_application.assert_awaited_once_with("a", company="Acme Corp", location="Remote")
        assert store.state.get("a").company == "Acme Corp"

    @pytest.mark.asyncio
    async def test_create_adds_record(self, make_record):
        created = make_record(id="new")
        api = MagicMock()
        api.create_application = AsyncMock(return_value=created)
        board, store, _, _ = build_board([], api)

        assert await board.create(company="Acme", position="Engineer") == created
        assert store.state.records == (created,)

    @pytest.mark.asyncio
    async def test_delete_failure_resyncs(self, make_record):
        record = make_record(id="a")
        api = MagicMock()
        api.delete_application = AsyncMock(side_effect=TrackerAPIError("nope", 500))
        api.list_applications = AsyncMock(return_value=[record])
        board, store, notices, _ = build_board([record], api)

        assert not await board.delete("a")
        assert store.state.get("a") is not None
        assert notices.latest().level == ERROR

    @pytest.mark.asyncio
    async def test_delete(self, make_record):
        api = MagicMock()
        api.delete_application = AsyncMock()
        board, store, _, _ = build_board([make_record(id="a")], api)

        assert await board.delete("a")
        assert store.state.records == ()
