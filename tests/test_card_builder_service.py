from __future__ import annotations

import threading
from datetime import timedelta
from unittest.mock import Mock

import pytest
from sqlalchemy.exc import OperationalError

from bingo.repositories.bingo_card_repository import BingoCardRepository
from bingo.services.card_builder_service import (
    MSG_BAD_FORMAT,
    MSG_CANCELLED,
    MSG_CARD_FILLED,
    MSG_FIRST_ROW,
    MSG_FREE_ROW_COUNT,
    MSG_NOTHING_TO_RESUME,
    MSG_NOTHING_TO_SAVE,
    MSG_OUT_OF_RANGE,
    MSG_REPEATED_IN_ROW,
    MSG_RESUME_OR_CANCEL,
    MSG_ROW_COUNT,
    CardBuilderService,
    card_state_key,
)
from bingo.services.win_detector import count_lines

from conftest import OWNER, SAMPLE_GRID

ROWS = ["1 2 3 4 5", "6 7 8 9 10", "11 12 14 15", "16 17 18 19 20", "21 22 23 24 25"]


@pytest.fixture()
def repo() -> Mock:
    mock = Mock(spec=BingoCardRepository)
    mock.create_card.return_value = 42
    return mock


@pytest.fixture()
def builder(store, repo) -> CardBuilderService:
    return CardBuilderService(store, repo)


def _state(store) -> dict:
    return store.get(card_state_key(OWNER))


class TestBegin:
    def test_initializes_empty_state(self, builder, store) -> None:
        assert builder.begin(OWNER) == MSG_FIRST_ROW
        assert _state(store) == {"current": [], "completed": []}

    def test_unfinished_card_prompts_resume_or_cancel(self, builder, store) -> None:
        builder.submit_row(OWNER, ROWS[0])

        assert builder.begin(OWNER) == MSG_RESUME_OR_CANCEL
        assert _state(store)["current"] == [[1, 2, 3, 4, 5]]

    def test_state_expires_after_ten_minutes(self, builder, store, clock) -> None:
        builder.begin(OWNER)
        clock.advance(timedelta(minutes=10).total_seconds())

        assert not store.exists(card_state_key(OWNER))


class TestSubmitRow:
    def test_accepts_valid_row(self, builder, store) -> None:
        reply = builder.submit_row(OWNER, "1 2 3 4 5")

        assert "Enter row 2" in reply
        assert _state(store)["current"] == [[1, 2, 3, 4, 5]]

    def test_accepts_multiple_spaces(self, builder, store) -> None:
        builder.submit_row(OWNER, "  1   2 3\t4 5 ")

        assert _state(store)["current"] == [[1, 2, 3, 4, 5]]

    @pytest.mark.parametrize("text", ["1, 2, 3", "1,2,3,4,5", "a b c d e", "", "1 2 3 4 -5", "１ 2 3 4 5"])
    def test_rejects_bad_format(self, builder, store, text) -> None:
        assert builder.submit_row(OWNER, text) == MSG_BAD_FORMAT
        assert not store.exists(card_state_key(OWNER))

    @pytest.mark.parametrize(
        "text",
        ["1 2 3 4 99", "0 1 2 3 4", "76 1 2 3 4", "100 1 2 3 4", "1" * 5000 + " 2 3 4 5"],
    )
    def test_rejects_out_of_range(self, builder, store, text) -> None:
        assert builder.submit_row(OWNER, text) == MSG_OUT_OF_RANGE
        assert not store.exists(card_state_key(OWNER))

    def test_rejects_duplicate_within_row(self, builder) -> None:
        assert builder.submit_row(OWNER, "1 2 3 3 4") == MSG_REPEATED_IN_ROW

    def test_duplicate_checks_run_before_count(self, builder) -> None:
        assert builder.submit_row(OWNER, "1 1") == MSG_REPEATED_IN_ROW

    def test_rejects_number_used_in_earlier_row(self, builder, store) -> None:
        builder.submit_row(OWNER, "6 7 8 9 10")

        reply = builder.submit_row(OWNER, "6 11 12 13 14")

        assert "6" in reply and "already used" in reply
        assert _state(store)["current"] == [[6, 7, 8, 9, 10]]

    def test_cross_row_check_runs_before_count(self, builder) -> None:
        builder.submit_row(OWNER, "6 7 8 9 10")

        assert "already used" in builder.submit_row(OWNER, "6 11")

    def test_rejects_five_numbers_on_third_row(self, builder, store) -> None:
        builder.submit_row(OWNER, ROWS[0])
        builder.submit_row(OWNER, ROWS[1])

        assert builder.submit_row(OWNER, "11 12 13 14 15") == MSG_FREE_ROW_COUNT
        assert len(_state(store)["current"]) == 2

    def test_rejects_four_numbers_on_other_rows(self, builder) -> None:
        assert builder.submit_row(OWNER, "1 2 3 4") == MSG_ROW_COUNT

    def test_third_row_gets_free_space(self, builder, store) -> None:
        builder.submit_row(OWNER, ROWS[0])
        reply = builder.submit_row(OWNER, ROWS[1])
        assert "4 numbers" in reply

        builder.submit_row(OWNER, "40 41 42 43")

        assert _state(store)["current"][2] == [40, 41, 0, 42, 43]

    def test_leading_zeros_are_coerced(self, builder, store) -> None:
        builder.submit_row(OWNER, "01 02 03 04 05")

    def test_long_zero_padding_is_accepted(self, builder, store) -> None:
        builder.submit_row(OWNER, "0000075 1 2 3 4")

        assert _state(store)["current"] == [[75, 1, 2, 3, 4]]

        assert _state(store)["current"] == [[1, 2, 3, 4, 5]]

    def test_five_rows_complete_the_card(self, builder, store) -> None:
        for row in ROWS[:4]:
            builder.submit_row(OWNER, row)

        assert builder.submit_row(OWNER, ROWS[4]) == MSG_CARD_FILLED
        assert _state(store) == {"current": [], "completed": SAMPLE_GRID}

    def test_completed_card_rejects_more_rows(self, builder, store) -> None:
        for row in ROWS:
            builder.submit_row(OWNER, row)

        assert builder.submit_row(OWNER, "30 31 32 33 34") == MSG_CARD_FILLED
        assert _state(store)["completed"] == SAMPLE_GRID

    def test_each_accepted_row_refreshes_expiry(self, builder, store, clock) -> None:
        builder.submit_row(OWNER, ROWS[0])
        clock.advance(9 * 60)
        builder.submit_row(OWNER, ROWS[1])
        clock.advance(9 * 60)

        assert len(_state(store)["current"]) == 2

    def test_owners_are_isolated(self, builder, store) -> None:
        builder.submit_row(OWNER, ROWS[0])
        builder.submit_row("other", "1 2 3 4 5")

        assert store.get(card_state_key("other"))["current"] == [[1, 2, 3, 4, 5]]


class TestCancelAndResume:
    def test_cancel_deletes_state(self, builder, store) -> None:
        builder.submit_row(OWNER, ROWS[0])

        assert builder.cancel(OWNER) == MSG_CANCELLED
        assert not store.exists(card_state_key(OWNER))

    def test_cancel_without_state(self, builder) -> None:
        assert builder.cancel(OWNER) == MSG_CANCELLED

    def test_resume_with_nothing_pending(self, builder) -> None:
        assert builder.resume_prompt(OWNER) == MSG_NOTHING_TO_RESUME

    def test_resume_lists_rows(self, builder) -> None:
        builder.submit_row(OWNER, ROWS[0])

        reply = builder.resume_prompt(OWNER)

        assert "Row 1: 1 2 3 4 5" in reply
        assert "Enter row 2" in reply

    def test_resume_before_third_row_mentions_four_numbers(self, builder) -> None:
        builder.submit_row(OWNER, ROWS[0])
        builder.submit_row(OWNER, ROWS[1])

        assert "Enter row 3: 4 numbers" in builder.resume_prompt(OWNER)

    def test_resume_shows_free_space(self, builder) -> None:
        for row in ROWS[:3]:
            builder.submit_row(OWNER, row)

        assert "Row 3: 11 12 0 14 15" in builder.resume_prompt(OWNER)


class TestConfirm:
    def test_nothing_to_save_never_calls_repository(self, builder, repo) -> None:
        builder.submit_row(OWNER, ROWS[0])

        assert builder.confirm(OWNER) == MSG_NOTHING_TO_SAVE
        repo.create_card.assert_not_called()

    def test_saves_grid_and_clears_state(self, builder, repo, store) -> None:
        for row in ROWS:
            builder.submit_row(OWNER, row)

        reply = builder.confirm(OWNER)

        assert reply == "Bingo card #42 saved!"
        repo.create_card.assert_called_once_with(OWNER, SAMPLE_GRID)
        assert not store.exists(card_state_key(OWNER))

    def test_saved_grid_scores_free_space(self, builder, repo) -> None:
        for row in ROWS:
            builder.submit_row(OWNER, row)
        builder.confirm(OWNER)

        saved_grid = repo.create_card.call_args.args[1]
        assert saved_grid[2][2] == 0
        assert count_lines(saved_grid, {11, 12, 14, 15}) == 1

    def test_save_failure_is_silent(self, builder, repo, store) -> None:
        repo.create_card.side_effect = OperationalError("INSERT", {}, Exception("db down"))
        for row in ROWS:
            builder.submit_row(OWNER, row)

        assert builder.confirm(OWNER) is None
        assert _state(store)["completed"] == SAMPLE_GRID


def test_concurrent_rows_are_not_lost(builder, store) -> None:
    rows = ["1 2 3 4 5", "6 7 8 9 10"]
    barrier = threading.Barrier(len(rows))

    def submit(row: str) -> None:
        barrier.wait()
        builder.submit_row(OWNER, row)

    threads = [threading.Thread(target=submit, args=(row,)) for row in rows]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(_state(store)["current"]) == [[1, 2, 3, 4, 5], [6, 7, 8, 9, 10]]


class TestConfirmWithDatabase:
    def test_commit_failure_keeps_card_for_retry(self, store, repository, db_session, monkeypatch) -> None:
        builder = CardBuilderService(store, repository)
        for row in ROWS:
            builder.submit_row(OWNER, row)

        real_commit = db_session.commit

        def failing_commit() -> None:
            raise OperationalError("COMMIT", {}, Exception("db down"))

        monkeypatch.setattr(db_session, "commit", failing_commit)

        assert builder.confirm(OWNER) is None
        assert _state(store)["completed"] == SAMPLE_GRID
        assert repository.count_cards(OWNER) == 0

        monkeypatch.setattr(db_session, "commit", real_commit)

        reply = builder.confirm(OWNER)

        assert reply is not None and reply.endswith("saved!")
        assert repository.list_cards(OWNER)[0].grid == SAMPLE_GRID
        assert not store.exists(card_state_key(OWNER))
