import random

import pytest

from duel.cards import build_deck, build_shuffled_deck
from duel.errors import IllegalPlacement, InvalidMove, StaleWrite
from duel.game import (
    append_move,
    apply_move,
    finish,
    is_legal_placement,
    legal_columns,
    replay,
    state_payload,
)
from duel.models import Move, Phase

from .helpers import play_log, random_chooser


def _all_cards(state):
    return list(state.burned) + state.board.cards() + list(state.remaining_deck)


def test_setup_burns_one_card_and_deals_interleaved_starters():
    seed = 1234
    deck = build_shuffled_deck(seed)
    state = replay(seed, [])

    assert state.phase == Phase.PLACING
    assert state.burned == (deck[0],)
    for column in range(5):
        assert state.columns(1)[column] == (deck[1 + 2 * column],)
        assert state.columns(2)[column] == (deck[2 + 2 * column],)
    assert state.drawn_card == deck[11]
    assert state.remaining_deck == tuple(deck[11:])
    assert state.next_player == 1
    assert state.move_count == 0


def test_replay_places_cards_in_deck_order():
    seed = 99
    deck = build_shuffled_deck(seed)
    state = replay(seed, [Move(1, 3), Move(2, 0), {"player": 1, "column": 1}])

    assert state.columns(1)[3] == (deck[7], deck[11])
    assert state.columns(2)[0] == (deck[2], deck[12])
    assert state.columns(1)[1] == (deck[3], deck[13])
    assert state.drawn_card == deck[14]
    assert state.next_player == 2


def test_replay_is_deterministic():
    log = play_log(2024)
    assert replay(2024, log) == replay(2024, log)
    assert replay(2024, [move.to_dict() for move in log]) == replay(2024, log)


def test_cards_are_conserved_at_every_prefix():
    seed = 77
    log = play_log(seed)
    canonical = set(build_deck())
    for length in range(len(log) + 1):
        cards = _all_cards(replay(seed, log[:length]))
        assert len(cards) == 52
        assert set(cards) == canonical


def test_longer_log_extends_shorter_board():
    seed = 5150
    log = play_log(seed)
    full = replay(seed, log)
    for length in range(len(log)):
        partial = replay(seed, log[:length])
        for player in (1, 2):
            for column in range(5):
                prefix = partial.columns(player)[column]
                assert full.columns(player)[column][: len(prefix)] == prefix
        assert partial.remaining_deck[len(log) - length :] == full.remaining_deck


def test_balanced_fill_rule_limits_targets_to_shortest_columns():
    state = replay(3, [Move(1, 0), Move(2, 4)])
    assert state.next_player == 1
    assert legal_columns(state, 1) == [1, 2, 3, 4]
    assert not is_legal_placement(state, 1, 0)
    assert is_legal_placement(state, 1, 2)

    # Until every column catches up, column 0 stays closed.
    for column in (1, 2, 3):
        state, _ = apply_move(state, 1, column)
        state, _ = apply_move(state, 2, column - 1)
    assert legal_columns(state, 1) == [4]
    state, _ = apply_move(state, 1, 4)
    state, _ = apply_move(state, 2, 3)
    assert legal_columns(state, 1) == [0, 1, 2, 3, 4]


def test_legal_columns_only_for_active_player():
    state = replay(8, [])
    assert legal_columns(state, 1) == [0, 1, 2, 3, 4]
    assert legal_columns(state, 2) == []
    assert not is_legal_placement(state, 1, 5)
    assert not is_legal_placement(state, 1, -1)


def test_every_legal_column_is_at_player_minimum():
    log = play_log(31337, chooser=random_chooser(random.Random(1)))
    for length in range(len(log)):
        state = replay(31337, log[:length])
        player = state.next_player
        lengths = [len(col) for col in state.columns(player)]
        for column in range(5):
            expected = lengths[column] == min(lengths) and lengths[column] < 5
            assert is_legal_placement(state, player, column) is expected


def test_apply_move_rejects_out_of_turn_without_mutation():
    state = replay(11, [])
    with pytest.raises(IllegalPlacement, match="Not your turn"):
        apply_move(state, 2, 0)
    assert state == replay(11, [])


def test_apply_move_rejects_column_ahead_of_minimum():
    state = replay(11, [Move(1, 2), Move(2, 2)])
    with pytest.raises(IllegalPlacement, match="shortest column"):
        apply_move(state, 1, 2)


def test_apply_move_returns_move_and_new_state():
    state = replay(12, [])
    new_state, move = apply_move(state, 1, 4)
    assert move == Move(1, 4)
    assert new_state.moves == (move,)
    assert new_state.columns(1)[4][-1] == state.drawn_card
    assert state.move_count == 0


def test_match_reaches_revealing_after_forty_moves():
    seed = 404
    log = play_log(seed)
    assert len(log) == 40
    state = replay(seed, log)
    assert state.phase == Phase.REVEALING
    assert state.board.is_full()
    assert state.drawn_card is None
    assert len(state.remaining_deck) == 1
    with pytest.raises(IllegalPlacement, match="revealing"):
        apply_move(state, state.next_player, 0)

    done = finish(state)
    assert done.phase == Phase.FINISHED
    assert finish(done) is done


def test_finish_requires_full_board():
    with pytest.raises(RuntimeError):
        finish(replay(1, []))


def test_replay_rejects_corrupt_logs():
    with pytest.raises(InvalidMove, match="Not your turn"):
        replay(1, [Move(2, 0)])
    with pytest.raises(InvalidMove, match="shortest column"):
        replay(1, [Move(1, 0), Move(2, 0), Move(1, 0)])
    with pytest.raises(InvalidMove, match="malformed"):
        replay(1, [{"player": 1}])
    with pytest.raises(InvalidMove, match="out of range"):
        replay(1, [{"player": 1, "column": 7}])
    log = play_log(1)
    with pytest.raises(InvalidMove, match="revealing"):
        replay(1, log + [Move(1, 0)])


def test_append_move_requires_observed_length():
    log = [Move(1, 0)]
    extended = append_move(log, 1, Move(2, 0))
    assert extended == [Move(1, 0), Move(2, 0)]
    assert log == [Move(1, 0)]

    with pytest.raises(StaleWrite) as info:
        append_move(extended, 1, Move(2, 1))
    assert info.value.expected == 1
    assert info.value.actual == 2
    assert info.value.code == "STALE_WRITE"


def test_state_payload_hides_opponent_cards_until_reveal():
    seed = 65
    log = play_log(seed, moves=4)
    state = replay(seed, log)

    spectator = state_payload(state)
    assert all(label is not None for col in spectator["columns"]["2"] for label in col)
    assert spectator["legal"] == legal_columns(state, 1)
    assert spectator["drawn_card"] == state.drawn_card.label

    viewer = state_payload(state, viewer=1)
    opponent_columns = viewer["columns"]["2"]
    assert all(col[0] is not None for col in opponent_columns)
    assert any(label is None for col in opponent_columns for label in col[1:])
    assert all(label is not None for col in viewer["columns"]["1"] for label in col)

    final = replay(seed, play_log(seed))
    revealed = state_payload(final, viewer=1)
    assert revealed["next_player"] is None
    assert "legal" not in revealed
    assert all(label is not None for col in revealed["columns"]["2"] for label in col)


def test_replay_requires_whole_number_fields():
    with pytest.raises(InvalidMove, match="malformed"):
        replay(1, [{"player": 1, "column": 1.5}])
    with pytest.raises(InvalidMove, match="malformed"):
        replay(1, [{"player": True, "column": 0}])
    with pytest.raises(InvalidMove, match="malformed"):
        replay(1, [{"player": 1, "column": "2"}])
    assert replay(1, [{"player": 1, "column": 2.0}]) == replay(1, [Move(1, 2)])
