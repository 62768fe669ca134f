import pytest

from helpers import build_config, song
from songquiz.models import Answer, Player
from songquiz.progression import GameStateManager
from songquiz.state import GameMode, RoundPhase

ALICE = Player(id=1, name="Alice", team="Rouge")


@pytest.fixture
def fixed_game(gateway, clock):
    return GameStateManager.start(build_config(), gateway, clock=clock)


def _manual_config(**kwargs):
    kwargs.setdefault("songs", [song(i) for i in range(1, 7)])
    return build_config(round_end_mode="manual", **kwargs)


def test_start_initialises_state(fixed_game, gateway):
    assert fixed_game.current_round == 0
    assert fixed_game.current_song_index == 0
    assert fixed_game.mode is GameMode.PLAYING
    assert fixed_game.player_scores() == {1: 0, 2: 0, 3: 0}
    assert gateway.saves == 1


def test_get_current_song_is_idempotent(fixed_game, gateway):
    before = fixed_game.state.to_dict()

    first = fixed_game.get_current_song()
    second = fixed_game.get_current_song()

    assert first == second
    assert first.id == 1
    assert fixed_game.state.to_dict() == before
    assert gateway.saves == 1


def test_fixed_game_flow(fixed_game):
    assert not fixed_game.is_last_song_of_round()
    assert fixed_game.advance_to_next_song().id == 2
    assert fixed_game.is_last_song_of_round()
    assert not fixed_game.is_last_round()

    assert fixed_game.start_next_round().id == 3
    assert fixed_game.current_round == 1
    assert fixed_game.current_song_index == 0
    assert fixed_game.is_last_round()


def test_start_next_round_on_last_round_is_a_noop(fixed_game, gateway):
    fixed_game.start_next_round()
    before = fixed_game.state.to_dict()
    saves = gateway.saves

    assert fixed_game.start_next_round() is None
    assert fixed_game.state.to_dict() == before
    assert gateway.saves == saves


def test_advance_past_fixed_round_returns_none(fixed_game):
    fixed_game.advance_to_next_song()

    assert fixed_game.advance_to_next_song() is None
    assert fixed_game.is_last_song_of_round()


def test_advance_resets_turn_timer_and_persists(fixed_game, gateway, clock):
    clock.now = 1010.0

    fixed_game.advance_to_next_song()

    assert fixed_game.state.song_start_timestamp == 1010.0
    assert gateway.data["song_start_timestamp"] == 1010.0
    assert gateway.data["current_song_index"] == 1


def test_fixed_end_round_early_jumps_to_last_special(gateway, clock):
    config = build_config(
        rounds=1,
        songs_per_round=4,
        songs=[song(i) for i in range(1, 7)],
        special_songs=[{"song_id": 6, "round": 1, "position": -1}],
    )
    manager = GameStateManager.start(config, gateway, clock=clock)

    assert manager.end_round_early().id == 6
    assert manager.current_song_index == 3
    assert manager.state.round_phase is RoundPhase.MANUALLY_ENDED
    assert manager.is_last_song_of_round()


def test_manual_mode_resolves_special_songs_by_position(gateway, clock):
    config = _manual_config(
        special_songs=[
            {"song_id": 5, "round": 1, "position": 2},
            {"song_id": 6, "round": 1, "position": -1},
        ]
    )
    manager = GameStateManager.start(config, gateway, clock=clock)
    pool = manager.state.plan.pool

    assert manager.get_current_song().id == 1
    assert manager.advance_to_next_song().id == 5
    assert [s.id for s in pool] == [2, 3, 4]

    # la chanson spéciale ne consomme pas la pioche
    assert manager.advance_to_next_song().id == 2
    assert [s.id for s in pool] == [2, 3, 4]
    assert not manager.is_last_song_of_round()

    assert manager.end_round_early().id == 6
    assert [s.id for s in pool] == [3, 4]
    assert manager.is_last_song_of_round()


def test_manual_next_round_does_not_skip_first_song(gateway, clock):
    config = _manual_config(special_songs=[{"song_id": 6, "round": 1, "position": -1}])
    manager = GameStateManager.start(config, gateway, clock=clock)
    manager.end_round_early()

    assert manager.start_next_round().id == 2
    assert manager.state.round_phase is RoundPhase.IN_PROGRESS
    assert manager.current_song_index == 0


def test_manual_round_end_consumes_each_song_once(gateway, clock):
    manager = GameStateManager.start(_manual_config(), gateway, clock=clock)

    assert manager.get_current_song().id == 1
    assert manager.end_round_early().id == 2
    assert manager.start_next_round().id == 3
    assert [s.id for s in manager.state.plan.pool] == [3, 4, 5, 6]


def test_manual_advance_after_round_closed_is_ignored(gateway, clock):
    manager = GameStateManager.start(_manual_config(), gateway, clock=clock)
    manager.end_round_early()
    before = manager.state.to_dict()

    assert manager.advance_to_next_song() is None
    assert manager.state.to_dict() == before


def test_manual_round_ends_when_pool_is_empty(gateway, clock):
    manager = GameStateManager.start(_manual_config(songs=[song(1)]), gateway, clock=clock)

    assert not manager.is_last_song_of_round()
    assert manager.advance_to_next_song() is None
    assert manager.is_last_song_of_round()


def test_manual_pool_recycles_songs_when_duplicates_allowed(gateway, clock):
    config = _manual_config(songs=[song(1), song(2)], allow_duplicates=True)
    manager = GameStateManager.start(config, gateway, clock=clock)

    played = [manager.get_current_song().id]
    for _ in range(3):
        played.append(manager.advance_to_next_song().id)

    assert played == [1, 2, 1, 2]


def test_record_answer_accumulates_points(fixed_game, gateway, clock):
    clock.now = 1002.0

    assert fixed_game.record_answer(ALICE, Answer(song_name=True), 1002.0) == 50
    assert fixed_game.record_answer(ALICE, Answer(song_name=True, artist=True), 1003.0) == 80

    assert fixed_game.player_scores()[1] == 130
    assert gateway.data["player_scores"]["1"] == 130


def test_record_answer_for_unknown_player_starts_at_zero(fixed_game):
    guest = Player(id=99, name="Invité")

    fixed_game.record_answer(guest, Answer(song_name=True), 1001.0)

    assert fixed_game.player_scores()[99] == 50


def test_record_answer_without_song_is_ignored(gateway, clock):
    config = build_config(rounds=1, songs_per_round=1)
    manager = GameStateManager.start(config, gateway, clock=clock)
    manager.advance_to_next_song()
    saves = gateway.saves

    assert manager.record_answer(ALICE, Answer(song_name=True), 1001.0) is None
    assert manager.player_scores()[1] == 0
    assert gateway.saves == saves


def test_record_answer_before_song_start_is_ignored(fixed_game):
    assert fixed_game.record_answer(ALICE, Answer(song_name=True), 999.0) is None
    assert fixed_game.player_scores()[1] == 0


def test_resume_restores_saved_game(fixed_game, gateway, clock):
    fixed_game.advance_to_next_song()
    fixed_game.record_answer(ALICE, Answer(song_name=True), 1001.0)
    fixed_game.set_mode(GameMode.ROUND_SUMMARY)

    resumed = GameStateManager.resume(gateway, clock=clock)

    assert resumed.state.to_dict() == fixed_game.state.to_dict()
    assert resumed.get_current_song() == fixed_game.get_current_song()
    assert resumed.mode is GameMode.ROUND_SUMMARY


def test_resume_without_saved_game(gateway):
    assert GameStateManager.resume(gateway) is None


def test_summary_and_ranking(fixed_game):
    fixed_game.record_answer(ALICE, Answer(song_name=True), 1001.0)

    summary = fixed_game.summary()

    assert summary["round"] == 1
    assert summary["total_rounds"] == 2
    assert summary["song"]["id"] == 1
    assert summary["scores"] == {"1": 50, "2": 0, "3": 0}
    assert fixed_game.ranking()[0]["name"] == "Alice"
    assert fixed_game.team_scores() == {"Rouge": 50, "Bleu": 0}
