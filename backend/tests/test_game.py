import asyncio
import random

import pytest

from app.settings import Settings
from deck import Deck
from game import GameSession


def add_players(session: GameSession, *names: str):
    for name in names:
        assert session.add_player(name)
    return [p.id for p in session.roster.players]


def test_start_without_players_is_noop(session):
    session.start_game()
    assert session.state == "setup"


def test_fifth_player_rejected(session):
    add_players(session, "A", "B", "C", "D")
    assert session.add_player("E") is False
    assert len(session.roster.players) == 4


def test_players_cannot_join_mid_game(session):
    add_players(session, "A")
    session.start_game()
    assert session.add_player("B") is False
    assert session.to_state().can_add_player is False


def test_start_clears_previous_turns(session, clock):
    (pid,) = add_players(session, "A")
    session.start_game()
    session.draw_card_for_player(pid)
    clock.advance(5)
    session.end_game()
    assert session.state == "finished"

    session.start_game()
    assert session.state == "playing"
    player = session.roster.get(pid)
    assert player.current_card is None
    assert player.cards_drawn == []
    assert player.processing_times == []
    assert player.card_drawn_at is None
    assert session.deck.remaining_count == 54


def test_timer_only_starts_with_limit(session):
    add_players(session, "A")
    session.start_game()
    assert session.timer.is_running is False

    session.end_game()
    session.set_time_limit(60)
    session.start_game()
    assert session.timer.is_running is True


def test_pause_resume_transitions(session):
    add_players(session, "A")
    session.resume_game()
    assert session.state == "setup"

    session.set_time_limit(300)
    session.start_game()
    for _ in range(100):
        session.timer.tick()
    session.pause_game()
    assert session.state == "paused"
    assert session.timer.is_running is False

    session.pause_game()
    assert session.state == "paused"

    session.resume_game()
    assert session.state == "playing"
    assert session.timer.is_running is True
    assert session.timer.remaining == 200


def test_draw_while_paused_is_noop(session):
    (pid,) = add_players(session, "A")
    session.start_game()
    session.pause_game()
    remaining = session.deck.remaining_count

    assert session.draw_card_for_player(pid) is None
    assert session.roster.get(pid).current_card is None
    assert session.deck.remaining_count == remaining


def test_draw_records_previous_card_time(session, clock):
    (pid,) = add_players(session, "A")
    session.start_game()

    first = session.draw_card_for_player(pid)
    clock.advance(12.5)
    second = session.draw_card_for_player(pid)

    player = session.roster.get(pid)
    assert player.cards_drawn == [first, second]
    assert player.current_card == second
    assert player.processing_times == [12.5]
    assert player.card_drawn_at == clock.now


def test_complete_card_finalizes_time(session, clock):
    (pid,) = add_players(session, "A")
    session.start_game()
    session.draw_card_for_player(pid)
    clock.advance(8)
    session.complete_card(pid)

    player = session.roster.get(pid)
    assert player.current_card is None
    assert player.processing_times == [8]
    assert player.cards_completed == len(player.cards_drawn)

    session.skip_card(pid)
    assert player.processing_times == [8]


def test_end_game_finalizes_in_flight_card(session, clock):
    a, b = add_players(session, "A", "B")
    session.start_game()
    session.draw_card_for_player(a)
    session.draw_card_for_player(b)
    session.complete_card(b)
    clock.advance(30)

    session.end_game()

    assert session.state == "finished"
    assert session.end_reason == "manual"
    assert session.roster.get(a).processing_times == [30]
    assert session.roster.get(a).card_drawn_at is None
    assert session.roster.get(b).processing_times == [0]
    assert session.timer.is_running is False


def test_drawing_last_card_resets_deck(settings, clock):
    session = GameSession(settings, clock=clock, deck=Deck(joker_count=0, rng=random.Random(3)))
    (pid,) = add_players(session, "A")
    session.start_game()
    for _ in range(session.deck.total_cards):
        assert session.draw_card_for_player(pid) is not None
    assert session.deck.remaining_count == session.deck.total_cards
    assert len(session.roster.get(pid).cards_drawn) == session.deck.total_cards


def test_timer_expiry_ends_game(session, clock):
    (pid,) = add_players(session, "A")
    session.set_time_limit(30)
    session.start_game()
    session.draw_card_for_player(pid)
    for _ in range(30):
        clock.advance(1)
        session.timer.tick()

    assert session.state == "finished"
    assert session.end_reason == "time_expired"
    assert session.roster.get(pid).processing_times == [30]


def test_timer_expiry_while_paused_is_ignored(session):
    add_players(session, "A")
    session.set_time_limit(30)
    session.start_game()
    session.pause_game()
    session._on_timer_expired(session.timer)
    assert session.state == "paused"


def test_reset_game_returns_to_setup(session):
    (pid,) = add_players(session, "A")
    session.set_time_limit(60)
    session.start_game()
    session.draw_card_for_player(pid)
    session.end_game()

    session.reset_game()
    assert session.state == "setup"
    assert session.roster.players == []
    assert session.deck.remaining_count == 54
    assert session.timer.remaining == 60


def test_removing_last_player_mid_game_finishes(session):
    (pid,) = add_players(session, "A")
    session.start_game()
    session.remove_player(pid)
    assert session.state == "finished"
    session.remove_player("missing")


def test_inactive_player_cannot_draw(session):
    (pid,) = add_players(session, "A")
    session.set_player_active(pid, False)
    session.start_game()
    assert session.draw_card_for_player(pid) is None


def test_removing_assigned_custom_exercise(session):
    plank = session.add_custom_exercise("Plank", "Hold")
    session.set_exercise("♣", plank)
    session.remove_custom_exercise(plank)

    state = session.to_state()
    assert state.exercises.suits["♣"].name == "Burpees"
    assert all(e.id != plank.id for e in state.exercises.catalog)


def test_exercise_lookup_for_current_card(session):
    (pid,) = add_players(session, "A")
    session.set_joker_exercise("joker_1", session.exercises.find("ex_push_ups"), repetitions=20)
    session.start_game()
    card = session.draw_card_for_player(pid)

    exercise = session.current_exercise(pid)
    assert exercise == session.get_exercise(card)
    player_state = session.to_state().players[0]
    assert player_state.current_repetitions == session.repetitions_for(card)
    assert player_state.has_card_in_progress is True


def test_subscribers_receive_snapshots(session):
    states = []
    unsubscribe = session.subscribe(states.append)
    (pid,) = add_players(session, "A")
    session.start_game()
    session.pause_game()
    session.draw_card_for_player(pid)  # ignored, nothing published

    assert [s.state for s in states] == ["setup", "playing", "paused"]

    unsubscribe()
    session.resume_game()
    assert len(states) == 3


def test_summary_after_finish(session, clock):
    a, b = add_players(session, "A", "B")
    session.start_game()
    card_a = session.draw_card_for_player(a)
    clock.advance(4)
    session.complete_card(a)
    session.draw_card_for_player(a)
    clock.advance(10)
    assert session.to_state().summary == []

    session.end_game()
    summary = {row.player_id: row for row in session.to_state().summary}

    assert summary[a].cards_drawn == 2
    assert summary[a].cards_completed == 2
    assert summary[a].total_time == 14
    assert summary[a].average_time == 7
    assert summary[a].fastest_time == 4
    assert summary[a].total_repetitions >= session.repetitions_for(card_a)
    assert summary[b].cards_drawn == 0
    assert summary[b].average_time is None


@pytest.mark.asyncio
async def test_scheduled_expiry_ends_game():
    settings = Settings(joker_count=0, default_time_limit=2, tick_interval=0.01)
    session = GameSession(settings)
    finished = asyncio.Event()
    session.subscribe(lambda state: finished.set() if state.state == "finished" else None)
    session.add_player("A")

    session.start_game()
    await asyncio.wait_for(finished.wait(), timeout=2)

    assert session.state == "finished"
    assert session.end_reason == "time_expired"
    assert session.deck.total_cards == 52
    assert not session.timer.has_pending_tick


def test_rotation_follows_completed_cards(session):
    a, b = add_players(session, "A", "B")
    session.start_game()
    assert session.to_state().current_player_id == a

    session.draw_card_for_player(a)
    session.complete_card(a)
    assert session.to_state().current_player_id == b

    session.draw_card_for_player(b)
    session.skip_card(b)
    assert session.to_state().current_player_id == a

    session.select_player(b)
    assert session.roster.current_player.id == b
    session.next_player()
    assert session.roster.current_player.id == a


def test_start_game_rewinds_rotation(session):
    a, b = add_players(session, "A", "B")
    session.select_player(b)
    session.start_game()
    assert session.to_state().current_player_id == a


def test_removing_current_last_player_moves_rotation(session):
    a, b, c = add_players(session, "A", "B", "C")
    session.select_player(c)
    session.remove_player(c)
    assert session.to_state().current_player_id == b


def test_setting_limit_mid_game_starts_clock(session):
    add_players(session, "A")
    session.start_game()
    assert session.timer.is_running is False

    session.set_time_limit(30)
    assert session.timer.is_running is True
    assert session.timer.remaining == 30

    session.pause_game()
    session.set_time_limit(60)
    assert session.timer.is_running is False


def test_time_out_keeps_expired_flag_until_restart(session):
    add_players(session, "A")
    session.set_time_limit(5)
    session.start_game()
    for _ in range(5):
        session.timer.tick()

    state = session.to_state()
    assert state.state == "finished"
    assert state.timer.is_expired is True
    assert state.timer.formatted_time == "00:00"

    session.start_game()
    assert session.timer.is_expired is False
    assert session.timer.remaining == 5
    assert session.timer.is_running is True
