from models import Card
from roster import MAX_PLAYERS, Roster


def test_add_player_caps_at_four():
    roster = Roster()
    for name in ["A", "B", "C", "D"]:
        assert roster.add_player(name) is True
    assert roster.can_add_player is False

    assert roster.add_player("E") is False
    assert len(roster.players) == MAX_PLAYERS
    assert [p.name for p in roster.players] == ["A", "B", "C", "D"]


def test_new_player_defaults():
    roster = Roster()
    roster.add_player("A")
    player = roster.players[0]
    assert player.is_active is True
    assert player.current_card is None
    assert player.cards_drawn == []
    assert player.processing_times == []
    assert player.card_drawn_at is None


def test_remove_player_compacts_and_ignores_unknown():
    roster = Roster()
    for name in ["A", "B", "C"]:
        roster.add_player(name)
    middle = roster.players[1].id

    roster.remove_player(middle)
    assert [p.name for p in roster.players] == ["A", "C"]

    roster.remove_player("missing")
    assert len(roster.players) == 2


def test_set_current_card_records_history():
    roster = Roster()
    roster.add_player("A")
    pid = roster.players[0].id
    first = Card(suit="♥", rank=5)
    second = Card(suit="♠", rank=12)

    roster.set_current_card(pid, first)
    roster.set_current_card(pid, second)
    roster.set_current_card(pid, None)

    player = roster.get(pid)
    assert player.current_card is None
    assert player.cards_drawn == [first, second]


def test_set_player_active():
    roster = Roster()
    roster.add_player("A")
    pid = roster.players[0].id
    roster.set_player_active(pid, False)
    assert roster.get(pid).is_active is False
    assert roster.has_players


def test_next_player_wraps_around():
    roster = Roster()
    assert roster.current_player is None
    roster.next_player()
    assert roster.current_player_index == 0

    for name in ["A", "B", "C"]:
        roster.add_player(name)
    assert roster.current_player.name == "A"

    roster.next_player()
    roster.next_player()
    assert roster.current_player.name == "C"
    roster.next_player()
    assert roster.current_player.name == "A"


def test_select_player():
    roster = Roster()
    for name in ["A", "B"]:
        roster.add_player(name)
    roster.select_player(roster.players[1].id)
    assert roster.current_player.name == "B"

    roster.select_player("missing")
    assert roster.current_player.name == "B"


def test_removing_last_indexed_player_clamps_index():
    roster = Roster()
    for name in ["A", "B", "C"]:
        roster.add_player(name)
    roster.select_player(roster.players[2].id)

    roster.remove_player(roster.players[2].id)
    assert roster.current_player_index == 1
    assert roster.current_player.name == "B"

    for player in list(roster.players):
        roster.remove_player(player.id)
    assert roster.current_player_index == 0
    assert roster.current_player is None


def test_reset_turns_rewinds_rotation():
    roster = Roster()
    for name in ["A", "B"]:
        roster.add_player(name)
    roster.next_player()
    roster.reset_turns()
    assert roster.current_player.name == "A"
