import random

from gemcascade.components.game_state import GamePhase
from gemcascade.components.inventory import ToolKind
from gemcascade.config import EngineConfig
from gemcascade.events.bus import (
    EVENT_BOARD_RESET,
    EVENT_CASCADE_COMPLETE,
    EVENT_CASCADE_STEP,
    EVENT_GAME_OVER,
    EVENT_GAME_PHASE_CHANGED,
    EVENT_INVENTORY_CHANGED,
    EVENT_LEVEL_COMPLETE,
    EVENT_LEVEL_STARTED,
    EVENT_MATCH_CLEARED,
    EVENT_MATCH_FOUND,
    EVENT_MOVES_CHANGED,
    EVENT_TILE_SWAP_FINALIZE,
    EVENT_TILE_SWAP_INVALID,
    EVENT_TILE_SWAP_VALID,
    EVENT_TOOL_UNAVAILABLE,
    EVENT_TOOL_USED,
)
from gemcascade.game import Match3Game
from gemcascade.systems.board_ops import find_matches, get_gem_registry
from gemcascade.utils.game_state import get_or_create_turn_state
from tests.helpers import install_rows, paint, quiet_layout, rows_of

MATCHING_ROW = {(0, 0): 'R', (0, 1): 'R', (0, 2): 'S', (0, 3): 'R'}


def record(bus, *names):
    events = []
    for name in names:
        bus.subscribe(name, lambda s, _name=name, **k: events.append((_name, k)))
    return events


def started_game(seed=7, config=None):
    game = Match3Game(config, rng=random.Random(seed))
    game.start_level(1)
    return game


def test_level_start_sets_up_session():
    game = Match3Game(rng=random.Random(1))
    events = record(game.event_bus, EVENT_LEVEL_STARTED, EVENT_GAME_PHASE_CHANGED, EVENT_BOARD_RESET)
    game.start_level(1)
    state = game.state
    assert state.phase is GamePhase.PLAYING
    assert (state.level, state.moves_left, state.target_score, state.score) == (1, 10, 1000, 0)
    assert game.inventory.remaining(ToolKind.BOMB) == 2
    assert game.inventory.remaining(ToolKind.RESHUFFLE) == 2
    assert find_matches(game.board) == set()
    assert len(get_gem_registry(game.world).spawnable_types()) == 5
    names = [name for name, _ in events]
    assert EVENT_BOARD_RESET in names
    assert names[-1] == EVENT_LEVEL_STARTED
    phase_change = next(k for name, k in events if name == EVENT_GAME_PHASE_CHANGED)
    assert phase_change == {'previous_phase': GamePhase.START, 'new_phase': GamePhase.PLAYING}


def test_level_one_gem_count_comes_from_config():
    game = started_game(config=EngineConfig(level_one_gem_count=3))
    assert len(get_gem_registry(game.world).spawnable_types()) == 3
    assert all(cell.gem_type in get_gem_registry(game.world).spawnable_types() for cell in game.board)


def test_swaps_ignored_before_level_starts():
    game = Match3Game(rng=random.Random(2))
    events = record(game.event_bus, EVENT_TILE_SWAP_VALID, EVENT_TILE_SWAP_INVALID)
    before = rows_of(game.board)
    game.swap((0, 0), (0, 1))
    assert events == []
    assert rows_of(game.board) == before


def test_invalid_swap_restores_board_and_keeps_moves():
    game = started_game()
    install_rows(game.world, quiet_layout())
    game.state.combo = 3
    events = record(game.event_bus, EVENT_TILE_SWAP_INVALID, EVENT_MOVES_CHANGED, EVENT_CASCADE_COMPLETE)
    game.swap((0, 4), (0, 5))
    assert [name for name, _ in events] == [EVENT_TILE_SWAP_INVALID]
    assert rows_of(game.board) == quiet_layout()
    assert game.state.moves_left == 10
    assert game.state.combo == 0


def test_valid_swap_resolves_and_consumes_a_move():
    game = started_game()
    install_rows(game.world, paint(quiet_layout(), MATCHING_ROW))
    events = record(
        game.event_bus,
        EVENT_TILE_SWAP_VALID,
        EVENT_TILE_SWAP_FINALIZE,
        EVENT_CASCADE_STEP,
        EVENT_MATCH_FOUND,
        EVENT_MOVES_CHANGED,
        EVENT_CASCADE_COMPLETE,
    )
    game.swap((0, 2), (0, 3))
    names = [name for name, _ in events]
    assert names.index(EVENT_TILE_SWAP_VALID) < names.index(EVENT_TILE_SWAP_FINALIZE)
    assert names[-1] == EVENT_CASCADE_COMPLETE
    found = next(k for name, k in events if name == EVENT_MATCH_FOUND)
    assert {(0, 0), (0, 1), (0, 2)} <= set(found['positions'])
    step = next(k for name, k in events if name == EVENT_CASCADE_STEP)
    assert step['depth'] == 1
    assert game.state.moves_left == 9
    assert game.state.score >= 60
    assert game.state.combo >= 1
    assert find_matches(game.board) == set()
    assert not get_or_create_turn_state(game.world).cascade_active


def test_swap_ignored_while_cascade_active():
    game = started_game()
    install_rows(game.world, paint(quiet_layout(), MATCHING_ROW))
    get_or_create_turn_state(game.world).cascade_active = True
    game.swap((0, 2), (0, 3))
    assert game.state.moves_left == 10
    assert rows_of(game.board)[0][:4] == "RRSR"


def test_reaching_target_completes_level():
    game = started_game()
    install_rows(game.world, paint(quiet_layout(), MATCHING_ROW))
    game.state.target_score = 50
    events = record(game.event_bus, EVENT_LEVEL_COMPLETE, EVENT_GAME_OVER)
    game.swap((0, 2), (0, 3))
    assert game.phase is GamePhase.LEVEL_COMPLETE
    assert [name for name, _ in events] == [EVENT_LEVEL_COMPLETE]
    game.advance_level()
    assert game.phase is GamePhase.PLAYING
    assert game.state.level == 2
    assert game.state.score == 0
    assert len(get_gem_registry(game.world).spawnable_types()) == 6


def test_running_out_of_moves_ends_game():
    game = started_game()
    install_rows(game.world, paint(quiet_layout(), MATCHING_ROW))
    game.state.moves_left = 1
    game.state.target_score = 10 ** 9
    events = record(game.event_bus, EVENT_GAME_OVER, EVENT_LEVEL_COMPLETE)
    game.swap((0, 2), (0, 3))
    assert game.phase is GamePhase.GAME_OVER
    assert [name for name, _ in events] == [EVENT_GAME_OVER]
    # Further swaps are ignored.
    game.swap((0, 0), (0, 1))
    assert game.state.moves_left == 0


def test_bomb_clears_area_without_consuming_moves():
    game = started_game()
    install_rows(game.world, quiet_layout())
    events = record(game.event_bus, EVENT_TOOL_USED, EVENT_INVENTORY_CHANGED, EVENT_MATCH_CLEARED)
    game.use_tool(ToolKind.BOMB, 4, 4)
    used = next(k for name, k in events if name == EVENT_TOOL_USED)
    assert used['tool'] is ToolKind.BOMB
    assert used['remaining'] == 1
    assert used['positions'] == [(r, c) for r in range(3, 6) for c in range(3, 6)]
    cleared = next(k for name, k in events if name == EVENT_MATCH_CLEARED)
    assert cleared['points'] == 9 * 20
    assert game.state.score >= 180
    assert game.state.moves_left == 10
    assert game.inventory.remaining(ToolKind.BOMB) == 1
    assert find_matches(game.board) == set()


def test_tool_without_charges_is_refused():
    game = started_game(config=EngineConfig(bomb_charges=1))
    install_rows(game.world, quiet_layout())
    events = record(game.event_bus, EVENT_TOOL_UNAVAILABLE)
    game.use_tool(ToolKind.BOMB, 0, 0)
    before = rows_of(game.board)
    score = game.state.score
    game.use_tool(ToolKind.BOMB, 0, 0)
    assert [k['reason'] for _, k in events] == ['no_charges']
    assert game.inventory.remaining(ToolKind.BOMB) == 0
    assert rows_of(game.board) == before
    assert game.state.score == score


def test_reshuffle_replaces_board():
    game = started_game()
    old_ids = set(game.board.ids())
    events = record(game.event_bus, EVENT_BOARD_RESET, EVENT_CASCADE_COMPLETE)
    game.use_tool(ToolKind.RESHUFFLE)
    assert [k['reason'] for name, k in events if name == EVENT_BOARD_RESET] == ['reshuffle']
    assert not [name for name, _ in events if name == EVENT_CASCADE_COMPLETE]
    assert old_ids.isdisjoint(game.board.ids())
    assert find_matches(game.board) == set()
    assert game.inventory.remaining(ToolKind.RESHUFFLE) == 1
    assert game.state.moves_left == 10
