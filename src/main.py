"""Headless autoplay for the gemcascade engine.

Plays the first valid swap each turn until the level ends and logs every settled turn.

Run with: ``python src/main.py [level] [seed]``
"""
import logging
import random
import sys

from gemcascade.events.bus import EVENT_CASCADE_COMPLETE, EVENT_GAME_OVER, EVENT_LEVEL_COMPLETE
from gemcascade.components.game_state import GamePhase
from gemcascade.components.inventory import ToolKind
from gemcascade.game import Match3Game

logger = logging.getLogger("gemcascade.autoplay")


def main(argv=None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    level = int(argv[0]) if argv else 1
    seed = int(argv[1]) if len(argv) > 1 else None
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    game = Match3Game(rng=random.Random(seed))
    bus = game.event_bus
    bus.subscribe(
        EVENT_CASCADE_COMPLETE,
        lambda s, **k: logger.info(
            "turn settled: depth=%s points=%s score=%s moves_left=%s",
            k.get("depth"), k.get("points"), game.state.score, game.state.moves_left,
        ),
    )
    bus.subscribe(EVENT_LEVEL_COMPLETE, lambda s, **k: logger.info("level %s complete", k.get("level")))
    bus.subscribe(EVENT_GAME_OVER, lambda s, **k: logger.info("game over at %s points", k.get("score")))

    game.start_level(level)
    while game.phase is GamePhase.PLAYING:
        swaps = game.valid_swaps()
        if swaps:
            game.swap(*swaps[0])
        elif game.inventory.can_use(ToolKind.RESHUFFLE):
            game.use_tool(ToolKind.RESHUFFLE)
        else:
            logger.info("no valid swaps left")
            break
    return 0 if game.phase is GamePhase.LEVEL_COMPLETE else 1


if __name__ == "__main__":
    sys.exit(main())
