"""
Play one game against the AI in the terminal.

Usage: llmchess-play --opponent random --seed 7
       llmchess-play --model openai/gpt-4o-mini --human-color black
"""
import argparse
import asyncio
import logging
import random

from .config import SETTINGS
from .errors import ProviderError
from .game import ControllerState, GameConfig, SessionController
from .user_opponent import UserOpponent


async def _play(ctl: SessionController, user: UserOpponent, log: logging.Logger) -> None:
    while True:
        await ctl.process_pending()
        if ctl.state is ControllerState.TERMINAL:
            status = ctl.status().to_dict()
            print(f"\nGame over: {status['reason']} (winner: {status['winner']})")
            return
        raw = user.read(ctl)
        cmd = raw.lower()
        if cmd == "quit":
            return
        if cmd == "reset":
            ctl.reset()
            continue
        if cmd == "moves":
            print("Legal:", " ".join(ctl.session.referee().legal_uci()))
            continue
        if cmd == "hint":
            try:
                print("Hint:", await ctl.hint() or "(unavailable)")
            except ProviderError as exc:
                log.warning("Hint failed: %s", exc)
            continue
        outcome = ctl.attempt_human_move(raw)
        if not outcome.accepted:
            print(f"Move rejected ({outcome.reason}). Try again.")
            continue
        print(f"You played {outcome.san}")


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--model", default=None, help="Model name for the AI side (overrides settings)")
    ap.add_argument("--opponent", choices=["llm", "random"], default=None, help="Opponent mode")
    ap.add_argument("--human-color", choices=["white", "black"], default=None, help="Which side you play")
    ap.add_argument("--max-game-moves", type=int, default=None, help="Half-moves before the game is drawn")
    ap.add_argument("--max-invalid-moves", type=int, default=None, help="Invalid AI replies before it forfeits")
    ap.add_argument("--seed", type=int, default=None, help="Seed for the fallback move RNG")
    ap.add_argument("--pgn-out", default=None, help="Optional path to write PGN at end")
    ap.add_argument("--log-level", default="WARNING", help="Python logging level (e.g., INFO, DEBUG)")
    args = ap.parse_args()

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    log = logging.getLogger("play")

    cfg = GameConfig(
        max_game_moves=args.max_game_moves or SETTINGS.max_game_moves,
        max_invalid_moves=args.max_invalid_moves or SETTINGS.max_invalid_moves,
        opponent=args.opponent or SETTINGS.opponent,
        human_color=args.human_color or SETTINGS.human_color,
        model=args.model or SETTINGS.model,
        seed=args.seed,
        game_log=True,
    )
    ctl = SessionController(cfg, rng=random.Random(args.seed))
    log.info("Starting game: opponent=%s model=%s human=%s", cfg.opponent, cfg.model, cfg.human_color)
    asyncio.run(_play(ctl, UserOpponent(), log))

    summary = ctl.summary()
    print("Result:", summary["result"])
    print("Metrics:", {k: v for k, v in summary.items() if k != "pgn"})
    print("PGN:\n", summary["pgn"])
    if args.pgn_out:
        with open(args.pgn_out, "w", encoding="utf-8") as f:
            f.write(summary["pgn"])
        log.info("Wrote PGN to %s", args.pgn_out)


if __name__ == "__main__":
    main()
