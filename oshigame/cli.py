"""
Oshigame CLI - Command-line interface for the engine.

Usage:
    oshigame simulate Aoi Ren Mio    Play a full bot game and print the ranking
    oshigame validate <save_file>    Check a saved session (optionally repair it)
    oshigame results <save_file>     Print the ranking of a saved session
    oshigame history <history_file>  List recent games
    oshigame serve                   Run the HTTP API (needs uvicorn)
"""

import argparse
import logging
import sys
from pathlib import Path

from .config import GameConfig, Settings, configure_logging
from .engine_core.errors import GameStateCorruptionError
from .engine_core.phases import FinalResults, calculate_final_results
from .engine_core.rng import SeededRandom
from .engine_core.validation import repair_session, validate_session

logger = logging.getLogger(__name__)


def main(argv=None):
    """Main CLI entry point."""
    settings = Settings.from_env()

    parser = argparse.ArgumentParser(
        description="Oshigame - oshikatsu board game test-play engine",
        prog="oshigame",
    )
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Play a full game with bots")
    simulate_parser.add_argument("players", nargs="+", help="Player names in seat order (1-4)")
    simulate_parser.add_argument("--seed", type=int, default=settings.seed, help="Seed for dice and cards")
    simulate_parser.add_argument("--rounds", type=int, default=GameConfig.max_rounds, help="Rounds to play")
    simulate_parser.add_argument("--policy", choices=["first", "random"], default="random", help="Bot policy")
    simulate_parser.add_argument("--save", help="Write the session to this file after every action")
    simulate_parser.add_argument("--log-dir", help="Append the action log under this directory")
    simulate_parser.add_argument("--history", help="Record the game in this history file")

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a saved session")
    validate_parser.add_argument("save_file", help="Path to a session save")
    validate_parser.add_argument("--repair", action="store_true", help="Repair and rewrite the save")

    # Results command
    results_parser = subparsers.add_parser("results", help="Show the ranking of a saved session")
    results_parser.add_argument("save_file", help="Path to a session save")

    # History command
    history_parser = subparsers.add_parser("history", help="List recent games")
    history_parser.add_argument("history_file", help="Path to a history file")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "simulate":
        return cmd_simulate(args)
    elif args.command == "validate":
        return cmd_validate(args)
    elif args.command == "results":
        return cmd_results(args)
    elif args.command == "history":
        return cmd_history(args)
    elif args.command == "serve":
        return cmd_serve(args)
    else:
        parser.print_help()
        return 1


def print_results(results: FinalResults) -> None:
    for score in results.final_scores:
        print(f"  {score.rank}. {score.player_name} ({score.player_id}): {score.total_points} pts")
    stats = results.game_stats
    print(f"Winner(s): {', '.join(w.player_name for w in results.winners)}")
    print(f"Highest: {stats.highest_score}  Average: {stats.average_score}  Rounds: {stats.total_rounds}")


def cmd_simulate(args) -> int:
    """Play a bot game from setup to game-end."""
    from .bots import FirstLegalPolicy, RandomPolicy
    from .session import (
        FileSessionStore,
        GameController,
        GameLoop,
        GameLoopError,
        JsonFileGameHistory,
        JsonFileLogSink,
    )

    controller = GameController(
        store=FileSessionStore(args.save) if args.save else None,
        log_sink=JsonFileLogSink(args.log_dir) if args.log_dir else None,
        config=GameConfig(max_rounds=args.rounds),
        rng=SeededRandom(args.seed),
        history=JsonFileGameHistory(args.history) if args.history else None,
    )
    result = controller.initialize_game(args.players)
    if not result.success:
        print(f"Error: {result.error}")
        return 1

    policy = RandomPolicy(seed=args.seed) if args.policy == "random" else FirstLegalPolicy()
    loop = GameLoop(controller, default_policy=policy)
    try:
        summary = loop.run_game()
    except GameLoopError as e:
        print(f"Error: game stopped: {e}")
        return 1

    print(f"Session {summary.session_id}: {summary.rounds_played} round(s), {summary.actions_applied} action(s)")
    if summary.rejected_actions:
        print(f"Rejected bot actions: {len(summary.rejected_actions)}")
    print_results(summary.final_results)
    return 0


def _load(path: str):
    from .session.serialization import deserialize_session

    try:
        return deserialize_session(Path(path).read_bytes())
    except FileNotFoundError:
        print(f"Error: File not found: {path}")
    except GameStateCorruptionError as e:
        print(f"Error: {e}")
    return None


def cmd_validate(args) -> int:
    """Validate a saved session."""
    from .session import FileSessionStore

    session = _load(args.save_file)
    if session is None:
        return 1

    print(f"Validating: {args.save_file} ({session.session_id})")
    result = validate_session(session)
    for warning in result.warnings:
        print(f"  warning: {warning}")
    for error in result.errors:
        print(f"  {error.code.value}: {error.message} {error.context or ''}".rstrip())

    if result.valid:
        print("OK")
        return 0

    if not args.repair:
        return 1

    repaired = repair_session(session)
    after = validate_session(repaired)
    if not after.valid:
        print(f"Repair failed: {len(after.errors)} error(s) remain")
        return 1

    FileSessionStore(args.save_file).save(repaired)
    print("Repaired")
    return 0


def cmd_results(args) -> int:
    """Print the ranking of a saved session."""
    session = _load(args.save_file)
    if session is None:
        return 1
    print(f"Session {session.session_id}: round {session.current_round}, {session.current_phase.value}")
    print_results(calculate_final_results(session.players, GameConfig().max_rounds))
    return 0


def cmd_history(args) -> int:
    """List the games in a history file, newest first."""
    from .session import JsonFileGameHistory

    if not Path(args.history_file).exists():
        print(f"Error: File not found: {args.history_file}")
        return 1
    try:
        entries = JsonFileGameHistory(args.history_file).entries()
    except GameStateCorruptionError as e:
        print(f"Error: {e}")
        return 1

    print(f"{len(entries)} game(s)")
    for entry in reversed(entries):
        names = ", ".join(p.name for p in entry.players)
        started = entry.start_time.strftime("%Y-%m-%d %H:%M")
        print(f"  {entry.session_id}  {started}  {entry.status.value}  round {entry.rounds_reached}  {names}")
    return 0


def cmd_serve(args) -> int:
    """Run the HTTP API."""
    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn not installed. Install with: pip install oshigame[server]")
        return 1
    from .api.app import create_app

    uvicorn.run(create_app(), host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
