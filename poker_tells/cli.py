"""
Command line interface for poker tells.

Usage:
    poker-tells evaluate <card>...
    poker-tells simulate [--rounds=<n>] [--seed=<n>] [--patterns=<file>]
                         [--config=<file>] [--stats-csv=<file>] [--load] [--debug]
    poker-tells patterns <file>
    poker-tells --help
    poker-tells --version
"""

import argparse
import logging
import sys
from pathlib import Path

from poker_tells import __version__


def evaluate_command(cards) -> str:
    """Ranking and encoded value of the best hand in the given cards."""
    from poker_tells.card import parse_cards
    from poker_tells.hand_evaluator import calculate_hand_strength

    parsed = parse_cards(cards)
    if not parsed:
        raise ValueError("No cards given")
    strength = calculate_hand_strength(parsed)
    return f"{' '.join(str(c) for c in parsed)}: {strength}"


def simulate_command(args) -> None:
    from poker_tells.config import CoordinatorConfig, load_config
    from poker_tells.progress import round_progress
    from poker_tells.simulator import simulate_session

    config = load_config(args.config) if args.config else CoordinatorConfig()
    if args.patterns:
        config.pattern_file = Path(args.patterns)

    with round_progress(args.rounds) as update:
        result = simulate_session(
            args.rounds,
            seed=args.seed,
            config=config,
            progress=update,
            load_patterns=args.load,
        )

    print(f"Rounds: {result.rounds}  Showdowns: {result.showdowns}  Patterns: {result.pattern_count}")
    print(result.summary)

    if args.stats_csv:
        rows = result.stats.export_csv(args.stats_csv)
        print(f"Wrote {rows} decisions to {args.stats_csv}", file=sys.stderr)


def patterns_command(path) -> None:
    """Print a stored pattern database as a table."""
    from rich.console import Console
    from rich.table import Table

    from poker_tells.serialization import read_pattern_database

    length, patterns = read_pattern_database(path)

    table = Table(title=f"{path} ({len(patterns)} patterns, feature length {length})")
    table.add_column("ID", justify="right")
    table.add_column("Samples", justify="right")
    table.add_column("Strong agg.", justify="right")
    table.add_column("Strong pass.", justify="right")
    table.add_column("Weak agg.", justify="right")
    table.add_column("Weak pass.", justify="right")
    table.add_column("Bluffs won", justify="right")

    for p in patterns:
        table.add_row(
            str(p.id),
            str(p.count),
            str(p.strong_aggressive_count),
            str(p.strong_passive_count),
            str(p.weak_aggressive_count),
            str(p.weak_passive_count),
            str(p.successful_bluff_count),
        )

    Console().print(table)


def main():
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="poker-tells",
        description="Poker tells - learn a player's behavioral tells from face landmarks",
    )
    parser.add_argument(
        "--version", "-v", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # evaluate command
    evaluate_parser = subparsers.add_parser(
        "evaluate", help="Evaluate the best poker hand in a set of cards"
    )
    evaluate_parser.add_argument("cards", nargs="+", help="Cards like Ah Kd 10s")

    # simulate command
    simulate_parser = subparsers.add_parser(
        "simulate", help="Play a simulated session against the tell-reading opponent"
    )
    simulate_parser.add_argument(
        "--rounds", "-n", type=int, default=50, help="Number of rounds (default: 50)"
    )
    simulate_parser.add_argument(
        "--seed", "-s", type=int, default=None, help="Random seed (default: random)"
    )
    simulate_parser.add_argument(
        "--patterns", "-p", default=None,
        help="Pattern file (default: face_pattern_memory.json or the config's pattern_file)"
    )
    simulate_parser.add_argument(
        "--config", "-c", default=None, help="JSON config file with coordinator settings"
    )
    simulate_parser.add_argument(
        "--stats-csv", default=None, help="Append decision statistics to this CSV file"
    )
    simulate_parser.add_argument(
        "--load", action="store_true", help="Start from the saved patterns"
    )
    simulate_parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )

    # patterns command
    patterns_parser = subparsers.add_parser(
        "patterns", help="Show the clusters stored in a pattern file"
    )
    patterns_parser.add_argument("file", help="Path to pattern file")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if getattr(args, "debug", False) else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "evaluate":
            print(evaluate_command(args.cards))

        elif args.command == "simulate":
            if args.rounds < 0:
                raise ValueError("--rounds must not be negative")
            simulate_command(args)

        elif args.command == "patterns":
            patterns_command(args.file)

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    main()
