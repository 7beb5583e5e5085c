#!/usr/bin/env python3
"""CLI entry point for the guessing game."""

import argparse
import getpass
import logging
import sys

from guesser.config import Config, load_config
from guesser.engine import GameEngine
from guesser.errors import GameError
from guesser.loader import load_catalog
from guesser.models import GRADE_LABELS, Outcome
from guesser.simulate import simulate_batch, summarize
from guesser.storage import save_records, save_summary


# Terminal shortcuts for each grade
GRADE_KEYS = {
    "y": "yes",
    "p": "probably",
    "?": "dont_know",
    "pn": "probably_not",
    "n": "no",
}

ACTION_HELP = "  ".join(
    [f"[{key}] {GRADE_LABELS[grade]}" for key, grade in GRADE_KEYS.items()]
)


def resolve_config(args) -> Config:
    """Load config and apply command-line overrides."""
    config = load_config(args.config)
    if args.items:
        config.data.items_path = args.items
    if args.questions:
        config.data.questions_path = args.questions
    if args.log_level:
        config.log_level = args.log_level.upper()

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return config


def print_outcome(outcome: Outcome, player: str) -> None:
    """Render an engine outcome to the terminal."""
    if outcome.kind == "question":
        print(f"\nQ{outcome.asked_count + 1}: {player}, {outcome.question}")
        back = "  [b] Back" if outcome.can_go_back else ""
        print(f"  {ACTION_HELP}{back}  [e] End")
    elif outcome.kind == "guess":
        print(f"\n{player}, your item is **{outcome.name}**!")
        for statement in outcome.reveal_statements:
            print(f"  * {statement}")
        footer = f"Guessed after {outcome.asked_count} questions. Score: {outcome.score}"
        if outcome.runner_up_name:
            footer += f" | Next choice: {outcome.runner_up_name} (score {outcome.runner_up_score})"
        print(f"  {footer}")
        print("  [c] No it's not, continue!  [e] End")
    elif outcome.kind == "conceded":
        print(f"\n{player}, you beat me! How did you do that? Were you thinking of an item I know?")
    elif outcome.kind == "aborted":
        print(f"\n{player}, {outcome.message or 'the game was stopped.'}")
    elif outcome.kind == "ended":
        if outcome.reason == "timeout":
            print(f"\n{player}, you didn't answer my question! I'm going to end the game.")
        else:
            print(f"\n{player} chose to end the game early.")


def cmd_play(args):
    """Play an interactive game in the terminal."""
    config = resolve_config(args)
    catalog = load_catalog(config.data.items_path, config.data.questions_path)
    engine = GameEngine(catalog, config)
    player = args.player or getpass.getuser()

    outcome = engine.start_session(player)
    print_outcome(outcome, player)

    while outcome.kind in ("question", "guess"):
        try:
            choice = input("> ").strip().lower()
        except EOFError:
            choice = "e"

        try:
            if choice == "e":
                outcome = engine.end_session(outcome.session_id, player=player)
            elif outcome.kind == "guess":
                if choice != "c":
                    print("  Enter [c] to continue or [e] to end.")
                    continue
                outcome = engine.continue_after_guess(
                    outcome.session_id, player=player, prompt_id=outcome.prompt_id
                )
            elif choice == "b":
                outcome = engine.go_back(outcome.session_id, player=player, prompt_id=outcome.prompt_id)
            elif choice in GRADE_KEYS:
                outcome = engine.submit_answer(
                    outcome.session_id, GRADE_KEYS[choice], player=player, prompt_id=outcome.prompt_id
                )
            else:
                print(f"  Unrecognized answer {choice!r}.")
                continue
        except GameError as e:
            print(f"  {player}, {e}")
            continue

        print_outcome(outcome, player)


def cmd_simulate(args):
    """Run self-play games and print statistics."""
    config = resolve_config(args)
    catalog = load_catalog(config.data.items_path, config.data.questions_path)
    print(f"Loaded {catalog.num_candidates} items, {catalog.num_statements} statements")

    sim = config.simulation
    if args.games is not None:
        sim.games = args.games
    if args.noise is not None:
        sim.noise = args.noise
    if args.seed is not None:
        sim.seed = args.seed
    if args.max_turns is not None:
        sim.max_turns = args.max_turns

    secrets = None
    if args.all_items:
        secrets = [c.candidate_id for c in catalog.list_candidates()]
    elif args.secret:
        if catalog.get_candidate(args.secret) is None:
            print(f"Error: Unknown item '{args.secret}'")
            sys.exit(1)
        secrets = [args.secret] * sim.games

    records = simulate_batch(catalog, config, secrets=secrets)
    summary = summarize(records)

    print("\n" + "=" * 50)
    print("SIMULATION SUMMARY")
    print("=" * 50)
    print(f"Games:              {summary['games']}")
    print(f"Win rate:           {summary['win_rate'] * 100:.1f}%")
    print(f"Questions (mean):   {summary['mean_questions']:.2f}")
    print(f"Questions (median): {summary['median_questions']:.1f}")
    print(f"Questions (p90):    {summary['p90_questions']:.1f}")
    print(f"Wrong guesses/game: {summary['mean_wrong_guesses']:.2f}")
    print("-" * 50)
    for kind, count in sorted(summary["by_outcome"].items()):
        print(f"  {kind:<12} {count:>5}")

    if args.verbose:
        print()
        for record in records:
            wrong = f" (wrong: {', '.join(record.wrong_guesses)})" if record.wrong_guesses else ""
            print(f"  {record.secret_id:<16} {record.outcome:<10} {record.questions_asked:>3} questions{wrong}")

    output_dir = args.output_dir
    if output_dir:
        records_path = save_records(records, output_dir)
        print(f"\nSaved games to {records_path}")
        summary_path = save_summary(records, output_dir, config.output)
        print(f"Saved summary to {summary_path}")


def cmd_list_items(args):
    """List available items."""
    config = resolve_config(args)
    catalog = load_catalog(config.data.items_path, config.data.questions_path)
    print(f"Available items ({catalog.num_candidates} total):\n")
    for candidate in catalog.list_candidates():
        count = len(catalog.attributes_of(candidate.candidate_id))
        print(f"  {candidate.candidate_id:<20} {candidate.name} ({count} statements)")


def cmd_show_item(args):
    """Show one item's attribute statements."""
    config = resolve_config(args)
    catalog = load_catalog(config.data.items_path, config.data.questions_path)
    candidate = catalog.get_candidate(args.item)
    if candidate is None:
        print(f"Error: Unknown item '{args.item}'")
        sys.exit(1)

    print(f"{candidate.name} ({candidate.candidate_id})\n")
    for statement in catalog.attributes_of(candidate.candidate_id):
        print(f"  {statement.question}")
        for question, expected in statement.dependencies.items():
            print(f"      implies {question} -> {'yes' if expected else 'no'}")


def main():
    parser = argparse.ArgumentParser(
        description="Think of an item and I'll guess it"
    )
    parser.add_argument("--items", help="Path to items.jsonl")
    parser.add_argument("--questions", help="Path to questions.jsonl")
    parser.add_argument("--config", help="Path to a JSON config file")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Logging level (default from config or GUESSER_LOG_LEVEL)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    play_parser = subparsers.add_parser("play", help="Play a game in the terminal")
    play_parser.add_argument("--player", help="Player name (defaults to the login name)")
    play_parser.set_defaults(func=cmd_play)

    sim_parser = subparsers.add_parser("simulate", help="Run self-play games")
    sim_parser.add_argument("--games", "-n", type=int, default=None, help="Number of games")
    sim_parser.add_argument("--secret", "-s", help="Play every game with this item")
    sim_parser.add_argument("--all-items", action="store_true", help="Play one game per item")
    sim_parser.add_argument("--noise", type=float, default=None, help="Probability of a hedged answer")
    sim_parser.add_argument("--max-turns", type=int, default=None, help="Turn limit per game")
    sim_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    sim_parser.add_argument("--output-dir", help="Directory to save games and summary")
    sim_parser.add_argument("--verbose", "-v", action="store_true", help="Print each game")
    sim_parser.set_defaults(func=cmd_simulate)

    list_parser = subparsers.add_parser("list-items", help="List available items")
    list_parser.set_defaults(func=cmd_list_items)

    show_parser = subparsers.add_parser("show-item", help="Show an item's statements")
    show_parser.add_argument("item", help="Item id")
    show_parser.set_defaults(func=cmd_show_item)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
