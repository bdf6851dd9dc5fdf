#!/usr/bin/env python3
"""
Command line runner for Trust Game simulations
Plays single matches, round-robin tournaments, evolution runs and an interactive sandbox
"""

import argparse
import os
import sys
from typing import List, Optional

from trust_game import (
    Move, InteractiveMatch, Tournament,
    build_catalog, get_strategy_by_id, play_match,
    create_initial_population, run_evolution,
    SimulationConfig, create_rng, format_history
)
from trust_game.analysis import create_population_plot, summarize_match
from trust_game.utils import Timer, parse_move


def _resolve_strategy(strategy_id: str, strategies):
    strategy = get_strategy_by_id(strategy_id, strategies)
    if strategy is None:
        known = ", ".join(s.id for s in strategies)
        print(f"❌ Unknown strategy '{strategy_id}'. Available: {known}")
    return strategy


def run_single_match(strategies, player1_id: str, player2_id: str, rounds: int) -> int:
    player1 = _resolve_strategy(player1_id, strategies)
    player2 = _resolve_strategy(player2_id, strategies)
    if player1 is None or player2 is None:
        return 2

    result = play_match(player1, player2, rounds)
    print(f"\n{player1.name} vs {player2.name} ({rounds} rounds)")
    print("-" * 40)
    for i, r in enumerate(result.rounds, 1):
        print(f"Round {i:2}: {r.player1_move.value} vs {r.player2_move.value}  "
              f"(+{r.player1_score} / +{r.player2_score})")

    summary = summarize_match(result)
    print("-" * 40)
    print(f"Final score: {player1.name} {result.player1_total_score} - "
          f"{result.player2_total_score} {player2.name}")
    print(f"Cooperation: {summary['player1_cooperation_rate']:.0%} / "
          f"{summary['player2_cooperation_rate']:.0%}")
    return 0


def run_tournament_mode(strategies, config: SimulationConfig, output_dir: Optional[str],
                        verbose: bool) -> int:
    print(f"\n🏆 Tournament: {len(strategies)} strategies, {config.rounds_per_match} rounds per match, "
          f"{config.matches_per_pairing} matches per pairing")

    with Timer("Tournament", verbose=verbose):
        tournament = Tournament(strategies, config.rounds_per_match,
                                config.matches_per_pairing, verbose=verbose)
        result = tournament.run()

    leaderboard = result.get_leaderboard()
    print(leaderboard[['rank', 'name', 'total_score', 'avg_score_per_match']].to_string(index=False))

    if output_dir:
        os.makedirs(output_dir, exist_ok=True)
        leaderboard_file = os.path.join(output_dir, "tournament_leaderboard.csv")
        rounds_file = os.path.join(output_dir, "tournament_rounds.csv")
        leaderboard.to_csv(leaderboard_file, index=False)
        result.save_to_csv(rounds_file)
        print(f"💾 Saved {leaderboard_file} and {rounds_file}")
    return 0


def run_evolution_mode(strategies, config: SimulationConfig, output_dir: Optional[str],
                       verbose: bool) -> int:
    population = create_initial_population(strategies, config.population_size)
    total = sum(entry.count for entry in population)
    print(f"\n🧬 Evolution: {total} players, {config.n_generations} generations, "
          f"{config.rounds_per_match} rounds per match")

    with Timer("Evolution", verbose=verbose):
        result = run_evolution(population, strategies, config.n_generations,
                               config.rounds_per_match, verbose=verbose)

    print(f"\nFinal population after {result.generations} generations:")
    for entry in sorted(result.final_population, key=lambda e: e.count, reverse=True):
        name = result.strategy_names.get(entry.strategy_id, entry.strategy_id)
        status = "" if entry.count > 0 else "  (extinct)"
        print(f"  {name:18} {entry.count:4}{status}")

    dominant = result.dominant_strategy()
    if dominant is not None:
        print(f"\nDominant strategy: {result.strategy_names.get(dominant, dominant)}")

    if output_dir:
        os.makedirs(output_dir, exist_ok=True)
        history_file = os.path.join(output_dir, "population_history.csv")
        plot_file = os.path.join(output_dir, "population_evolution.png")
        result.to_dataframe().to_csv(history_file)
        create_population_plot(result.population_history, strategies, plot_file)
        print(f"💾 Saved {history_file} and {plot_file}")
    return 0


def run_sandbox(strategies, opponent_id: str, rounds: int) -> int:
    opponent = _resolve_strategy(opponent_id, strategies)
    if opponent is None:
        return 2

    match = InteractiveMatch(opponent, rounds)
    print(f"\n🪙 Sandbox: {rounds} rounds against {opponent.name}")
    print(f"   {opponent.short_description}")
    print("   Type 'c' to cooperate, 'd' to cheat, 'q' to quit.")

    while not match.is_complete:
        try:
            raw = input(f"Round {len(match.rounds) + 1} of {rounds} > ")
        except EOFError:
            print()
            break
        if raw.strip().lower() == "q":
            break
        move = parse_move(raw)
        if move is None:
            print("Please type 'c' or 'd'.")
            continue

        r = match.play(move)
        verb = "cooperated" if r.player2_move == Move.COOPERATE else "cheated"
        print(f"  {opponent.name} {verb}. You +{r.player1_score}, them +{r.player2_score}")

    print(f"\nYour moves:  {format_history(match.player_history)}")
    print(f"Their moves: {format_history(match.opponent_history)}")
    print(f"Score: you {match.player_score} - {match.opponent_score} {opponent.name}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run Trust Game simulations")
    parser.add_argument("--mode", choices=["match", "tournament", "evolution", "sandbox"],
                        default="tournament", help="What to run (default: tournament)")
    parser.add_argument("--player1", type=str, default="copycat",
                        help="Strategy id of player 1 (match mode)")
    parser.add_argument("--player2", type=str, default="always-cheat",
                        help="Strategy id of player 2 / sandbox opponent")
    parser.add_argument("--rounds", type=int,
                        help="Rounds per match (default from config: 10)")
    parser.add_argument("--matches", type=int,
                        help="Matches per pairing in tournament mode (default from config: 5)")
    parser.add_argument("--generations", type=int,
                        help="Number of generations in evolution mode (default from config: 30)")
    parser.add_argument("--population-size", type=int,
                        help="Initial population size in evolution mode (default from config: 100)")
    parser.add_argument("--seed", type=int,
                        help="Seed for the Random strategy")
    parser.add_argument("--env-file", type=str,
                        help="Path to a .env file with TRUST_GAME_* settings")
    parser.add_argument("--output", type=str,
                        help="Output directory for CSV/PNG results")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Show progress bars and per-generation tables")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = SimulationConfig.from_env(args.env_file)

        # Command line flags override the environment
        for flag, attr in [("rounds", "rounds_per_match"), ("matches", "matches_per_pairing"),
                           ("generations", "n_generations"), ("population_size", "population_size"),
                           ("seed", "seed")]:
            value = getattr(args, flag)
            if value is not None:
                setattr(config, attr, value)
        config.validate()
    except ValueError as e:
        print(f"❌ Invalid configuration: {e}")
        return 2

    strategies = build_catalog(rng=create_rng(config.seed))

    if args.mode == "match":
        return run_single_match(strategies, args.player1, args.player2, config.rounds_per_match)
    if args.mode == "evolution":
        return run_evolution_mode(strategies, config, args.output, args.verbose)
    if args.mode == "sandbox":
        rounds = args.rounds if args.rounds is not None else config.sandbox_rounds
        return run_sandbox(strategies, args.player2, rounds)
    return run_tournament_mode(strategies, config, args.output, args.verbose)


if __name__ == "__main__":
    sys.exit(main())
