"""
Trust Game: an Iterated Prisoner's Dilemma engine showing how cooperation
emerges under repeated play
"""

from .agents import (
    # Moves and payoffs
    Move, PAYOFF_MATRIX, PAYOFF_BOTH_COOPERATE, PAYOFF_BOTH_CHEAT,
    PAYOFF_CHEATER_WINS, PAYOFF_SUCKER_LOSES, get_payoff,

    # Strategies
    Strategy, AlwaysCooperate, AlwaysCheat, Copycat, Grudger, Detective, Random, Copykitten,
    ALL_STRATEGIES, build_catalog, get_strategy_by_id
)

from .tournament import (
    RoundResult, MatchResult, PairingResult, TournamentResult, Tournament, InteractiveMatch,
    play_round, play_match, play_interactive_round, run_tournament
)
from .evolution import (
    PopulationEntry, EvolutionResult, FITNESS_OFFSET,
    create_initial_population, calculate_fitness, evolve_population, run_evolution
)
from .utils import SimulationConfig, load_env_vars, create_rng, format_history

__version__ = "1.0.0"
__all__ = [
    # Moves and payoffs
    "Move", "PAYOFF_MATRIX", "PAYOFF_BOTH_COOPERATE", "PAYOFF_BOTH_CHEAT",
    "PAYOFF_CHEATER_WINS", "PAYOFF_SUCKER_LOSES", "get_payoff",

    # Strategies
    "Strategy", "AlwaysCooperate", "AlwaysCheat", "Copycat", "Grudger", "Detective",
    "Random", "Copykitten", "ALL_STRATEGIES", "build_catalog", "get_strategy_by_id",

    # Matches and tournaments
    "RoundResult", "MatchResult", "PairingResult", "TournamentResult", "Tournament",
    "InteractiveMatch", "play_round", "play_match", "play_interactive_round", "run_tournament",

    # Evolution
    "PopulationEntry", "EvolutionResult", "FITNESS_OFFSET", "create_initial_population",
    "calculate_fitness", "evolve_population", "run_evolution",

    # Utils
    "SimulationConfig", "load_env_vars", "create_rng", "format_history"
]
