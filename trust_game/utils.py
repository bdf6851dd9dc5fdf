"""
Utility functions for Trust Game simulations
Configuration loading, random generators, history formatting and timing
"""

import os
import time
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
from dotenv import load_dotenv

from .agents import Move

ENV_PREFIX = "TRUST_GAME_"


def _read_int(name: str, default: Optional[int], allow_none: bool = False) -> Optional[int]:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    if allow_none and raw.strip().lower() == "none":
        return None
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}")
    if value < 0:
        raise ValueError(f"{ENV_PREFIX}{name} must be non-negative, got {value}")
    return value


@dataclass
class SimulationConfig:
    """Default parameters for matches, tournaments and evolution runs"""
    rounds_per_match: int = 10
    matches_per_pairing: int = 5
    n_generations: int = 30
    population_size: int = 100
    sandbox_rounds: int = 10
    seed: Optional[int] = None

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "SimulationConfig":
        """Build a config from TRUST_GAME_* environment variables (after loading env_file)"""
        load_env_vars(env_file)
        defaults = cls()
        return cls(
            rounds_per_match=_read_int("ROUNDS_PER_MATCH", defaults.rounds_per_match),
            matches_per_pairing=_read_int("MATCHES_PER_PAIRING", defaults.matches_per_pairing),
            n_generations=_read_int("GENERATIONS", defaults.n_generations),
            population_size=_read_int("POPULATION_SIZE", defaults.population_size),
            sandbox_rounds=_read_int("SANDBOX_ROUNDS", defaults.sandbox_rounds),
            seed=_read_int("SEED", defaults.seed, allow_none=True),
        )

    def validate(self) -> "SimulationConfig":
        """Raise ValueError unless every setting is a non-negative integer (seed may be None)"""
        for name, value in self.to_dict().items():
            if name == 'seed' and value is None:
                continue
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValueError(f"{name} must be an integer, got {value!r}")
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")
        return self

    def to_dict(self) -> dict:
        return {
            'rounds_per_match': self.rounds_per_match,
            'matches_per_pairing': self.matches_per_pairing,
            'n_generations': self.n_generations,
            'population_size': self.population_size,
            'sandbox_rounds': self.sandbox_rounds,
            'seed': self.seed,
        }


def load_env_vars(env_file: Optional[str] = None) -> bool:
    """Load variables from a .env file; existing environment variables win"""
    if env_file is not None and not os.path.exists(env_file):
        print(f"⚠️  Env file not found: {env_file}")
        return False
    return load_dotenv(env_file, override=False)


def create_rng(seed: Optional[int] = None) -> np.random.Generator:
    """Random generator for the Random strategy (seeded for reproducible runs)"""
    return np.random.default_rng(seed)


def format_history(moves: Sequence[Move]) -> str:
    """Compact 'C D C' rendering of a move history"""
    return " ".join(Move(m).value for m in moves)


def parse_move(text: str) -> Optional[Move]:
    """Parse user input into a Move; None if it isn't recognised"""
    normalized = text.strip().lower()
    if normalized in ("c", "cooperate"):
        return Move.COOPERATE
    if normalized in ("d", "x", "cheat", "defect"):
        return Move.CHEAT
    return None


class Timer:
    """Context manager that measures wall-clock time"""

    def __init__(self, name: str = "Operation", verbose: bool = False):
        self.name = name
        self.verbose = verbose
        self.start_time = None
        self.elapsed = 0.0

    def __enter__(self):
        self.start_time = time.time()
        return self

    def __exit__(self, *args):
        self.elapsed = time.time() - self.start_time
        if self.verbose:
            print(f"{self.name} took {self.elapsed:.2f} seconds")
