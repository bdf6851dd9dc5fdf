"""
Evolutionary population dynamics for the Trust Game
Each generation, strategies reproduce in proportion to how well they score against the population
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import pandas as pd
from tqdm import tqdm

from .agents import Strategy
from .tournament import play_match

# Added to average match scores so selection weights stay positive
FITNESS_OFFSET = 10


@dataclass(frozen=True)
class PopulationEntry:
    strategy_id: str
    count: int


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _validate_population(population: Sequence[PopulationEntry], strategy_map: Dict[str, Strategy]):
    seen = set()
    for entry in population:
        if entry.count < 0:
            raise ValueError(f"Negative count for {entry.strategy_id}: {entry.count}")
        if entry.strategy_id in seen:
            raise ValueError(f"Duplicate population entry: {entry.strategy_id}")
        if entry.strategy_id not in strategy_map:
            raise ValueError(f"Unknown strategy: {entry.strategy_id}")
        seen.add(entry.strategy_id)


def create_initial_population(strategies: Sequence[Strategy], total_size: int = 100) -> List[PopulationEntry]:
    """Even split of total_size across the strategies (rounded per strategy)"""
    if not strategies:
        return []
    count = round_half_up(total_size / len(strategies))
    return [PopulationEntry(s.id, count) for s in strategies]


def calculate_fitness(population: Sequence[PopulationEntry], strategies: Sequence[Strategy],
                      rounds_per_match: int = 10) -> Dict[str, float]:
    """
    Population-weighted average match score of every strategy with a nonzero count.

    Each living strategy plays one match against every living strategy, itself included.
    A member can't play itself, so the self-match is weighted by count - 1.
    """
    strategy_map = {s.id: s for s in strategies}
    _validate_population(population, strategy_map)

    fitness = {}
    for entry in population:
        if entry.count == 0:
            continue
        total_score = 0
        total_weight = 0

        for opponent in population:
            if opponent.count == 0:
                continue
            result = play_match(strategy_map[entry.strategy_id],
                                strategy_map[opponent.strategy_id],
                                rounds_per_match)
            if opponent.strategy_id == entry.strategy_id:
                weight = opponent.count - 1
            else:
                weight = opponent.count
            total_score += result.player1_total_score * weight
            total_weight += weight

        fitness[entry.strategy_id] = total_score / total_weight if total_weight > 0 else 0

    return fitness


def selection_weight(fitness: float) -> float:
    return max(0, fitness + FITNESS_OFFSET)


def evolve_population(population: Sequence[PopulationEntry], strategies: Sequence[Strategy],
                      rounds_per_match: int = 10) -> List[PopulationEntry]:
    """
    Advance the population by exactly one generation.

    New counts are proportional to selection_weight(fitness) * count, rounded half-up.
    Whatever the rounding gains or loses goes to the (first) largest group, so the
    total population size never changes.
    """
    fitness = calculate_fitness(population, strategies, rounds_per_match)
    total_population = sum(entry.count for entry in population)

    total_fitness = sum(
        selection_weight(fitness[entry.strategy_id]) * entry.count
        for entry in population if entry.strategy_id in fitness
    )
    if total_fitness == 0:
        return list(population)

    new_counts = []
    for entry in population:
        weight = selection_weight(fitness.get(entry.strategy_id, 0))
        proportion = weight * entry.count / total_fitness
        new_counts.append(max(0, round_half_up(proportion * total_population)))

    discrepancy = total_population - sum(new_counts)
    if discrepancy != 0 and new_counts:
        largest = new_counts.index(max(new_counts))
        new_counts[largest] += discrepancy

    return [PopulationEntry(entry.strategy_id, count) for entry, count in zip(population, new_counts)]


def population_history_frame(history: Sequence[Sequence[PopulationEntry]]) -> pd.DataFrame:
    """Generation x strategy table of counts"""
    rows = [{entry.strategy_id: entry.count for entry in generation} for generation in history]
    df = pd.DataFrame(rows).fillna(0).astype(int)
    df.index.name = "generation"
    return df


@dataclass
class EvolutionResult:
    """Population history of an evolution run; generation 0 is the starting population"""
    population_history: List[List[PopulationEntry]]
    rounds_per_match: int
    strategy_names: Dict[str, str] = field(default_factory=dict)

    @property
    def generations(self) -> int:
        return len(self.population_history) - 1

    @property
    def final_population(self) -> List[PopulationEntry]:
        return self.population_history[-1]

    def to_dataframe(self) -> pd.DataFrame:
        return population_history_frame(self.population_history)

    def get_shares(self) -> pd.DataFrame:
        """Population fractions per generation (rows sum to 1 for non-empty populations)"""
        counts = self.to_dataframe()
        totals = counts.sum(axis=1).replace(0, 1)
        return counts.div(totals, axis=0)

    def survivors(self) -> List[str]:
        return [entry.strategy_id for entry in self.final_population if entry.count > 0]

    def dominant_strategy(self) -> Optional[str]:
        if not self.final_population:
            return None
        best = max(self.final_population, key=lambda entry: entry.count)
        return best.strategy_id if best.count > 0 else None


def _print_generation(generation: int, population: Sequence[PopulationEntry]):
    total = sum(entry.count for entry in population) or 1
    print(f"\nGeneration {generation}:")
    print("Strategy          | Count | Share")
    print("------------------|-------|-------")
    for entry in sorted(population, key=lambda e: e.count, reverse=True):
        print(f"{entry.strategy_id:18}| {entry.count:5} | {entry.count / total:.1%}")


def run_evolution(initial_population: Sequence[PopulationEntry], strategies: Sequence[Strategy],
                  n_generations: int = 30, rounds_per_match: int = 10,
                  verbose: bool = False) -> EvolutionResult:
    """Evolve the population for n_generations, keeping every generation"""
    history = [list(initial_population)]
    if verbose:
        _print_generation(0, history[0])

    for generation in tqdm(range(1, n_generations + 1), desc="Evolving", disable=not verbose):
        next_population = evolve_population(history[-1], strategies, rounds_per_match)
        history.append(next_population)
        if verbose:
            _print_generation(generation, next_population)

    return EvolutionResult(
        population_history=history,
        rounds_per_match=rounds_per_match,
        strategy_names={s.id: s.name for s in strategies},
    )
