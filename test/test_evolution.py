import os
import sys
from unittest.mock import patch

import pytest

# Add the parent directory to the path so we can import trust_game
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import trust_game.evolution as evolution_module
from trust_game.agents import AlwaysCooperate, AlwaysCheat, Copycat, Grudger, build_catalog
from trust_game.evolution import (
    PopulationEntry, FITNESS_OFFSET,
    create_initial_population, calculate_fitness, evolve_population, run_evolution, round_half_up
)
from trust_game.utils import create_rng


def counts(population):
    return [entry.count for entry in population]


class TestFitness:

    def test_self_match_weighted_by_count_minus_one(self):
        population = [PopulationEntry('always-cooperate', 5), PopulationEntry('always-cheat', 5)]
        fitness = calculate_fitness(population, [AlwaysCooperate(), AlwaysCheat()], 10)
        # AC: 4 x 30 (self) + 5 x 0, AX: 5 x 50 + 4 x 10 (self)
        assert fitness['always-cooperate'] == pytest.approx(120 / 9)
        assert fitness['always-cheat'] == pytest.approx(290 / 9)

    def test_zero_count_entries_are_skipped(self):
        population = [PopulationEntry('always-cheat', 0), PopulationEntry('always-cooperate', 3)]
        fitness = calculate_fitness(population, [AlwaysCooperate(), AlwaysCheat()], 10)
        assert fitness == {'always-cooperate': pytest.approx(30.0)}

    def test_lone_individual_has_zero_fitness(self):
        fitness = calculate_fitness([PopulationEntry('copycat', 1)], [Copycat()], 10)
        assert fitness == {'copycat': 0}

    def test_unknown_strategy_raises(self):
        with pytest.raises(ValueError):
            calculate_fitness([PopulationEntry('nobody', 3)], [Copycat()], 10)

    def test_negative_count_raises(self):
        with pytest.raises(ValueError):
            calculate_fitness([PopulationEntry('copycat', -1)], [Copycat()], 10)

    def test_duplicate_entry_raises(self):
        population = [PopulationEntry('copycat', 1), PopulationEntry('copycat', 2)]
        with pytest.raises(ValueError):
            calculate_fitness(population, [Copycat()], 10)


class TestEvolvePopulation:

    def test_cheaters_grow_against_cooperators(self):
        population = [PopulationEntry('always-cooperate', 5), PopulationEntry('always-cheat', 5)]
        new_population = evolve_population(population, [AlwaysCooperate(), AlwaysCheat()], 10)
        assert new_population == [PopulationEntry('always-cooperate', 4),
                                  PopulationEntry('always-cheat', 6)]

    def test_zero_count_entry_left_unchanged(self):
        population = [PopulationEntry('always-cooperate', 0), PopulationEntry('copycat', 10)]
        new_population = evolve_population(population, [AlwaysCooperate(), Copycat()], 10)
        assert new_population == population

    def test_lone_individual_survives(self):
        population = [PopulationEntry('copycat', 1)]
        assert evolve_population(population, [Copycat()], 10) == population

    def test_empty_population_returned_unchanged(self):
        assert evolve_population([], build_catalog(), 10) == []

    def test_all_zero_population_returned_unchanged(self):
        population = [PopulationEntry('copycat', 0), PopulationEntry('grudger', 0)]
        assert evolve_population(population, [Copycat(), Grudger()], 10) == population

    def test_rounding_surplus_removed_from_first_largest_group(self):
        population = [PopulationEntry('copycat', 1), PopulationEntry('grudger', 1),
                      PopulationEntry('always-cheat', 1)]
        strategies = [Copycat(), Grudger(), AlwaysCheat()]
        # Selection weights 10 : 10 : 0 -> raw counts 1.5, 1.5, 0 -> rounded 2, 2, 0
        fitness = {'copycat': 0, 'grudger': 0, 'always-cheat': -FITNESS_OFFSET}
        with patch.object(evolution_module, 'calculate_fitness', return_value=fitness):
            new_population = evolve_population(population, strategies, 10)
        assert counts(new_population) == [1, 2, 0]

    def test_rounding_deficit_added_to_first_largest_group(self):
        population = [PopulationEntry('copycat', 1), PopulationEntry('grudger', 1),
                      PopulationEntry('always-cheat', 1)]
        strategies = [Copycat(), Grudger(), AlwaysCheat()]
        # Selection weights 7 : 7 : 1 -> raw counts 1.4, 1.4, 0.2 -> rounded 1, 1, 0
        fitness = {'copycat': -3, 'grudger': -3, 'always-cheat': -9}
        with patch.object(evolution_module, 'calculate_fitness', return_value=fitness):
            new_population = evolve_population(population, strategies, 10)
        assert counts(new_population) == [2, 1, 0]

    def test_negative_selection_weight_floored_at_zero(self):
        population = [PopulationEntry('copycat', 2), PopulationEntry('always-cheat', 2)]
        fitness = {'copycat': 5, 'always-cheat': -50}
        with patch.object(evolution_module, 'calculate_fitness', return_value=fitness):
            new_population = evolve_population(population, [Copycat(), AlwaysCheat()], 10)
        assert counts(new_population) == [4, 0]

    def test_input_population_not_modified(self):
        population = [PopulationEntry('always-cooperate', 5), PopulationEntry('always-cheat', 5)]
        snapshot = list(population)
        evolve_population(population, [AlwaysCooperate(), AlwaysCheat()], 10)
        assert population == snapshot

    def test_population_size_conserved_over_generations(self):
        strategies = build_catalog(rng=create_rng(2024))
        population = create_initial_population(strategies, 100)
        total = sum(counts(population))
        for _ in range(25):
            population = evolve_population(population, strategies, 10)
            assert sum(counts(population)) == total
            assert all(c >= 0 for c in counts(population))

    def test_uneven_population_conserved(self):
        strategies = build_catalog(rng=create_rng(9))
        population = [PopulationEntry(s.id, c) for s, c in zip(strategies, [3, 17, 1, 0, 8, 5, 2])]
        for _ in range(10):
            population = evolve_population(population, strategies, 7)
            assert sum(counts(population)) == 36


class TestRunEvolution:

    def test_initial_population_even_split(self):
        population = create_initial_population(build_catalog(), 100)
        assert counts(population) == [14] * 7
        assert create_initial_population([], 100) == []

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(1.49) == 1

    def test_history_keeps_every_generation(self):
        strategies = [Copycat(), AlwaysCooperate(), AlwaysCheat(), Grudger()]
        initial = create_initial_population(strategies, 40)
        result = run_evolution(initial, strategies, n_generations=5, rounds_per_match=10)

        assert result.generations == 5
        assert len(result.population_history) == 6
        assert result.population_history[0] == initial
        assert all(sum(counts(generation)) == 40 for generation in result.population_history)

    def test_dataframe_and_shares(self):
        strategies = [AlwaysCooperate(), AlwaysCheat()]
        initial = [PopulationEntry('always-cooperate', 5), PopulationEntry('always-cheat', 5)]
        result = run_evolution(initial, strategies, n_generations=1)

        df = result.to_dataframe()
        assert list(df.columns) == ['always-cooperate', 'always-cheat']
        assert df.loc[1, 'always-cheat'] == 6

        shares = result.get_shares()
        assert shares.sum(axis=1).tolist() == pytest.approx([1.0, 1.0])

    def test_cheaters_take_over_naive_population(self):
        strategies = [AlwaysCooperate(), AlwaysCheat()]
        initial = [PopulationEntry('always-cooperate', 5), PopulationEntry('always-cheat', 5)]
        result = run_evolution(initial, strategies, n_generations=20)
        assert result.dominant_strategy() == 'always-cheat'
        assert result.survivors() == ['always-cheat']

    def test_dominant_strategy_of_empty_population(self):
        result = run_evolution([], [Copycat()], n_generations=2)
        assert result.dominant_strategy() is None
        assert result.survivors() == []

    def test_verbose_prints_generation_tables(self, capsys):
        strategies = [AlwaysCooperate(), AlwaysCheat()]
        initial = [PopulationEntry('always-cooperate', 5), PopulationEntry('always-cheat', 5)]
        run_evolution(initial, strategies, n_generations=2, verbose=True)
        out = capsys.readouterr().out
        assert "Generation 0:" in out
        assert "Generation 2:" in out
