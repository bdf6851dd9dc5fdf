"""
Analysis helpers for Trust Game results
Cooperation statistics, result tables and population plots
"""

from typing import Dict, List, Mapping, Sequence

from matplotlib.figure import Figure
import numpy as np
import pandas as pd

from .agents import Move, Strategy
from .evolution import PopulationEntry, population_history_frame
from .tournament import MatchResult


def cooperation_rate(moves: Sequence[Move]) -> float:
    if not moves:
        return 0.0
    return sum(1 for m in moves if m == Move.COOPERATE) / len(moves)


def summarize_match(match: MatchResult) -> Dict:
    """Totals and cooperation rates of a match"""
    return {
        'rounds': match.rounds_played,
        'player1_total_score': match.player1_total_score,
        'player2_total_score': match.player2_total_score,
        'player1_cooperation_rate': cooperation_rate(match.player1_moves),
        'player2_cooperation_rate': cooperation_rate(match.player2_moves),
        'mutual_cooperation_rounds': sum(
            1 for r in match.rounds
            if r.player1_move == Move.COOPERATE and r.player2_move == Move.COOPERATE
        ),
    }


def leaderboard_frame(scores: Mapping[str, int], strategies: Sequence[Strategy]) -> pd.DataFrame:
    """Tournament scoreboard as a ranked table; ties keep the order of strategies"""
    names = {s.id: s.name for s in strategies}
    rows = [{'id': s.id, 'name': names[s.id], 'score': scores.get(s.id, 0)} for s in strategies]
    df = pd.DataFrame(rows, columns=['id', 'name', 'score'])
    df = df.sort_values('score', ascending=False, kind='stable').reset_index(drop=True)
    df.insert(0, 'rank', range(1, len(df) + 1))
    return df


def create_population_plot(history: Sequence[Sequence[PopulationEntry]], strategies: Sequence[Strategy],
                           filepath: str, title: str = "Population Evolution") -> str:
    """Stacked area chart of population shares per generation, saved to filepath"""
    counts = population_history_frame(history)
    colors_by_id = {s.id: s.color for s in strategies}
    names_by_id = {s.id: s.name for s in strategies}

    # Largest final group at the bottom of the stack
    final = counts.iloc[-1] if len(counts) else pd.Series(dtype=int)
    ordered: List[str] = sorted(counts.columns, key=lambda sid: final.get(sid, 0), reverse=True)

    totals = counts.sum(axis=1).replace(0, 1).to_numpy()
    population_matrix = [counts[sid].to_numpy() / totals for sid in ordered]
    generations = np.arange(len(counts))

    fig = Figure(figsize=(12, 8))
    ax = fig.subplots()
    if ordered:
        ax.stackplot(generations, *population_matrix,
                     labels=[names_by_id.get(sid, sid) for sid in ordered],
                     colors=[colors_by_id.get(sid, '#999999') for sid in ordered], alpha=0.8)

    ax.set_xlabel('Generation', fontsize=12, fontweight='bold')
    ax.set_ylabel('Population Share', fontsize=12, fontweight='bold')
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.set_ylim(0, 1)
    if len(generations) > 1:
        ax.set_xlim(generations[0], generations[-1])

    if ordered:
        ax.legend(bbox_to_anchor=(1.05, 1), loc='upper left', fontsize=9, frameon=True)
    ax.grid(True, alpha=0.3)
    ax.set_axisbelow(True)

    fig.tight_layout()
    fig.savefig(filepath, dpi=150, bbox_inches='tight', facecolor='white', edgecolor='none')
    return filepath
