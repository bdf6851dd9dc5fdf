"""
Match and tournament engine for the Trust Game
Handles round scoring, fixed-length matches, interactive play and round-robin tournaments
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Sequence, Tuple

import pandas as pd
from tqdm import tqdm

from .agents import Move, Strategy, get_payoff


@dataclass(frozen=True)
class RoundResult:
    """Moves and scores of a single round"""
    player1_move: Move
    player2_move: Move
    player1_score: int
    player2_score: int


@dataclass
class MatchResult:
    """Result of a fixed-length match between two players"""
    rounds: Tuple[RoundResult, ...] = ()
    player1_total_score: int = 0
    player2_total_score: int = 0

    @property
    def rounds_played(self) -> int:
        return len(self.rounds)

    @property
    def player1_moves(self) -> List[Move]:
        return [r.player1_move for r in self.rounds]

    @property
    def player2_moves(self) -> List[Move]:
        return [r.player2_move for r in self.rounds]

    def to_dict(self) -> Dict:
        return {
            'moves': [(r.player1_move.value, r.player2_move.value) for r in self.rounds],
            'round_scores': [(r.player1_score, r.player2_score) for r in self.rounds],
            'scores': (self.player1_total_score, self.player2_total_score),
            'rounds': self.rounds_played,
        }


def _score_round(player1_move: Move, player2_move: Move) -> RoundResult:
    return RoundResult(
        player1_move=player1_move,
        player2_move=player2_move,
        player1_score=get_payoff(player1_move, player2_move),
        player2_score=get_payoff(player2_move, player1_move),
    )


def play_round(player1: Strategy, player2: Strategy, p1_history: Sequence[Move],
               p2_history: Sequence[Move], round_index: int) -> RoundResult:
    """Play a single round between two strategies"""
    # Strategies only ever see snapshots of the histories
    move1 = player1.get_move(tuple(p1_history), tuple(p2_history), round_index)
    move2 = player2.get_move(tuple(p2_history), tuple(p1_history), round_index)
    return _score_round(move1, move2)


def play_interactive_round(human_move: Move, opponent: Strategy, human_history: Sequence[Move],
                           opponent_history: Sequence[Move], round_index: int) -> RoundResult:
    """Play a round where player 1's move is supplied by a person or controller"""
    opponent_move = opponent.get_move(tuple(opponent_history), tuple(human_history), round_index)
    return _score_round(Move(human_move), opponent_move)


def play_match(player1: Strategy, player2: Strategy, num_rounds: int = 10) -> MatchResult:
    """Play a full match of num_rounds rounds between two strategies"""
    rounds = []
    p1_history: List[Move] = []
    p2_history: List[Move] = []

    for round_index in range(max(0, num_rounds)):
        result = play_round(player1, player2, p1_history, p2_history, round_index)
        rounds.append(result)
        p1_history.append(result.player1_move)
        p2_history.append(result.player2_move)

    return MatchResult(
        rounds=tuple(rounds),
        player1_total_score=sum(r.player1_score for r in rounds),
        player2_total_score=sum(r.player2_score for r in rounds),
    )


class InteractiveMatch:
    """A match against a strategy where player 1's moves arrive one at a time"""

    def __init__(self, opponent: Strategy, total_rounds: int = 10):
        self.opponent = opponent
        self.total_rounds = total_rounds
        self.rounds: List[RoundResult] = []
        self.player_history: List[Move] = []
        self.opponent_history: List[Move] = []

    @property
    def is_complete(self) -> bool:
        return len(self.rounds) >= self.total_rounds

    @property
    def player_score(self) -> int:
        return sum(r.player1_score for r in self.rounds)

    @property
    def opponent_score(self) -> int:
        return sum(r.player2_score for r in self.rounds)

    def play(self, move: Move) -> RoundResult:
        if self.is_complete:
            raise ValueError(f"Match already finished after {self.total_rounds} rounds")

        result = play_interactive_round(
            move, self.opponent, self.player_history, self.opponent_history, len(self.rounds)
        )
        self.rounds.append(result)
        self.player_history.append(result.player1_move)
        self.opponent_history.append(result.player2_move)
        return result

    def reset(self):
        """Start over against the same opponent"""
        self.rounds = []
        self.player_history = []
        self.opponent_history = []

    def to_match_result(self) -> MatchResult:
        return MatchResult(
            rounds=tuple(self.rounds),
            player1_total_score=self.player_score,
            player2_total_score=self.opponent_score,
        )


@dataclass
class PairingResult:
    """One match of a tournament, tagged with who played whom"""
    player1_id: str
    player2_id: str
    match: MatchResult


@dataclass
class TournamentResult:
    """Complete tournament results"""
    match_results: List[PairingResult]
    agent_scores: Dict[str, int]
    agent_stats: Dict[str, Dict]
    strategy_names: Dict[str, str]
    rounds_per_match: int
    matches_per_pairing: int
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def get_leaderboard(self) -> pd.DataFrame:
        """Scoreboard sorted by total score; ties keep catalog order"""
        rows = []
        for strategy_id, score in self.agent_scores.items():
            stats = self.agent_stats[strategy_id]
            rows.append({
                'id': strategy_id,
                'name': self.strategy_names[strategy_id],
                'total_score': score,
                'matches_played': stats['matches_played'],
                'avg_score_per_match': stats['avg_score_per_match'],
                'cooperation_rate': stats['cooperation_rate'],
            })
        columns = ['id', 'name', 'total_score', 'matches_played',
                   'avg_score_per_match', 'cooperation_rate']
        df = pd.DataFrame(rows, columns=columns)
        df = df.sort_values('total_score', ascending=False, kind='stable').reset_index(drop=True)
        df.insert(0, 'rank', range(1, len(df) + 1))
        return df

    def save_to_csv(self, filepath: str):
        """Save the round-by-round log to CSV"""
        rows = []
        for match_index, pairing in enumerate(self.match_results):
            for i, r in enumerate(pairing.match.rounds):
                rows.append({
                    'timestamp': self.timestamp,
                    'match_index': match_index,
                    'round': i + 1,
                    'player1': pairing.player1_id,
                    'player2': pairing.player2_id,
                    'player1_move': r.player1_move.value,
                    'player2_move': r.player2_move.value,
                    'player1_score': r.player1_score,
                    'player2_score': r.player2_score,
                })
        pd.DataFrame(rows).to_csv(filepath, index=False)


class Tournament:
    """Round-robin tournament runner (self-play included)"""

    def __init__(self, strategies: Sequence[Strategy], rounds_per_match: int = 10,
                 matches_per_pairing: int = 5, verbose: bool = False):
        self.strategies = list(strategies)
        self.rounds_per_match = rounds_per_match
        self.matches_per_pairing = matches_per_pairing
        self.verbose = verbose

    def pairings(self) -> List[Tuple[Strategy, Strategy]]:
        """Every unordered pair (i, j) with i <= j"""
        pairs = []
        for i, strategy1 in enumerate(self.strategies):
            for strategy2 in self.strategies[i:]:
                pairs.append((strategy1, strategy2))
        return pairs

    def run(self) -> TournamentResult:
        match_results = []
        agent_scores = {s.id: 0 for s in self.strategies}
        agent_moves = defaultdict(list)
        agent_matches = defaultdict(int)

        pairs = self.pairings()
        total_matches = len(pairs) * max(0, self.matches_per_pairing)
        pbar = tqdm(total=total_matches, desc="Running matches", disable=not self.verbose)

        for strategy1, strategy2 in pairs:
            for _ in range(self.matches_per_pairing):
                result = play_match(strategy1, strategy2, self.rounds_per_match)
                match_results.append(PairingResult(strategy1.id, strategy2.id, result))

                agent_scores[strategy1.id] += result.player1_total_score
                agent_scores[strategy2.id] += result.player2_total_score

                agent_moves[strategy1.id].extend(result.player1_moves)
                agent_moves[strategy2.id].extend(result.player2_moves)

                agent_matches[strategy1.id] += 1
                agent_matches[strategy2.id] += 1

                pbar.update(1)

        pbar.close()

        if self.verbose:
            print(f"Played {len(match_results)} matches across {len(pairs)} pairings")

        return self._calculate_tournament_result(match_results, agent_scores, agent_moves, agent_matches)

    def _calculate_tournament_result(self, match_results, agent_scores, agent_moves,
                                     agent_matches) -> TournamentResult:
        agent_stats = {}
        for strategy in self.strategies:
            moves = agent_moves[strategy.id]
            matches = agent_matches[strategy.id]
            agent_stats[strategy.id] = {
                'total_score': agent_scores[strategy.id],
                'matches_played': matches,
                'total_moves': len(moves),
                'avg_score_per_match': agent_scores[strategy.id] / matches if matches else 0,
                'cooperation_rate': moves.count(Move.COOPERATE) / len(moves) if moves else 0,
            }

        return TournamentResult(
            match_results=match_results,
            agent_scores=dict(agent_scores),
            agent_stats=agent_stats,
            strategy_names={s.id: s.name for s in self.strategies},
            rounds_per_match=self.rounds_per_match,
            matches_per_pairing=self.matches_per_pairing,
        )


def run_tournament(strategies: Sequence[Strategy], rounds_per_match: int = 10,
                   matches_per_pairing: int = 5) -> Dict[str, int]:
    """Run a round-robin tournament and return total score per strategy id"""
    return Tournament(strategies, rounds_per_match, matches_per_pairing).run().agent_scores
