"""
Strategy implementations for the Trust Game
Includes the payoff rule, the seven built-in characters and the catalog lookup
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional, Sequence

import numpy as np


class Move(str, Enum):
    """A single round's choice: put the coin in, or don't"""
    COOPERATE = 'C'
    CHEAT = 'D'


# Payoff constants (canonical Prisoner's Dilemma values)
PAYOFF_BOTH_COOPERATE = 3   # Both put in a coin
PAYOFF_BOTH_CHEAT = 1       # Neither puts in a coin
PAYOFF_CHEATER_WINS = 5     # You cheat, they cooperate
PAYOFF_SUCKER_LOSES = 0     # You cooperate, they cheat

PAYOFF_MATRIX = {
    (Move.COOPERATE, Move.COOPERATE): (PAYOFF_BOTH_COOPERATE, PAYOFF_BOTH_COOPERATE),
    (Move.COOPERATE, Move.CHEAT): (PAYOFF_SUCKER_LOSES, PAYOFF_CHEATER_WINS),
    (Move.CHEAT, Move.COOPERATE): (PAYOFF_CHEATER_WINS, PAYOFF_SUCKER_LOSES),
    (Move.CHEAT, Move.CHEAT): (PAYOFF_BOTH_CHEAT, PAYOFF_BOTH_CHEAT),
}


def get_payoff(my_move: Move, opponent_move: Move) -> int:
    """Score for the player who played my_move against opponent_move"""
    return PAYOFF_MATRIX[(Move(my_move), Move(opponent_move))][0]


class Strategy(ABC):
    """Base class for all Trust Game characters

    Strategies keep no state between calls. Everything they know about the
    match is rebuilt from the histories passed to ``get_move``.
    """

    id: str = ''
    name: str = ''
    emoji: str = ''
    color: str = '#999999'
    short_description: str = ''
    description: str = ''

    @abstractmethod
    def get_move(self, own_history: Sequence[Move], opponent_history: Sequence[Move],
                 round_index: int) -> Move:
        """Return Move.COOPERATE or Move.CHEAT for the round about to be played"""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.id!r})"


class AlwaysCooperate(Strategy):
    """Always cooperates"""
    id = 'always-cooperate'
    name = 'Always Cooperate'
    emoji = 'AC'
    color = '#4ade80'
    short_description = 'Always puts in the coin. Endlessly trusting.'
    description = ('This player always cooperates, no matter what. They believe in '
                   'unconditional kindness, even when it hurts them.')

    def get_move(self, own_history, opponent_history, round_index):
        return Move.COOPERATE


class AlwaysCheat(Strategy):
    """Always cheats"""
    id = 'always-cheat'
    name = 'Always Cheat'
    emoji = 'AX'
    color = '#f87171'
    short_description = 'Never puts in the coin. Pure selfishness.'
    description = ('This player always cheats, no matter what. They exploit everyone '
                   'they meet without remorse.')

    def get_move(self, own_history, opponent_history, round_index):
        return Move.CHEAT


class Copycat(Strategy):
    """Cooperates first, then copies opponent's last move (Tit-for-Tat)"""
    id = 'copycat'
    name = 'Copycat'
    emoji = 'CC'
    color = '#60a5fa'
    short_description = 'Cooperates first, then copies your last move.'
    description = ("Copycat starts by cooperating, then copies whatever you did last round. "
                   "It's the golden rule: treat others as they treat you.")

    def get_move(self, own_history, opponent_history, round_index):
        if not opponent_history:
            return Move.COOPERATE
        return opponent_history[-1]


class Grudger(Strategy):
    """Cooperates until opponent cheats once, then always cheats"""
    id = 'grudger'
    name = 'Grudger'
    emoji = 'GR'
    color = '#c084fc'
    short_description = 'Cooperates until betrayed, then cheats forever.'
    description = ('Grudger cooperates at first, but the moment you cheat them even once, '
                   'they hold a grudge forever and always cheat back.')

    def get_move(self, own_history, opponent_history, round_index):
        if Move.CHEAT in opponent_history:
            return Move.CHEAT
        return Move.COOPERATE


class Detective(Strategy):
    """Plays C-D-C-C, then exploits pushovers or mirrors retaliators"""
    id = 'detective'
    name = 'Detective'
    emoji = 'DT'
    color = '#fbbf24'
    short_description = 'Tests you first, then adapts.'
    description = ("Detective plays a specific pattern: Cooperate, Cheat, Cooperate, Cooperate. "
                   "If you retaliate against their cheat, they'll play Copycat. If you don't, "
                   "they'll exploit you forever.")

    opening_moves = (Move.COOPERATE, Move.CHEAT, Move.COOPERATE, Move.COOPERATE)

    def get_move(self, own_history, opponent_history, round_index):
        if round_index < len(self.opening_moves):
            return self.opening_moves[round_index]

        # Did the opponent ever cheat while being tested?
        retaliated = Move.CHEAT in opponent_history[:len(self.opening_moves)]
        if not retaliated:
            return Move.CHEAT
        return opponent_history[-1]


class Random(Strategy):
    """Randomly cooperates or cheats"""
    id = 'random'
    name = 'Random'
    emoji = 'RN'
    color = '#fb923c'
    short_description = '50/50 chance of cooperating or cheating.'
    description = ('Random flips a coin each round. Cooperation or betrayal, '
                   'determined by pure chance.')

    def __init__(self, rng: Optional[np.random.Generator] = None, p_cooperate: float = 0.5):
        self.rng = rng if rng is not None else np.random.default_rng()
        self.p_cooperate = p_cooperate

    def get_move(self, own_history, opponent_history, round_index):
        return Move.COOPERATE if self.rng.random() < self.p_cooperate else Move.CHEAT


class Copykitten(Strategy):
    """Tit-for-Tat that only retaliates after two cheats in a row"""
    id = 'copykitten'
    name = 'Copykitten'
    emoji = 'CK'
    color = '#f472b6'
    short_description = 'Only retaliates after two cheats in a row.'
    description = ("Like Copycat, but more forgiving. Copykitten only cheats back if you cheat "
                   "them twice in a row. One cheat? They'll let it slide.")

    def get_move(self, own_history, opponent_history, round_index):
        if len(opponent_history) < 2:
            return Move.COOPERATE
        if opponent_history[-1] == Move.CHEAT and opponent_history[-2] == Move.CHEAT:
            return Move.CHEAT
        return Move.COOPERATE


def build_catalog(rng: Optional[np.random.Generator] = None) -> List[Strategy]:
    """Fresh list of the built-in strategies, in presentation order.

    ``rng`` seeds the Random character so whole runs can be reproduced.
    """
    return [
        Copycat(),
        AlwaysCooperate(),
        AlwaysCheat(),
        Grudger(),
        Detective(),
        Copykitten(),
        Random(rng=rng),
    ]


ALL_STRATEGIES: List[Strategy] = build_catalog()


def get_strategy_by_id(strategy_id: str,
                       strategies: Optional[Sequence[Strategy]] = None) -> Optional[Strategy]:
    """Look up a strategy by id; returns None when there is no such strategy

    Without ``strategies`` the lookup runs over a fresh catalog, so callers never share
    the Random character's generator. Pass ``build_catalog(rng=...)`` for seeded runs.
    """
    if strategies is None:
        strategies = build_catalog()
    for strategy in strategies:
        if strategy.id == strategy_id:
            return strategy
    return None
