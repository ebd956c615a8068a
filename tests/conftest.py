"""
Shared pytest fixtures for the darts tournament core tests.

Running tests:
    pytest tests/
"""
import pytest
import sys
import os
import random

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from oche.models import Player, Pool, Match, POOL


def make_match(player1, player2, legs_p1=None, legs_p2=None, confirmed=None, stage=POOL,
               round_index=1, match_number=1, pool_id=None, id=None):
    """Build a match; scored matches are confirmed unless told otherwise."""
    if confirmed is None:
        confirmed = legs_p1 is not None and legs_p2 is not None
    return Match(
        round_index=round_index,
        stage=stage,
        player1_id=player1,
        player2_id=player2,
        pool_id=pool_id,
        legs_p1=legs_p1,
        legs_p2=legs_p2,
        confirmed=confirmed,
        match_number=match_number,
        id=id,
    )


class SequentialIds:
    """Deterministic id factory: m001, m002, ..."""

    def __init__(self, prefix='m'):
        self.prefix = prefix
        self.count = 0

    def __call__(self):
        self.count += 1
        return f"{self.prefix}{self.count:03d}"


@pytest.fixture
def rng():
    """Seeded random source for reproducible draws."""
    return random.Random(42)


@pytest.fixture
def sample_players():
    """Eight players without classes, ids p1..p8."""
    return [Player(name=f"Player {i}", id=f"p{i}") for i in range(1, 9)]


@pytest.fixture
def classed_players():
    """Twelve players: four of class A, four of class B, two of class C, two without class."""
    players = []
    for i in range(1, 5):
        players.append(Player(name=f"Alpha {i}", player_class='A', id=f"a{i}"))
    for i in range(1, 5):
        players.append(Player(name=f"Bravo {i}", player_class='B', id=f"b{i}"))
    for i in range(1, 3):
        players.append(Player(name=f"Charlie {i}", player_class='C', id=f"c{i}"))
    for i in range(1, 3):
        players.append(Player(name=f"Nobody {i}", id=f"n{i}"))
    return players


@pytest.fixture
def four_pools():
    """Four pools of three players each, ids A..D."""
    return [
        Pool(name=f"Poule {letter}", id=letter,
             player_ids=[f"{letter}{i}" for i in range(1, 4)])
        for letter in "ABCD"
    ]


@pytest.fixture
def id_factory():
    return SequentialIds()
