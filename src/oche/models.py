"""
Data models for players, pools, matches and rounds.
"""
import uuid
from typing import Dict, List, Optional

from .exceptions import MatchValidationError, ValidationError

# Match stages
POOL = 'POOL'
CROSS = 'CROSS'
LOSERS = 'LOSERS'
STAGES = (POOL, CROSS, LOSERS)
FINALS_STAGES = (CROSS, LOSERS)

# Manual finals assignments
ELIMINATED = 'ELIMINATED'
FINALS_ASSIGNMENTS = (CROSS, LOSERS, ELIMINATED)

PLAYER_CLASSES = ('A', 'B', 'C')

# Tournament status
STATUS_SETUP = 'setup'
STATUS_POOL_PLAY = 'pool-play'
STATUS_FINALS = 'finals'
STATUS_COMPLETED = 'completed'
STATUS_ARCHIVED = 'archived'

# Draw status
DRAW_IDLE = 'idle'
DRAW_PICKING = 'picking'
DRAW_ASSIGNED = 'assigned'
DRAW_COMPLETE = 'complete'


def new_id() -> str:
    """Return a fresh opaque identifier."""
    return uuid.uuid4().hex


class Player:
    def __init__(self, name, player_class=None, id=None):
        if player_class is not None and player_class not in PLAYER_CLASSES:
            raise ValidationError(f"Invalid player class {player_class!r} for {name!r}")
        self.id = id if id is not None else new_id()
        self.name = name
        self.player_class = player_class

    def to_dict(self) -> Dict:
        return {'id': self.id, 'name': self.name, 'class': self.player_class}

    @classmethod
    def from_dict(cls, data: Dict) -> 'Player':
        return cls(name=data['name'], player_class=data.get('class'), id=data.get('id'))

    def __repr__(self):
        return f"Player(id={self.id}, name={self.name}, class={self.player_class})"


class Pool:
    def __init__(self, name, player_ids=None, boards=None, id=None):
        self.id = id if id is not None else new_id()
        self.name = name
        self.player_ids = list(player_ids) if player_ids else []
        self.boards = list(boards) if boards else []

    @property
    def board_number(self) -> Optional[int]:
        """First assigned board, or None when the pool has no board."""
        return self.boards[0] if self.boards else None

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'player_ids': list(self.player_ids),
            'boards': list(self.boards),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Pool':
        boards = data.get('boards')
        if boards is None and data.get('board_number') is not None:
            boards = [data['board_number']]
        return cls(name=data['name'], player_ids=data.get('player_ids'), boards=boards, id=data.get('id'))

    def __repr__(self):
        return f"Pool(id={self.id}, name={self.name}, players={len(self.player_ids)}, boards={self.boards})"


def _check_legs(value, label):
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int):
        raise MatchValidationError(f"{label} must be a whole number, got {value!r}")
    if value < 0:
        raise MatchValidationError(f"{label} cannot be negative, got {value}")


class Match:
    def __init__(self, round_index, stage, player1_id, player2_id, pool_id=None,
                 legs_p1=None, legs_p2=None, confirmed=False, board_number=None,
                 match_number=1, id=None):
        if stage not in STAGES:
            raise ValidationError(f"Unknown match stage {stage!r}")
        self.id = id if id is not None else new_id()
        self.round_index = round_index
        self.stage = stage
        self.pool_id = pool_id
        self.player1_id = player1_id
        self.player2_id = player2_id
        self.legs_p1 = legs_p1
        self.legs_p2 = legs_p2
        self.confirmed = confirmed
        self.board_number = board_number
        self.match_number = match_number

    @property
    def players(self):
        return (self.player1_id, self.player2_id)

    @property
    def has_score(self) -> bool:
        return self.legs_p1 is not None and self.legs_p2 is not None

    def record_legs(self, legs_p1, legs_p2):
        """Store leg counts; None means not played yet."""
        if self.confirmed:
            raise MatchValidationError(f"Match {self.id} is confirmed; unconfirm it before editing the score")
        _check_legs(legs_p1, 'legs_p1')
        _check_legs(legs_p2, 'legs_p2')
        self.legs_p1 = legs_p1
        self.legs_p2 = legs_p2

    def validate_result(self, legs_p1=None, legs_p2=None):
        """
        Check that the match (or the given override scores) can be confirmed.
        Returns the (legs_p1, legs_p2) pair that would be confirmed.
        """
        p1 = self.legs_p1 if legs_p1 is None else legs_p1
        p2 = self.legs_p2 if legs_p2 is None else legs_p2
        if p1 is None or p2 is None:
            raise MatchValidationError(f"Cannot confirm match {self.id} without both scores")
        _check_legs(p1, 'legs_p1')
        _check_legs(p2, 'legs_p2')
        if p1 == p2:
            raise MatchValidationError(f"Cannot confirm match {self.id} with a tied score {p1}-{p2}")
        return p1, p2

    def confirm(self, legs_p1=None, legs_p2=None):
        p1, p2 = self.validate_result(legs_p1, legs_p2)
        self.legs_p1 = p1
        self.legs_p2 = p2
        self.confirmed = True

    def unconfirm(self):
        self.confirmed = False

    def reset(self):
        self.legs_p1 = None
        self.legs_p2 = None
        self.confirmed = False

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'round_index': self.round_index,
            'pool_id': self.pool_id,
            'stage': self.stage,
            'player1_id': self.player1_id,
            'player2_id': self.player2_id,
            'legs_p1': self.legs_p1,
            'legs_p2': self.legs_p2,
            'confirmed': self.confirmed,
            'board_number': self.board_number,
            'match_number': self.match_number,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Match':
        return cls(
            round_index=data['round_index'],
            stage=data['stage'],
            player1_id=data['player1_id'],
            player2_id=data['player2_id'],
            pool_id=data.get('pool_id'),
            legs_p1=data.get('legs_p1'),
            legs_p2=data.get('legs_p2'),
            confirmed=data.get('confirmed', False),
            board_number=data.get('board_number'),
            match_number=data.get('match_number', 1),
            id=data.get('id'),
        )

    def __repr__(self):
        score = f"{self.legs_p1}-{self.legs_p2}" if self.has_score else "unplayed"
        return (f"Match(stage={self.stage}, round={self.round_index}, "
                f"{self.player1_id} vs {self.player2_id}, {score}, confirmed={self.confirmed})")


class Round:
    def __init__(self, index, match_ids=None, saved_all=False):
        self.index = index
        self.match_ids = list(match_ids) if match_ids else []
        self.saved_all = saved_all

    def to_dict(self) -> Dict:
        return {'index': self.index, 'match_ids': list(self.match_ids), 'saved_all': self.saved_all}

    @classmethod
    def from_dict(cls, data: Dict) -> 'Round':
        return cls(index=data['index'], match_ids=data.get('match_ids'), saved_all=data.get('saved_all', False))

    def __repr__(self):
        return f"Round(index={self.index}, matches={len(self.match_ids)}, saved_all={self.saved_all})"


class StandingsRow:
    def __init__(self, player_id, player_name, wins=0, losses=0, legs_diff=0):
        self.player_id = player_id
        self.player_name = player_name
        self.wins = wins
        self.losses = losses
        self.legs_diff = legs_diff

    @property
    def matches_played(self) -> int:
        return self.wins + self.losses

    def to_dict(self) -> Dict:
        return {
            'player_id': self.player_id,
            'player_name': self.player_name,
            'wins': self.wins,
            'losses': self.losses,
            'legs_diff': self.legs_diff,
        }

    def __eq__(self, other):
        if not isinstance(other, StandingsRow):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"StandingsRow(player={self.player_name}, wins={self.wins}, "
                f"losses={self.losses}, legs_diff={self.legs_diff})")


class Finalist:
    def __init__(self, pool_id, player_id, rank):
        self.pool_id = pool_id
        self.player_id = player_id
        self.rank = rank

    def __eq__(self, other):
        if not isinstance(other, Finalist):
            return NotImplemented
        return (self.pool_id, self.player_id, self.rank) == (other.pool_id, other.player_id, other.rank)

    def __repr__(self):
        return f"Finalist(pool={self.pool_id}, player={self.player_id}, rank={self.rank})"


class DrawState:
    def __init__(self, status=DRAW_IDLE, current_player_id=None, current_pool_id=None,
                 finals_assignments=None):
        self.status = status
        self.current_player_id = current_player_id
        self.current_pool_id = current_pool_id
        self.finals_assignments = dict(finals_assignments) if finals_assignments else {}

    def to_dict(self) -> Dict:
        return {
            'status': self.status,
            'current_player_id': self.current_player_id,
            'current_pool_id': self.current_pool_id,
            'finals_assignments': dict(self.finals_assignments),
        }

    def __repr__(self):
        return f"DrawState(status={self.status}, player={self.current_player_id}, pool={self.current_pool_id})"


def matches_by_id(matches: List[Match]) -> Dict[str, Match]:
    return {match.id: match for match in matches}
