"""
Finals: finalist selection from pool standings and round-1 bracket seeding.

Two brackets follow pool play:
- Cross finals: the top finishers of each pool, match winners advance
- Losers bracket: the bottom finishers of each pool, match losers advance
"""
import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .exceptions import ValidationError
from .models import (
    CROSS, ELIMINATED, FINALS_ASSIGNMENTS, FINALS_STAGES, LOSERS,
    Finalist, Match, Pool, StandingsRow, new_id,
)

logger = logging.getLogger(__name__)


def select_finalists(pools: List[Pool], standings_by_pool: Dict[str, List[StandingsRow]],
                     top_count: int, bottom_count: int,
                     manual_assignments: Optional[Dict[str, Optional[str]]] = None
                     ) -> Tuple[List[Finalist], List[Finalist]]:
    """
    Split pool finishers into cross finalists and losers-bracket finalists.

    Per pool, the first top_count players go to the cross finals and the last
    bottom_count players to the losers bracket. A player already in the cross
    finals is never added to the losers bracket when the two windows overlap.

    A manual assignment (CROSS, LOSERS or ELIMINATED) replaces the automatic
    outcome for that player. Assignments are not checked against top_count or
    bottom_count; keeping them consistent is up to the caller.

    Returns (cross_finalists, losers_finalists).
    """
    manual_assignments = manual_assignments or {}
    cross_finalists = []
    losers_finalists = []
    cross_player_ids = set()

    for pool in pools:
        standings = standings_by_pool.get(pool.id, [])

        for index, row in enumerate(standings):
            player_id = row.player_id
            finalist = Finalist(pool_id=pool.id, player_id=player_id, rank=index + 1)
            assignment = manual_assignments.get(player_id)

            if assignment is not None and assignment not in FINALS_ASSIGNMENTS:
                raise ValidationError(f"Unknown finals assignment {assignment!r} for player {player_id}")

            if assignment == CROSS:
                cross_finalists.append(finalist)
                cross_player_ids.add(player_id)
            elif assignment == LOSERS:
                losers_finalists.append(finalist)
            elif assignment == ELIMINATED:
                continue
            else:
                is_top = index < top_count
                is_bottom = index >= len(standings) - bottom_count
                if is_top:
                    cross_finalists.append(finalist)
                    cross_player_ids.add(player_id)
                elif is_bottom and player_id not in cross_player_ids:
                    losers_finalists.append(finalist)

    logger.info(f"Selected {len(cross_finalists)} cross finalists and {len(losers_finalists)} losers finalists")
    return cross_finalists, losers_finalists


def _pair_rotated(rank1: List[Finalist], rank2: List[Finalist]) -> List[Tuple[Finalist, Finalist]]:
    """
    Pair pool winners with runners-up of the next pool.
    With pools A, B, C, D: A1-B2, B1-C2, C1-D2, D1-A2.
    """
    rotated = rank2[1:] + rank2[:1]
    return list(zip(rank1, rotated))


def _pair_greedy(finalists: List[Finalist]) -> List[Tuple[Finalist, Finalist]]:
    """Pair each finalist with the first later finalist from another pool, if any."""
    remaining = list(finalists)
    pairs = []
    while len(remaining) >= 2:
        first = remaining.pop(0)
        opponent_index = next(
            (i for i, f in enumerate(remaining) if f.pool_id != first.pool_id),
            0,
        )
        pairs.append((first, remaining.pop(opponent_index)))
    if remaining:
        logger.warning(f"Odd number of finalists: {remaining[0].player_id} has no first-round opponent")
    return pairs


def _same_pool_count(pairs: List[Tuple[Finalist, Finalist]]) -> int:
    return sum(1 for first, second in pairs if first.pool_id == second.pool_id)


def generate_bracket(finalists: List[Finalist], stage: str, boards: Optional[Sequence[int]] = None,
                     id_factory: Callable[[], str] = new_id) -> List[Match]:
    """
    Generate round-1 matches for a finals bracket.

    Players from the same pool are kept apart whenever possible. Pairings
    that cannot avoid a same-pool meeting are placed after all cross-pool
    pairings.

    For the cross finals with as many pool winners as runners-up, winners are
    paired with the runner-up of the next pool. Everyone else is paired
    greedily in finalist order. When manual assignments leave the rotation
    with more same-pool meetings than greedy pairing, greedy pairing is used.

    With an odd number of finalists the last one gets no match; callers
    should keep bracket sizes even.
    """
    if stage not in FINALS_STAGES:
        raise ValidationError(f"Cannot generate a bracket for stage {stage!r}")
    if len(finalists) < 2:
        return []

    rank1 = [f for f in finalists if f.rank == 1]
    rank2 = [f for f in finalists if f.rank == 2]

    if stage == CROSS and rank1 and len(rank1) == len(rank2):
        pairs = _pair_rotated(rank1, rank2)
        rest = [f for f in finalists if f.rank not in (1, 2)]
        pairs += _pair_greedy(rest)
        if _same_pool_count(pairs):
            greedy = _pair_greedy(finalists)
            if _same_pool_count(greedy) < _same_pool_count(pairs):
                logger.info(f"{stage} round 1: rotation would repeat a pool, pairing greedily")
                pairs = greedy
    else:
        pairs = _pair_greedy(finalists)

    cross_pool = [pair for pair in pairs if pair[0].pool_id != pair[1].pool_id]
    same_pool = [pair for pair in pairs if pair[0].pool_id == pair[1].pool_id]
    if same_pool:
        logger.info(f"{stage} round 1: {len(same_pool)} unavoidable same-pool pairings")

    matches = []
    for number, (first, second) in enumerate(cross_pool + same_pool, start=1):
        board = boards[(number - 1) % len(boards)] if boards else None
        matches.append(Match(
            round_index=1,
            stage=stage,
            player1_id=first.player_id,
            player2_id=second.player_id,
            board_number=board,
            match_number=number,
            id=id_factory(),
        ))

    logger.info(f"Generated {len(matches)} {stage} matches for round 1")
    return matches


def generate_cross_finals_matches(finalists: List[Finalist], boards: Optional[Sequence[int]] = None) -> List[Match]:
    return generate_bracket(finalists, CROSS, boards)


def generate_losers_bracket_matches(finalists: List[Finalist], boards: Optional[Sequence[int]] = None) -> List[Match]:
    return generate_bracket(finalists, LOSERS, boards)
