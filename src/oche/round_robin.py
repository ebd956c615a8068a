"""
Round-robin scheduling for pool play using the circle method.
"""
import logging
from typing import Callable, Dict, List, Tuple

from .exceptions import ScheduleIntegrityError
from .models import POOL, Match, Pool, Round, new_id

logger = logging.getLogger(__name__)

BYE = 'BYE'


def circle_rounds(players: List[str]) -> List[List[Tuple[str, str]]]:
    """
    Seat pairings for every round of the circle method.

    Seat 0 stays fixed while the other seats rotate clockwise by one each
    round; seat i plays seat n-1-i. An odd list gets a BYE seat, so pairings
    may contain BYE.
    """
    seats = list(players)
    if len(seats) % 2 == 1:
        seats.append(BYE)
    n = len(seats)

    rounds = []
    rotation = seats
    for round_num in range(n - 1):
        if round_num > 0:
            rotation = [rotation[0], rotation[-1]] + rotation[1:-1]
        rounds.append([(rotation[i], rotation[n - 1 - i]) for i in range(n // 2)])
    return rounds


def generate_round_robin_matches(pool: Pool,
                                 id_factory: Callable[[], str] = new_id) -> Tuple[List[Match], List[Round]]:
    """
    Generate the round-robin schedule for one pool.

    Returns (matches, rounds). Every pair of pool players meets exactly once
    and nobody plays twice in a round. Pool boards are dealt to matches in
    creation order across the whole schedule.
    """
    players = list(pool.player_ids)
    if len(players) < 2:
        return [], []

    registered = set(players)
    matches = []
    rounds = []
    faults = []

    for round_num, pairings in enumerate(circle_rounds(players), start=1):
        round_match_ids = []
        for player1, player2 in pairings:
            if player1 == BYE or player2 == BYE:
                continue

            if player1 not in registered or player2 not in registered:
                logger.error(f"[INTEGRITY] Pairing {player1} vs {player2} references a player outside pool {pool.id}")
                faults.append((player1, player2))
                continue

            board = pool.boards[len(matches) % len(pool.boards)] if pool.boards else None
            match = Match(
                round_index=round_num,
                stage=POOL,
                player1_id=player1,
                player2_id=player2,
                pool_id=pool.id,
                board_number=board,
                match_number=len(round_match_ids) + 1,
                id=id_factory(),
            )
            matches.append(match)
            round_match_ids.append(match.id)

        if round_match_ids:
            rounds.append(Round(index=round_num, match_ids=round_match_ids))

    if faults:
        raise ScheduleIntegrityError(f"Schedule for pool {pool.name} aborted: {len(faults)} invalid pairings")

    logger.debug(f"Pool {pool.name}: {len(matches)} matches over {len(rounds)} rounds")
    return matches, rounds


def generate_all_pool_schedules(pools: List[Pool],
                                id_factory: Callable[[], str] = new_id) -> Tuple[List[Match], List[Round]]:
    """
    Generate schedules for every pool.

    Rounds with the same index in different pools are played at the same
    time, so they are merged into a single Round.
    """
    all_matches = []
    rounds_by_index: Dict[int, Round] = {}

    for pool in pools:
        matches, rounds = generate_round_robin_matches(pool, id_factory)
        all_matches.extend(matches)
        for pool_round in rounds:
            if pool_round.index not in rounds_by_index:
                rounds_by_index[pool_round.index] = Round(index=pool_round.index)
            rounds_by_index[pool_round.index].match_ids.extend(pool_round.match_ids)

    all_rounds = [rounds_by_index[index] for index in sorted(rounds_by_index)]
    logger.info(f"Scheduled {len(all_matches)} pool matches in {len(all_rounds)} rounds")
    return all_matches, all_rounds


def save_round(matches: List[Match], rounds: List[Round], round_index: int) -> bool:
    """
    Confirm every pool match of a round.

    Returns False, without changing anything, if any match of the round is
    still missing a score. Invalid scores (ties, negatives) raise
    MatchValidationError before any match is confirmed.
    """
    round_matches = [m for m in matches if m.stage == POOL and m.round_index == round_index]
    if not all(m.has_score for m in round_matches):
        return False

    for match in round_matches:
        match.validate_result()
    for match in round_matches:
        match.confirm()

    for pool_round in rounds:
        if pool_round.index == round_index:
            pool_round.saved_all = True
    return True


def reset_pool_phase(matches: List[Match], rounds: List[Round]):
    """Clear all pool results; finals matches are left alone."""
    for match in matches:
        if match.stage == POOL:
            match.reset()
    for pool_round in rounds:
        pool_round.saved_all = False
