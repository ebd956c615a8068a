"""
Bracket progression for the finals stages.

In the cross finals the winner of each match advances; in the losers bracket
the loser advances. Advancing players are paired in bracket order (match 1
vs match 2, match 3 vs match 4, ...) until a round holds a single match, the
stage Final.
"""
import logging
from typing import Callable, List, Optional, Sequence

from .exceptions import ProgressionIntegrityError
from .models import CROSS, FINALS_STAGES, LOSERS, POOL, Match, new_id

logger = logging.getLogger(__name__)

# Stage states
AWAITING_FINALISTS = 'AWAITING_FINALISTS'
ROUND_GENERATED = 'ROUND_GENERATED'
ROUND_IN_PROGRESS = 'ROUND_IN_PROGRESS'
ROUND_COMPLETE = 'ROUND_COMPLETE'
STAGE_FINAL = 'STAGE_FINAL'


def _decided(match: Match) -> bool:
    if not match.confirmed or not match.has_score:
        return False
    if match.legs_p1 == match.legs_p2:
        logger.error(f"[INTEGRITY] Confirmed match {match.id} is tied {match.legs_p1}-{match.legs_p2}")
        raise ProgressionIntegrityError(f"Confirmed match {match.id} has no winner")
    return True


def match_winner(match: Match) -> Optional[str]:
    """Winner of a confirmed match, or None if the match is not decided."""
    if not _decided(match):
        return None
    return match.player1_id if match.legs_p1 > match.legs_p2 else match.player2_id


def match_loser(match: Match) -> Optional[str]:
    """Loser of a confirmed match, or None if the match is not decided."""
    if not _decided(match):
        return None
    return match.player1_id if match.legs_p1 < match.legs_p2 else match.player2_id


def advancing_player(match: Match, stage: str) -> Optional[str]:
    if stage == CROSS:
        return match_winner(match)
    if stage == LOSERS:
        return match_loser(match)
    raise ProgressionIntegrityError(f"Stage {stage!r} has no bracket progression")


def bracket_order(matches: List[Match]) -> List[Match]:
    """Matches sorted by their position in the round, then by id."""
    return sorted(matches, key=lambda m: (m.match_number, m.id))


def _check_single_round(matches: List[Match], stage: str):
    stages = {m.stage for m in matches}
    rounds = {m.round_index for m in matches}
    if stages != {stage} or len(rounds) != 1:
        logger.error(f"[INTEGRITY] Progression for {stage} got stages {sorted(stages)} and rounds {sorted(rounds)}")
        raise ProgressionIntegrityError("Progression requires the matches of exactly one round of one stage")


def advance(current_round_matches: List[Match], next_round_index: int, stage: str,
            boards: Optional[Sequence[int]] = None,
            id_factory: Callable[[], str] = new_id) -> List[Match]:
    """
    Generate the next round of a finals stage from a completed round.

    current_round_matches must all belong to one round of `stage`. Matches
    without a confirmed result contribute no player. Returns an empty list
    when fewer than two players advance (the round was the Final). With an
    odd number of advancing players the last one gets no match; callers
    should keep bracket sizes even.
    """
    if stage not in FINALS_STAGES:
        raise ProgressionIntegrityError(f"Stage {stage!r} has no bracket progression")
    if not current_round_matches:
        return []
    _check_single_round(current_round_matches, stage)

    current_index = current_round_matches[0].round_index
    if next_round_index <= current_index:
        raise ProgressionIntegrityError(
            f"Next round {next_round_index} must come after round {current_index}")

    advancing = []
    for match in bracket_order(current_round_matches):
        player_id = advancing_player(match, stage)
        if player_id is None:
            logger.warning(f"Match {match.id} has no result yet")
        else:
            advancing.append(player_id)

    if len(advancing) < 2:
        logger.info(f"Not enough advancing players ({len(advancing)}) to create {stage} round {next_round_index}")
        return []
    if len(advancing) % 2 == 1:
        logger.warning(f"{stage} round {next_round_index}: {advancing[-1]} has no opponent")

    next_matches = []
    for i in range(0, len(advancing) - 1, 2):
        number = i // 2 + 1
        board = boards[(number - 1) % len(boards)] if boards else None
        next_matches.append(Match(
            round_index=next_round_index,
            stage=stage,
            player1_id=advancing[i],
            player2_id=advancing[i + 1],
            board_number=board,
            match_number=number,
            id=id_factory(),
        ))

    logger.info(f"Generated {len(next_matches)} {stage} matches for round {next_round_index}")
    return next_matches


def stage_matches(matches: List[Match], stage: str) -> List[Match]:
    return [m for m in matches if m.stage == stage]


def round_matches(matches: List[Match], stage: str, round_index: int) -> List[Match]:
    return [m for m in matches if m.stage == stage and m.round_index == round_index]


def last_round_index(matches: List[Match], stage: str) -> Optional[int]:
    indices = [m.round_index for m in matches if m.stage == stage]
    return max(indices) if indices else None


def is_round_complete(matches: List[Match]) -> bool:
    return bool(matches) and all(m.confirmed for m in matches)


def is_stage_final(matches: List[Match]) -> bool:
    """A complete round made of a single match is the stage Final."""
    return len(matches) == 1 and is_round_complete(matches)


def generate_next_round(matches: List[Match], completed_round_index: int, stage: str,
                        boards: Optional[Sequence[int]] = None,
                        id_factory: Callable[[], str] = new_id) -> List[Match]:
    """
    Generate the round after completed_round_index unless it already exists.

    Safe to call repeatedly for the same round: once the next round has been
    generated, later calls return an empty list. Nothing is generated while
    the round is incomplete or when it was the Final.
    """
    next_index = completed_round_index + 1
    if round_matches(matches, stage, next_index):
        logger.info(f"{stage} round {next_index} already exists, skipping generation")
        return []

    current = round_matches(matches, stage, completed_round_index)
    if not is_round_complete(current):
        logger.debug(f"{stage} round {completed_round_index} is not complete yet")
        return []
    if is_stage_final(current):
        logger.info(f"{stage} Final is complete")
        return []

    return advance(current, next_index, stage, boards, id_factory)


def stage_state(matches: List[Match], stage: str) -> str:
    """Where a finals stage stands, based on its latest round."""
    last_index = last_round_index(matches, stage)
    if last_index is None:
        return AWAITING_FINALISTS

    current = round_matches(matches, stage, last_index)
    if is_stage_final(current):
        return STAGE_FINAL
    if is_round_complete(current):
        return ROUND_COMPLETE
    if any(m.confirmed for m in current):
        return ROUND_IN_PROGRESS
    return ROUND_GENERATED


def find_stage_winner(matches: List[Match], stage: str) -> Optional[str]:
    """
    The player who comes out of a finished stage: the winner of the cross
    Final, or the loser of the losers Final. None while the stage is running.
    """
    if stage_state(matches, stage) != STAGE_FINAL:
        return None
    final = round_matches(matches, stage, last_round_index(matches, stage))[0]
    return advancing_player(final, stage)


def reset_finals(matches: List[Match]) -> List[Match]:
    """Drop every finals match; pool matches are returned untouched."""
    return [m for m in matches if m.stage == POOL]
