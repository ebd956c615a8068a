"""
Pool standings derived from confirmed pool matches.
"""
import logging
from typing import Dict, Iterable, List, Optional

from .models import POOL, Match, Player, Pool, StandingsRow

logger = logging.getLogger(__name__)


def calculate_standings(players: List[Player], matches: List[Match],
                        player_ids: Optional[Iterable[str]] = None) -> List[StandingsRow]:
    """
    Calculate standings for the players in scope.

    Only confirmed POOL matches with both scores count. Players outside the
    scope get no row, but their opponents in scope are still credited.

    Ranking: wins -> legs differential -> name
    """
    players_by_id = {player.id: player for player in players}
    scope = list(player_ids) if player_ids is not None else [player.id for player in players]

    rows: Dict[str, StandingsRow] = {}
    for player_id in scope:
        player = players_by_id.get(player_id)
        if player is None:
            logger.warning(f"Player {player_id} is in scope but not on the roster")
            continue
        rows[player_id] = StandingsRow(player_id=player_id, player_name=player.name)

    for match in matches:
        if not match.confirmed or match.stage != POOL or not match.has_score:
            continue
        row1 = rows.get(match.player1_id)
        row2 = rows.get(match.player2_id)
        if row1 is None and row2 is None:
            continue

        if match.legs_p1 == match.legs_p2:
            logger.error(f"[INTEGRITY] Confirmed match {match.id} is tied {match.legs_p1}-{match.legs_p2}; not counted")
            continue

        if match.legs_p1 > match.legs_p2:
            winner, loser = row1, row2
        else:
            winner, loser = row2, row1
        margin = abs(match.legs_p1 - match.legs_p2)

        if winner is not None:
            winner.wins += 1
            winner.legs_diff += margin
        if loser is not None:
            loser.losses += 1
            loser.legs_diff -= margin

    return sorted(rows.values(), key=lambda r: (-r.wins, -r.legs_diff, r.player_name, r.player_id))


def calculate_pool_standings(pools: List[Pool], players: List[Player],
                             matches: List[Match]) -> Dict[str, List[StandingsRow]]:
    """
    Calculate standings for each pool.

    Returns: {pool_id: [StandingsRow, ...]}
    """
    return {
        pool.id: calculate_standings(players, matches, pool.player_ids)
        for pool in pools
    }
