"""
Tournament coordinator: runs a tournament from the draw to the final.

Tournament holds the roster, settings and match log in memory and applies
each step of the flow (draw, pool play, finals, progression, resets). It
does no storage itself; callers persist the data it exposes and must
serialize calls for the same tournament.
"""
import logging
from typing import Callable, Dict, List, Optional

from .drawing import assign_boards, distribute_players, live_distribute_players, plan_draw, reset_draw_state
from .exceptions import ValidationError
from .finals import generate_bracket, select_finalists
from .models import (
    CROSS, FINALS_ASSIGNMENTS, FINALS_STAGES, LOSERS, POOL,
    STATUS_COMPLETED, STATUS_FINALS, STATUS_POOL_PLAY, STATUS_SETUP,
    DrawState, Match, Player, Pool, Round, StandingsRow, matches_by_id,
)
from .progression import find_stage_winner, generate_next_round, is_stage_final, reset_finals, round_matches
from .round_robin import generate_all_pool_schedules, reset_pool_phase, save_round
from .settings import get_default_settings
from .standings import calculate_pool_standings, calculate_standings

logger = logging.getLogger(__name__)


class Tournament:
    def __init__(self, players: List[Player], settings: Optional[Dict] = None, id=None):
        self.id = id
        self.settings = get_default_settings()
        if settings:
            self.settings.update(settings)
        self.players = list(players)
        self.pools: List[Pool] = []
        self.matches: List[Match] = []
        self.rounds: List[Round] = []
        self.status = STATUS_SETUP
        self.draw_state = DrawState()

    def __repr__(self):
        return (f"Tournament(id={self.id}, status={self.status}, players={len(self.players)}, "
                f"pools={len(self.pools)}, matches={len(self.matches)})")

    # Draw

    def _check_setup(self):
        if self.status != STATUS_SETUP:
            raise ValidationError(f"Pools can only be drawn during setup, tournament is in {self.status}")

    def draw_pools(self, rng=None) -> List[Pool]:
        """Draw all players into pools at once and assign boards."""
        self._check_setup()
        self.pools = distribute_players(self.players, self.settings['num_pools'],
                                        self.settings['use_classes'], rng)
        assign_boards(self.pools, self.settings['num_boards'])
        reset_draw_state(self.draw_state)
        return self.pools

    def live_draw(self, on_step: Callable[[Player, int], None], rng=None,
                  cancel_event=None, delay_seconds: Optional[float] = None) -> List[Pool]:
        """
        Draw players one at a time for an on-screen ceremony.

        draw_state follows the draw so viewers can show who was picked and
        where they went. A cancelled draw leaves the partially filled pools.
        """
        self._check_setup()
        if delay_seconds is None:
            delay_seconds = self.settings['live_draw_delay_seconds']
        if not self.players:
            self.pools = []
            return self.pools

        progress = plan_draw(self.players, self.settings['num_pools'], self.settings['use_classes'], rng)
        progress.state = self.draw_state
        progress.state.finals_assignments.clear()
        assign_boards(progress.pools, self.settings['num_boards'])
        self.pools = progress.pools
        live_distribute_players(self.players, self.settings['num_pools'], self.settings['use_classes'],
                                delay_seconds, on_step, cancel_event=cancel_event, progress=progress)
        return self.pools

    # Pool play

    def start_pool_play(self):
        """Schedule round-robin play in every pool."""
        self._check_setup()
        if not self.pools:
            raise ValidationError("Draw the pools before starting pool play")
        self.matches, self.rounds = generate_all_pool_schedules(self.pools)
        self.status = STATUS_POOL_PLAY
        logger.info(f"Tournament {self.id} started pool play with {len(self.matches)} matches")

    def get_match(self, match_id: str) -> Match:
        try:
            return matches_by_id(self.matches)[match_id]
        except KeyError:
            raise KeyError(f"Match {match_id} not found") from None

    def record_score(self, match_id: str, legs_p1, legs_p2) -> Match:
        match = self.get_match(match_id)
        match.record_legs(legs_p1, legs_p2)
        return match

    def save_round(self, round_index: int) -> bool:
        """Confirm all pool matches of a round; False if any score is missing."""
        return save_round(self.matches, self.rounds, round_index)

    def standings(self, pool_id: Optional[str] = None) -> List[StandingsRow]:
        if pool_id is None:
            return calculate_standings(self.players, self.matches)
        pool = next((p for p in self.pools if p.id == pool_id), None)
        if pool is None:
            raise KeyError(f"Pool {pool_id} not found")
        return calculate_standings(self.players, self.matches, pool.player_ids)

    def pool_standings(self) -> Dict[str, List[StandingsRow]]:
        return calculate_pool_standings(self.pools, self.players, self.matches)

    # Finals

    def set_finals_assignment(self, player_id: str, assignment: Optional[str]):
        """Force a player into CROSS, LOSERS or ELIMINATED; None restores the default."""
        if assignment is not None and assignment not in FINALS_ASSIGNMENTS:
            raise ValidationError(f"Unknown finals assignment {assignment!r}")
        if assignment is None:
            self.draw_state.finals_assignments.pop(player_id, None)
        else:
            self.draw_state.finals_assignments[player_id] = assignment

    def finals_matches(self) -> List[Match]:
        return [m for m in self.matches if m.stage in FINALS_STAGES]

    def generate_finals(self) -> List[Match]:
        """
        Select finalists and create the first round of both brackets.
        Does nothing if finals matches already exist.
        """
        if self.finals_matches():
            logger.info(f"Tournament {self.id} already has finals matches, skipping generation")
            return []

        cross_finalists, losers_finalists = select_finalists(
            self.pools,
            self.pool_standings(),
            self.settings['advance_to_cross_finals'],
            self.settings['advance_to_losers_final'],
            self.draw_state.finals_assignments,
        )
        new_matches = generate_bracket(cross_finalists, CROSS)
        if self.settings['advance_to_losers_final'] > 0:
            new_matches += generate_bracket(losers_finalists, LOSERS)

        self.matches.extend(new_matches)
        self.status = STATUS_FINALS
        return new_matches

    def confirm_match(self, match_id: str, legs_p1=None, legs_p2=None) -> List[Match]:
        """
        Confirm a match result and move its bracket forward.

        When the confirmed match completes a finals round, the next round is
        generated (once). Confirming the cross Final completes the
        tournament. Returns any newly created matches.
        """
        match = self.get_match(match_id)
        match.confirm(legs_p1, legs_p2)
        if match.stage == POOL:
            return []

        current = round_matches(self.matches, match.stage, match.round_index)
        if not all(m.confirmed for m in current):
            waiting = sum(1 for m in current if not m.confirmed)
            logger.debug(f"{match.stage} round {match.round_index}: waiting for {waiting} more matches")
            return []

        if is_stage_final(current):
            if match.stage == CROSS:
                self.status = STATUS_COMPLETED
                logger.info(f"Tournament {self.id} complete, champion {self.champion()}")
            else:
                logger.info(f"Tournament {self.id} losers bracket complete")
            return []

        next_matches = generate_next_round(self.matches, match.round_index, match.stage)
        self.matches.extend(next_matches)
        return next_matches

    def unconfirm_match(self, match_id: str) -> Match:
        match = self.get_match(match_id)
        match.unconfirm()
        return match

    def champion(self) -> Optional[str]:
        return find_stage_winner(self.matches, CROSS)

    def losers_champion(self) -> Optional[str]:
        return find_stage_winner(self.matches, LOSERS)

    # Resets

    def reset_finals(self):
        """Discard both brackets so they can be generated again."""
        self.matches = reset_finals(self.matches)
        if self.status in (STATUS_FINALS, STATUS_COMPLETED):
            self.status = STATUS_POOL_PLAY

    def reset_pool_phase(self):
        """
        Clear pool results, or rebuild the pool schedule if none exists.
        Finals matches are dropped since they were seeded from the old standings.
        """
        self.matches = reset_finals(self.matches)
        if self.matches:
            reset_pool_phase(self.matches, self.rounds)
        else:
            self.matches, self.rounds = generate_all_pool_schedules(self.pools)
        if self.status in (STATUS_FINALS, STATUS_COMPLETED):
            self.status = STATUS_POOL_PLAY
