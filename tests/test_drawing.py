"""
Unit tests for pool drawing (snake draft, live draw, board assignment).
"""
import pytest
import sys
import os
import random
import threading

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from oche.drawing import (
    assign_boards,
    create_pots,
    distribute_players,
    draw_step,
    live_distribute_players,
    plan_draw,
    pool_name,
    snake_pool_indices,
)
from oche.exceptions import SettingsError
from oche.models import Pool, DRAW_ASSIGNED, DRAW_COMPLETE, DRAW_IDLE


def pool_members(pools):
    return [list(pool.player_ids) for pool in pools]


class TestSnakeOrder:
    """Tests for the snake draft order."""

    def test_snake_eight_into_four(self):
        """Test forward then backward traversal."""
        assert snake_pool_indices(8, 4) == [0, 1, 2, 3, 3, 2, 1, 0]

    def test_snake_continues_forward(self):
        """Test that direction changes again at the first pool."""
        assert snake_pool_indices(10, 4) == [0, 1, 2, 3, 3, 2, 1, 0, 0, 1]

    def test_snake_single_pool(self):
        """Test that a single pool takes every pick."""
        assert snake_pool_indices(3, 1) == [0, 0, 0]

    def test_snake_empty(self):
        """Test no picks."""
        assert snake_pool_indices(0, 4) == []

    @pytest.mark.parametrize("num_pools", [2, 3, 4, 5, 8])
    def test_snake_balance(self, num_pools):
        """Test that pool sizes never differ by more than one."""
        for roster_size in range(0, 30):
            indices = snake_pool_indices(roster_size, num_pools)
            sizes = [indices.count(i) for i in range(num_pools)]
            assert max(sizes) - min(sizes) <= 1


class TestPots:
    """Tests for splitting players into pots."""

    def test_pots_without_classes(self, classed_players, rng):
        """Test that everybody lands in one pot."""
        pot_a, pot_b, pot_c = create_pots(classed_players, False, rng)
        assert len(pot_a) == len(classed_players)
        assert pot_b == [] and pot_c == []

    def test_pots_with_classes(self, classed_players, rng):
        """Test that classless players are appended to pot C."""
        pot_a, pot_b, pot_c = create_pots(classed_players, True, rng)
        assert {p.id for p in pot_a} == {'a1', 'a2', 'a3', 'a4'}
        assert {p.id for p in pot_b} == {'b1', 'b2', 'b3', 'b4'}
        assert {p.id for p in pot_c[:2]} == {'c1', 'c2'}
        assert {p.id for p in pot_c[2:]} == {'n1', 'n2'}

    def test_pots_do_not_modify_roster(self, sample_players, rng):
        """Test that the caller's list keeps its order."""
        before = [p.id for p in sample_players]
        create_pots(sample_players, False, rng)
        assert [p.id for p in sample_players] == before


class TestDistributePlayers:
    """Tests for the non-live draw."""

    def test_empty_roster(self):
        """Test that an empty roster yields no pools."""
        assert distribute_players([], 4, False) == []

    def test_invalid_pool_count(self, sample_players):
        """Test that at least one pool is required."""
        with pytest.raises(SettingsError):
            distribute_players(sample_players, 0, False)

    def test_pool_names(self, sample_players, rng):
        """Test that pools are lettered."""
        pools = distribute_players(sample_players, 4, False, rng)
        assert [p.name for p in pools] == ["Poule A", "Poule B", "Poule C", "Poule D"]

    def test_pool_name_beyond_letters(self):
        """Test the fallback name when letters run out."""
        assert pool_name(8) == "Poule 9"

    def test_exact_assignment_with_seed(self, sample_players):
        """Test the exact snake assignment for a known shuffle."""
        expected_order = list(sample_players)
        random.Random(7).shuffle(expected_order)

        pools = distribute_players(sample_players, 4, False, random.Random(7))

        ids = [p.id for p in expected_order]
        assert pool_members(pools) == [
            [ids[0], ids[7]],
            [ids[1], ids[6]],
            [ids[2], ids[5]],
            [ids[3], ids[4]],
        ]

    def test_every_player_assigned_once(self, classed_players, rng):
        """Test that all players are drawn exactly once."""
        pools = distribute_players(classed_players, 3, True, rng)
        assigned = [pid for pool in pools for pid in pool.player_ids]
        assert sorted(assigned) == sorted(p.id for p in classed_players)

    def test_classes_spread_over_pools(self, classed_players, rng):
        """Test that each pool gets one player of each pot."""
        pools = distribute_players(classed_players, 4, True, rng)
        for pool in pools:
            prefixes = sorted(pid[0] for pid in pool.player_ids)
            assert len(pool.player_ids) == 3
            assert prefixes[0] == 'a'
            assert prefixes[1] == 'b'
            assert prefixes[2] in ('c', 'n')

    def test_classless_players_drawn_last(self, classed_players, rng):
        """Test that class C players precede classless ones in the draw."""
        pools = distribute_players(classed_players, 4, True, rng)
        assert pools[0].player_ids[2][0] == 'c'
        assert pools[1].player_ids[2][0] == 'c'
        assert pools[2].player_ids[2][0] == 'n'
        assert pools[3].player_ids[2][0] == 'n'

    def test_pool_ids_from_factory(self, sample_players, rng, id_factory):
        """Test that pool ids come from the injected factory."""
        pools = distribute_players(sample_players, 2, False, rng, id_factory=id_factory)
        assert [p.id for p in pools] == ['m001', 'm002']


class TestLiveDraw:
    """Tests for the step-by-step live draw."""

    def test_live_matches_instant_draw(self, classed_players):
        """Test that the live draw gives the same pools for the same seed."""
        instant = distribute_players(classed_players, 4, True, random.Random(3))
        steps = []
        live = live_distribute_players(classed_players, 4, True, 0,
                                       lambda player, index: steps.append((player.id, index)),
                                       rng=random.Random(3))
        assert pool_members(live) == pool_members(instant)
        assert len(steps) == len(classed_players)

    def test_step_callback_order(self, sample_players):
        """Test that steps follow the snake order."""
        steps = []
        live_distribute_players(sample_players, 4, False, 0,
                                lambda player, index: steps.append(index),
                                rng=random.Random(1))
        assert steps == [0, 1, 2, 3, 3, 2, 1, 0]

    def test_live_empty_roster(self):
        """Test that an empty live draw yields no pools and no steps."""
        steps = []
        assert live_distribute_players([], 4, False, 0, lambda p, i: steps.append(p)) == []
        assert steps == []

    def test_delay_between_steps(self, sample_players, monkeypatch):
        """Test that the delay is applied between steps but not after the last."""
        sleeps = []
        monkeypatch.setattr('oche.drawing.time.sleep', lambda seconds: sleeps.append(seconds))
        live_distribute_players(sample_players, 2, False, 1.5, lambda p, i: None, rng=random.Random(1))
        assert sleeps == [1.5] * (len(sample_players) - 1)

    def test_cancel_keeps_partial_pools(self, sample_players):
        """Test that cancelling leaves only the assigned players in the pools."""
        cancel = threading.Event()
        steps = []

        def on_step(player, index):
            steps.append(player.id)
            if len(steps) == 3:
                cancel.set()

        pools = live_distribute_players(sample_players, 4, False, 0, on_step,
                                        rng=random.Random(5), cancel_event=cancel)
        assigned = [pid for pool in pools for pid in pool.player_ids]
        assert sorted(assigned) == sorted(steps)
        assert len(assigned) == 3

    def test_cancel_before_start(self, sample_players):
        """Test that an already cancelled draw assigns nobody."""
        cancel = threading.Event()
        cancel.set()
        pools = live_distribute_players(sample_players, 4, False, 0, lambda p, i: None,
                                        rng=random.Random(5), cancel_event=cancel)
        assert all(pool.player_ids == [] for pool in pools)

    def test_resume_after_cancel(self, sample_players):
        """Test that a stopped draw can be resumed to the same result."""
        instant = distribute_players(sample_players, 4, False, random.Random(9))

        progress = plan_draw(sample_players, 4, False, random.Random(9))
        cancel = threading.Event()

        def on_step(player, index):
            if progress.position == 5:
                cancel.set()

        live_distribute_players(sample_players, 4, False, 0, on_step,
                                cancel_event=cancel, progress=progress)
        assert progress.remaining == 3

        pools = live_distribute_players(sample_players, 4, False, 0, lambda p, i: None,
                                        progress=progress)
        assert progress.is_complete
        assert pool_members(pools) == pool_members(instant)


class TestDrawProgress:
    """Tests for the draw accumulator and draw state."""

    def test_plan_assigns_nobody(self, sample_players, rng):
        """Test that planning only fixes the order."""
        progress = plan_draw(sample_players, 4, False, rng)
        assert progress.position == 0
        assert progress.remaining == 8
        assert progress.state.status == DRAW_IDLE
        assert all(pool.player_ids == [] for pool in progress.pools)

    def test_draw_step_updates_state(self, sample_players, rng):
        """Test that each step records the picked player and pool."""
        progress = plan_draw(sample_players, 4, False, rng)
        player, index = draw_step(progress)
        assert progress.state.status == DRAW_ASSIGNED
        assert progress.state.current_player_id == player.id
        assert progress.state.current_pool_id == progress.pools[index].id
        assert progress.pools[index].player_ids == [player.id]

    def test_last_step_completes(self, sample_players, rng):
        """Test that the final step marks the draw complete."""
        progress = plan_draw(sample_players, 4, False, rng)
        while not progress.is_complete:
            draw_step(progress)
        assert progress.state.status == DRAW_COMPLETE

    def test_step_after_complete_fails(self, sample_players, rng):
        """Test that a finished draw cannot step further."""
        progress = plan_draw(sample_players, 4, False, rng)
        while not progress.is_complete:
            draw_step(progress)
        with pytest.raises(IndexError):
            draw_step(progress)


class TestAssignBoards:
    """Tests for dealing boards to pools."""

    def make_pools(self, count):
        return [Pool(name=pool_name(i), id=str(i)) for i in range(count)]

    def test_two_boards_per_pool(self):
        """Test 8 boards over 4 pools."""
        pools = assign_boards(self.make_pools(4), 8)
        assert [p.boards for p in pools] == [[1, 5], [2, 6], [3, 7], [4, 8]]

    def test_uneven_boards(self):
        """Test 6 boards over 4 pools."""
        pools = assign_boards(self.make_pools(4), 6)
        assert [p.boards for p in pools] == [[1, 5], [2, 6], [3], [4]]

    def test_shared_boards(self):
        """Test fewer boards than pools."""
        pools = assign_boards(self.make_pools(4), 2)
        assert [p.boards for p in pools] == [[1], [2], [1], [2]]

    def test_reassign_replaces_boards(self):
        """Test that assigning again does not accumulate boards."""
        pools = assign_boards(self.make_pools(2), 2)
        assign_boards(pools, 4)
        assert [p.boards for p in pools] == [[1, 3], [2, 4]]
