"""
Pool drawing: distributes players into pools with a snake draft.

Players are drawn pot by pot (A, B, C when classes are used) so that every
pool receives a similar mix. The live draw produces the same assignment one
step at a time, with a delay between steps for an on-screen ceremony.
"""
import logging
import random
import time
from typing import Callable, List, Optional, Tuple

from .exceptions import SettingsError
from .models import (
    DRAW_ASSIGNED, DRAW_COMPLETE, DRAW_IDLE, DRAW_PICKING,
    DrawState, Player, Pool, new_id,
)

logger = logging.getLogger(__name__)

POOL_LETTERS = 'ABCDEFGH'


def pool_name(index: int) -> str:
    """Display name for the pool at index (0-based)."""
    if index < len(POOL_LETTERS):
        return f"Poule {POOL_LETTERS[index]}"
    return f"Poule {index + 1}"


def shuffle_players(players: List[Player], rng: random.Random) -> List[Player]:
    """Return a shuffled copy of players."""
    shuffled = list(players)
    rng.shuffle(shuffled)
    return shuffled


def create_pots(players: List[Player], use_classes: bool,
                rng: random.Random) -> Tuple[List[Player], List[Player], List[Player]]:
    """
    Split the roster into pots A, B and C.

    Without classes the whole shuffled roster is pot A. With classes each
    class is shuffled on its own and players without a class go to the end
    of pot C.
    """
    if not use_classes:
        return shuffle_players(players, rng), [], []

    pot_a = shuffle_players([p for p in players if p.player_class == 'A'], rng)
    pot_b = shuffle_players([p for p in players if p.player_class == 'B'], rng)
    pot_c = shuffle_players([p for p in players if p.player_class == 'C'], rng)
    no_class = shuffle_players([p for p in players if p.player_class is None], rng)
    return pot_a, pot_b, pot_c + no_class


def snake_pool_indices(count: int, num_pools: int) -> List[int]:
    """
    Pool index for each of `count` picks: 0..N-1, then N-1..0, and so on.
    The pool at each end receives two picks in a row.
    """
    indices = []
    current = 0
    direction = 1
    for _ in range(count):
        indices.append(current)
        if direction == 1:
            if current == num_pools - 1:
                direction = -1
            else:
                current += 1
        else:
            if current == 0:
                direction = 1
            else:
                current -= 1
    return indices


def create_empty_pools(num_pools: int, id_factory: Callable[[], str] = new_id) -> List[Pool]:
    if num_pools < 1:
        raise SettingsError(f"Cannot draw into {num_pools} pools")
    return [Pool(name=pool_name(i), id=id_factory()) for i in range(num_pools)]


class DrawProgress:
    """
    Accumulator for a draw in progress.

    Holds the pools being filled, the full pick order and how far the draw
    has got. Each call to draw_step() consumes exactly one pick, so a draw can
    be stopped and resumed at any point.
    """

    def __init__(self, pools: List[Pool], order: List[Tuple[Player, int]]):
        self.pools = pools
        self.order = order
        self.position = 0
        self.state = DrawState()

    @property
    def is_complete(self) -> bool:
        return self.position >= len(self.order)

    @property
    def remaining(self) -> int:
        return len(self.order) - self.position

    def __repr__(self):
        return f"DrawProgress(position={self.position}/{len(self.order)}, state={self.state})"


def plan_draw(players: List[Player], num_pools: int, use_classes: bool,
              rng: Optional[random.Random] = None,
              id_factory: Callable[[], str] = new_id) -> DrawProgress:
    """Shuffle the pots and fix the pick order; no player is assigned yet."""
    rng = rng or random.Random()
    pools = create_empty_pools(num_pools, id_factory)
    pot_a, pot_b, pot_c = create_pots(players, use_classes, rng)
    draw_list = pot_a + pot_b + pot_c
    order = list(zip(draw_list, snake_pool_indices(len(draw_list), num_pools)))
    return DrawProgress(pools, order)


def draw_step(progress: DrawProgress) -> Tuple[Player, int]:
    """Assign the next player of the draw and return (player, pool_index)."""
    if progress.is_complete:
        raise IndexError("Draw is already complete")

    player, pool_index = progress.order[progress.position]
    pool = progress.pools[pool_index]

    progress.state.status = DRAW_PICKING
    progress.state.current_player_id = player.id
    progress.state.current_pool_id = None

    pool.player_ids.append(player.id)
    progress.position += 1

    progress.state.status = DRAW_ASSIGNED
    progress.state.current_pool_id = pool.id
    if progress.is_complete:
        progress.state.status = DRAW_COMPLETE
    return player, pool_index


def distribute_players(players: List[Player], num_pools: int, use_classes: bool,
                       rng: Optional[random.Random] = None,
                       id_factory: Callable[[], str] = new_id) -> List[Pool]:
    """
    Distribute players into num_pools pools using a snake draft.
    Returns an empty list for an empty roster.
    """
    if not players:
        return []

    progress = plan_draw(players, num_pools, use_classes, rng, id_factory)
    while not progress.is_complete:
        draw_step(progress)
    logger.info(f"Drew {len(players)} players into {num_pools} pools")
    return progress.pools


def live_distribute_players(players: List[Player], num_pools: int, use_classes: bool,
                            delay_seconds: float,
                            on_step: Callable[[Player, int], None],
                            rng: Optional[random.Random] = None,
                            cancel_event=None,
                            progress: Optional[DrawProgress] = None,
                            id_factory: Callable[[], str] = new_id) -> List[Pool]:
    """
    Live drawing: same assignment as distribute_players, delivered one player
    at a time with delay_seconds between steps.

    on_step(player, pool_index) is called after each assignment. If
    cancel_event (a threading.Event) is set, the draw stops at the next delay
    and the pools hold only the players assigned so far. Pass a previous
    `progress` to resume a stopped draw.
    """
    if progress is None:
        if not players:
            return []
        progress = plan_draw(players, num_pools, use_classes, rng, id_factory)

    while not progress.is_complete:
        if cancel_event is not None and cancel_event.is_set():
            logger.info(f"Live draw cancelled with {progress.remaining} players left")
            break

        player, pool_index = draw_step(progress)
        on_step(player, pool_index)

        if progress.is_complete:
            break
        if cancel_event is not None:
            if cancel_event.wait(delay_seconds):
                logger.info(f"Live draw cancelled with {progress.remaining} players left")
                break
        elif delay_seconds > 0:
            time.sleep(delay_seconds)

    return progress.pools


def assign_boards(pools: List[Pool], num_boards: int) -> List[Pool]:
    """
    Deal boards 1..num_boards to the pools round-robin.

    With at least as many boards as pools every pool gets its own boards;
    with fewer boards, pools share them (pool i plays on board i % num_boards + 1).
    """
    if not pools or num_boards < 1:
        return pools

    for pool in pools:
        pool.boards = []
    if num_boards >= len(pools):
        for board in range(1, num_boards + 1):
            pools[(board - 1) % len(pools)].boards.append(board)
    else:
        for index, pool in enumerate(pools):
            pool.boards.append(index % num_boards + 1)
    return pools


def reset_draw_state(state: DrawState) -> DrawState:
    state.status = DRAW_IDLE
    state.current_player_id = None
    state.current_pool_id = None
    return state
