# Command-line driver: draw pools from a roster file and print the pool schedule

import argparse
import logging
import random
import sys

from oche.drawing import assign_boards, distribute_players, live_distribute_players
from oche.exceptions import SettingsError
from oche.round_robin import generate_all_pool_schedules
from oche.settings import load_players, load_settings, validate_roster, validate_settings


def format_schedule(pools, players, matches, rounds):
    """Return the pools and round-by-round schedule as printable lines."""
    names = {player.id: player.name for player in players}
    pool_names = {pool.id: pool.name for pool in pools}
    by_id = {match.id: match for match in matches}

    lines = []
    for pool in pools:
        boards = ', '.join(str(b) for b in pool.boards) or '-'
        lines.append(f"# {pool.name} (boards: {boards})")
        for player_id in pool.player_ids:
            lines.append(f"  {names.get(player_id, player_id)}")

    for schedule_round in rounds:
        lines.append("")
        lines.append(f"Round {schedule_round.index}")
        for match_id in schedule_round.match_ids:
            match = by_id[match_id]
            board = f" [board {match.board_number}]" if match.board_number is not None else ""
            lines.append(f"  {pool_names[match.pool_id]}: "
                         f"{names[match.player1_id]} vs {names[match.player2_id]}{board}")
    return lines


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Draw darts pools and print the pool schedule")
    parser.add_argument('players', help="YAML roster file")
    parser.add_argument('--settings', default='settings.yaml', help="YAML settings file (defaults apply if missing)")
    parser.add_argument('--seed', type=int, help="Random seed for a reproducible draw")
    parser.add_argument('--live', action='store_true', help="Announce the draw one player at a time")
    parser.add_argument('-v', '--verbose', action='store_true', help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    try:
        settings = load_settings(args.settings)
        players = load_players(args.players)
    except (OSError, SettingsError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    errors = validate_settings(settings) + validate_roster(players)
    if errors:
        for error in errors:
            print(f"Error: {error}", file=sys.stderr)
        return 1

    rng = random.Random(args.seed)
    if args.live:
        def announce(player, pool_index):
            print(f"{player.name} -> pool {pool_index + 1}")

        pools = live_distribute_players(players, settings['num_pools'], settings['use_classes'],
                                        settings['live_draw_delay_seconds'], announce, rng=rng)
        print()
    else:
        pools = distribute_players(players, settings['num_pools'], settings['use_classes'], rng=rng)
    assign_boards(pools, settings['num_boards'])

    matches, rounds = generate_all_pool_schedules(pools)
    for line in format_schedule(pools, players, matches, rounds):
        print(line)
    return 0


if __name__ == '__main__':
    sys.exit(main())
