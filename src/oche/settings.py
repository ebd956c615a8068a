"""
Tournament settings and roster loading.

Settings live in a YAML mapping. Missing keys fall back to the defaults from
get_default_settings(), so an empty or partial file is always usable.
"""
import logging
import os
from typing import Dict, List

import yaml

from .exceptions import SettingsError, ValidationError
from .models import PLAYER_CLASSES, Player

logger = logging.getLogger(__name__)

MIN_PLAYERS = 4
MAX_PLAYERS = 24
MIN_POOLS = 2
MAX_POOLS = 8
MIN_BOARDS = 1
MAX_BOARDS = 16


def get_default_settings() -> Dict:
    """Return default settings."""
    return {
        'tournament_name': 'New Tournament',
        'num_pools': 4,
        'num_boards': 8,
        'advance_to_cross_finals': 2,
        'advance_to_losers_final': 2,
        'use_classes': False,
        'live_draw_delay_seconds': 5,
    }


def _read_yaml(path):
    with open(path, 'r', encoding='utf-8') as f:
        try:
            return yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise SettingsError(f"Failed to parse {path}: {e}") from e


def load_settings(path) -> Dict:
    """Load settings from a YAML file, merging with defaults."""
    defaults = get_default_settings()
    if not os.path.exists(path):
        logger.info(f"No settings file at {path}, using defaults")
        return defaults
    data = _read_yaml(path)
    if not data:
        return defaults
    if not isinstance(data, dict):
        raise SettingsError(f"{path} must contain a mapping of settings")
    for key, value in defaults.items():
        if key not in data:
            data[key] = value
    return data


def save_settings(settings: Dict, path):
    """Save settings to a YAML file."""
    with open(path, 'w', encoding='utf-8') as f:
        yaml.dump(settings, f, default_flow_style=False)


def _is_count(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_settings(settings: Dict) -> List[str]:
    """Return a list of problems with the settings (empty when valid)."""
    errors = []
    num_pools = settings.get('num_pools')
    if not _is_count(num_pools) or not MIN_POOLS <= num_pools <= MAX_POOLS:
        errors.append(f"num_pools must be between {MIN_POOLS} and {MAX_POOLS}")
    num_boards = settings.get('num_boards')
    if not _is_count(num_boards) or not MIN_BOARDS <= num_boards <= MAX_BOARDS:
        errors.append(f"num_boards must be between {MIN_BOARDS} and {MAX_BOARDS}")
    for key in ('advance_to_cross_finals', 'advance_to_losers_final'):
        value = settings.get(key)
        if not _is_count(value) or value < 0:
            errors.append(f"{key} must be a whole number of at least 0")
    delay = settings.get('live_draw_delay_seconds')
    if isinstance(delay, bool) or not isinstance(delay, (int, float)) or delay < 0:
        errors.append("live_draw_delay_seconds must be a number of at least 0")
    return errors


def validate_roster(players: List[Player]) -> List[str]:
    """Return a list of problems with the roster (empty when valid)."""
    errors = []
    if not MIN_PLAYERS <= len(players) <= MAX_PLAYERS:
        errors.append(f"A tournament needs between {MIN_PLAYERS} and {MAX_PLAYERS} players, got {len(players)}")
    seen = set()
    for player in players:
        if player.id in seen:
            errors.append(f"Duplicate player id {player.id}")
        seen.add(player.id)
        if not player.name or not str(player.name).strip():
            errors.append(f"Player {player.id} has no name")
        if player.player_class is not None and player.player_class not in PLAYER_CLASSES:
            errors.append(f"Player {player.name} has invalid class {player.player_class!r}")
    return errors


def load_players(path) -> List[Player]:
    """
    Load a roster from YAML.

    Two layouts are accepted:
    - a list of mappings with 'name' and optional 'class' and 'id'
    - a mapping of class ('A', 'B', 'C' or 'none') to a list of names
    """
    data = _read_yaml(path)
    if not data:
        return []

    players = []
    try:
        if isinstance(data, list):
            for entry in data:
                if isinstance(entry, str):
                    players.append(Player(name=entry))
                else:
                    players.append(Player(name=entry['name'], player_class=entry.get('class'), id=entry.get('id')))
        elif isinstance(data, dict):
            for player_class, names in data.items():
                label = None if player_class in (None, 'none', 'None') else str(player_class)
                for name in names or []:
                    players.append(Player(name=name, player_class=label))
        else:
            raise SettingsError(f"{path} must contain a list or a mapping of players")
    except (KeyError, TypeError) as e:
        raise SettingsError(f"Malformed player entry in {path}: {e}") from e
    except ValidationError as e:
        raise SettingsError(str(e)) from e

    logger.debug(f"Loaded {len(players)} players from {path}")
    return players
