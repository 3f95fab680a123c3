import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
import yaml

from games.steps import SearchMode

logger = logging.getLogger(__name__)

DEFAULT_GAME_CONFIG = Path(__file__).with_name('countdown.yaml')


@dataclass
class GameSettings:
    large: List[int] = field(default_factory=lambda: [100, 75, 50, 25])
    small: List[int] = field(default_factory=lambda: [10, 10, 9, 9, 8, 8, 7, 7, 6, 6,
                                                      5, 5, 4, 4, 3, 3, 2, 2, 1, 1])
    tile_count: int = 6
    target_min: int = 101
    target_max: int = 999
    round_seconds: int = 30
    mode: SearchMode = SearchMode.FIRST_MATCH

    @property
    def pool(self) -> List[int]:
        return self.large + self.small


class Config:
    def __init__(self, require_discord: bool = False, game_config: Optional[str] = None):
        self.discord_token = os.getenv('DISCORD_TOKEN')
        self.game_config_path = Path(game_config or os.getenv('COUNTDOWN_CONFIG') or DEFAULT_GAME_CONFIG)
        self.game = self._load_game_settings()

        # Validate required environment variables
        if require_discord and not self.discord_token:
            raise ValueError("Missing required environment variables")

    def _load_game_settings(self) -> GameSettings:
        try:
            with open(self.game_config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"YAML parsing error in {self.game_config_path}: {e}")
            raise
        except OSError as e:
            raise ValueError(f"Failed to load game config: {e}")

        if not data:
            logger.warning(f"Empty game config {self.game_config_path}, using defaults")
            return GameSettings()

        if not isinstance(data, dict):
            raise ValueError(f"Game config {self.game_config_path} must be a mapping of sections")

        defaults = GameSettings()
        tiles = self._section(data, 'tiles')
        target = self._section(data, 'target')
        try:
            settings = GameSettings(
                large=[int(n) for n in tiles.get('large', defaults.large)],
                small=[int(n) for n in tiles.get('small', defaults.small)],
                tile_count=int(tiles.get('count', defaults.tile_count)),
                target_min=int(target.get('min', defaults.target_min)),
                target_max=int(target.get('max', defaults.target_max)),
                round_seconds=int(self._section(data, 'round').get('seconds', defaults.round_seconds)),
                mode=SearchMode.parse(self._section(data, 'solver').get('mode', defaults.mode)),
            )
        except TypeError as e:
            raise ValueError(f"Invalid value in game config: {e}")
        self._validate(settings)
        return settings

    @staticmethod
    def _section(data: dict, name: str) -> dict:
        section = data.get(name)
        if section is None:
            return {}
        if not isinstance(section, dict):
            raise ValueError(f"'{name}' in the game config must be a mapping")
        return section

    @staticmethod
    def _validate(settings: GameSettings) -> None:
        if any(n <= 0 for n in settings.pool):
            raise ValueError("Tiles in the pool must be positive")
        if not 2 <= settings.tile_count <= 6:
            raise ValueError("tiles.count must be between 2 and 6")
        if settings.tile_count > len(settings.pool):
            raise ValueError("tiles.count is larger than the tile pool")
        if settings.target_min < 1 or settings.target_max < settings.target_min:
            raise ValueError("target.min must be positive and not above target.max")
        if settings.round_seconds <= 0:
            raise ValueError("round.seconds must be positive")
