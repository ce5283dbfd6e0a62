"""Centralized game settings for Okey 101 - all configurable gameplay rules."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from okey.logic.exceptions import UnsupportedSettingsError
from okey.logic.tiles import NUM_TILES

SUPPORTED_NUM_PLAYERS = 4
MAX_HAND_SLOTS = 29


class GameSettings(BaseModel):
    """
    Configuration for Okey 101 rules.

    Defaults describe the standard 4-player game with a 101-point opening.
    """

    model_config = ConfigDict(frozen=True)

    # --- Table ---
    num_players: int = SUPPORTED_NUM_PLAYERS
    hand_size: int = 14
    first_player_extra_tiles: int = 1
    max_hand_slots: int = MAX_HAND_SLOTS

    # --- Opening and finishing ---
    opening_threshold: int = 101
    require_complete_finish: bool = True
    joker_finish_multiplier: int = 2

    # --- Lifecycle ---
    end_match_on_stock_exhausted: bool = True

    @property
    def tiles_dealt(self) -> int:
        return self.num_players * self.hand_size + self.first_player_extra_tiles


def validate_settings(settings: GameSettings) -> None:
    """Reject settings the engine cannot play with.

    Raises UnsupportedSettingsError listing every offending field.
    """
    errors: list[str] = []

    if settings.num_players != SUPPORTED_NUM_PLAYERS:
        errors.append(f"num_players={settings.num_players} is not supported (only 4-player games)")

    if settings.hand_size < 1:
        errors.append(f"hand_size={settings.hand_size} must be positive")

    if settings.first_player_extra_tiles < 0:
        errors.append("first_player_extra_tiles must not be negative")

    if settings.tiles_dealt >= NUM_TILES:
        errors.append(f"dealing {settings.tiles_dealt} tiles leaves no stock")

    if settings.max_hand_slots < settings.hand_size + settings.first_player_extra_tiles + 1:
        errors.append(f"max_hand_slots={settings.max_hand_slots} cannot hold a full hand plus a drawn tile")
    elif settings.max_hand_slots > MAX_HAND_SLOTS:
        errors.append(f"max_hand_slots={settings.max_hand_slots} exceeds the {MAX_HAND_SLOTS}-slot rack")

    if settings.opening_threshold < 0:
        errors.append("opening_threshold must not be negative")

    if settings.joker_finish_multiplier < 1:
        errors.append("joker_finish_multiplier must be at least 1")

    if errors:
        raise UnsupportedSettingsError("; ".join(errors))
