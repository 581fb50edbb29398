"""
Game rule configuration and validation.
"""

from pydantic import BaseModel, Field, field_validator

from .constants import RESULT_LEFT


class RuleConfig(BaseModel):
    """Configuration for table limits and bookkeeping."""

    min_players: int = Field(
        default=4,
        ge=2,
        le=5,
        description="Minimum number of seated players required to deal"
    )
    max_players: int = Field(
        default=4,
        ge=2,
        le=5,
        description="Maximum number of seats at the table"
    )
    log_limit: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Number of game log lines kept on the table"
    )
    leaver_label: str = Field(
        default=RESULT_LEFT,
        min_length=1,
        description="Result label given to a player who leaves after the deal"
    )

    @field_validator('max_players')
    @classmethod
    def validate_max_players(cls, v, info):
        """Validate maximum players doesn't undercut minimum."""
        min_players = info.data.get('min_players', 4)
        if v < min_players:
            raise ValueError(f'max_players ({v}) must be >= min_players ({min_players})')
        return v

    def validate_player_count(self, player_count: int) -> bool:
        """Check if a player count is valid for this configuration."""
        return self.min_players <= player_count <= self.max_players


# Default configuration instance
default_rules = RuleConfig()


def create_rules(**overrides) -> RuleConfig:
    """Create a RuleConfig with optional overrides."""
    config_dict = default_rules.model_dump()
    config_dict.update(overrides)
    return RuleConfig(**config_dict)
