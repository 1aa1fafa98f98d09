"""Configuration management for catalog-match."""

from pathlib import Path
from typing import Literal
import json

from pydantic import BaseModel, Field

from catalog_match.const.matching import (
    EarlyExitDefaults,
    FilterThresholds,
    MatchingDefaults,
)


class MatchConfig(BaseModel):
    """Configuration for the matching engine."""

    left_field: str = Field(
        default=MatchingDefaults.LEFT_FIELD, description="Description column of the left catalog"
    )
    right_field: str = Field(
        default=MatchingDefaults.RIGHT_FIELD, description="Description column of the right catalog"
    )
    min_threshold: float = Field(
        default=MatchingDefaults.MIN_THRESHOLD, ge=0, le=100, description="Minimum score (0-100)"
    )
    max_results: int = Field(
        default=MatchingDefaults.MAX_RESULTS, ge=0, description="Cap on ranked results"
    )
    batch_size: int = Field(
        default=MatchingDefaults.BATCH_SIZE, ge=1, description="Left entries per batch"
    )
    filtering: Literal["none", "heuristic"] = Field(
        default="heuristic", description="Candidate filtering strategy"
    )
    min_length_ratio: float = Field(
        default=FilterThresholds.MIN_LENGTH_RATIO, ge=0, le=1, description="Length-ratio bound"
    )
    min_token_overlap: float = Field(
        default=FilterThresholds.MIN_TOKEN_OVERLAP, ge=0, le=1, description="Token-overlap bound"
    )
    near_perfect_score: float | None = Field(
        default=EarlyExitDefaults.NEAR_PERFECT_SCORE,
        ge=0,
        le=100,
        description="Per-row break score, None disables the break",
    )
    early_exit_multiplier: int | None = Field(
        default=EarlyExitDefaults.RESULT_MULTIPLIER,
        ge=1,
        description="Global early exit factor, None disables the early exit",
    )
    early_exit_min_threshold: float = Field(
        default=EarlyExitDefaults.MIN_THRESHOLD,
        ge=0,
        le=100,
        description="Minimum caller threshold enabling the global early exit",
    )


class OutputConfig(BaseModel):
    """Configuration for output settings."""

    output_dir: Path = Field(default=Path("./output"), description="Default output directory")
    verbose: bool = Field(default=False, description="Enable verbose logging")
    display_limit: int = Field(default=20, ge=0, description="Rows shown in the results table")


class Config(BaseModel):
    """Main configuration for catalog-match tool."""

    matching: MatchConfig = Field(default_factory=MatchConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @classmethod
    def load_from_file(cls, config_path: Path) -> "Config":
        """Load configuration from a JSON file."""
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, "r") as f:
            data = json.load(f)

        return cls(**data)

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to a JSON file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w") as f:
            json.dump(self.model_dump(), f, indent=2, default=str)

    @classmethod
    def get_default(cls) -> "Config":
        """Get default configuration."""
        return cls()


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from file or return default.

    Args:
        config_path: Path to configuration file. If None, returns default config.

    Returns:
        Config object
    """
    if config_path is None:
        # Try to load from default locations
        default_locations = [
            Path.home() / ".config" / "catalog-match" / "config.json",
            Path.cwd() / "catalog-match.json",
        ]

        for location in default_locations:
            if location.exists():
                return Config.load_from_file(location)

        return Config.get_default()

    return Config.load_from_file(config_path)
