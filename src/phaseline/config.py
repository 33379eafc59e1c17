"""Configuration loader for classification rules, phase weights and view settings.

A single YAML file (phaseline_config.yaml) may override any of the defaults.
Every section is optional; omitted sections keep the built-in rules.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_CONFIG_FILENAME = "phaseline_config.yaml"

DEFAULT_PREPARATION_KEYWORDS = [
    "order",
    "deliver",
    "measure",
    "prep",
    "plan",
    "schedule",
    "permit",
    "survey",
    "quote",
    "buy",
    "purchase",
    "setup",
    "protect",
    "tape",
    "drop cloth",
    "primer",
    "sand",
]

DEFAULT_VERIFICATION_KEYWORDS = [
    "inspect",
    "verify",
    "test",
    "final",
    "clean",
    "review",
    "check",
    "approve",
    "sign off",
    "touch up",
    "punch list",
]


def _lowercase_keywords(v: Any) -> list[str]:
    if v is None:
        return []
    if isinstance(v, str):
        return [v.lower()]
    return [str(item).lower() for item in v]  # type: ignore[union-attr]


class ClassifierConfig(BaseModel):
    """Keyword lists for phase classification.

    Preparation is always tested before verification; anything matching
    neither falls into execution.
    """

    preparation: list[str] = Field(default_factory=lambda: list(DEFAULT_PREPARATION_KEYWORDS))
    verification: list[str] = Field(default_factory=lambda: list(DEFAULT_VERIFICATION_KEYWORDS))

    @field_validator("preparation", "verification", mode="before")
    @classmethod
    def lowercase(cls, v: Any) -> list[str]:
        """Normalize keywords to lower case."""
        return _lowercase_keywords(v)


class CategoryDefinition(BaseModel):
    """One material category and the labels that identify it."""

    name: str
    keywords: list[str]

    @field_validator("keywords", mode="before")
    @classmethod
    def lowercase(cls, v: Any) -> list[str]:
        """Normalize keywords to lower case."""
        return _lowercase_keywords(v)


def _default_categories() -> list[CategoryDefinition]:
    return [
        CategoryDefinition(
            name="flooring",
            keywords=[
                "laminate flooring",
                "hardwood flooring",
                "vinyl flooring",
                "tile",
                "carpet",
            ],
        ),
        CategoryDefinition(name="underlayment", keywords=["underlayment", "vapor barrier", "padding"]),
        CategoryDefinition(
            name="trim",
            keywords=["baseboard", "molding", "transition strips", "quarter round"],
        ),
        CategoryDefinition(name="supplies", keywords=["adhesive", "nails", "screws", "spacers"]),
    ]


class CategoriesConfig(BaseModel):
    """Ordered category table; the first matching category wins."""

    categories: list[CategoryDefinition] = Field(default_factory=_default_categories)

    @field_validator("categories")
    @classmethod
    def unique_names(cls, v: list[CategoryDefinition]) -> list[CategoryDefinition]:
        """Reject duplicate or reserved category names."""
        names = [c.name for c in v]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate category names: {names}")
        if "other" in names or "general" in names:
            raise ValueError("Category names 'other' and 'general' are reserved")
        return v

    def as_table(self) -> tuple[tuple[str, tuple[str, ...]], ...]:
        """Return the table as an ordered tuple of (category, keywords) pairs."""
        return tuple((c.name, tuple(c.keywords)) for c in self.categories)


def _check_weights(v: list[float]) -> list[float]:
    if len(v) != 3:
        raise ValueError(f"Expected 3 phase weights, got {len(v)}")
    if any(w < 0 for w in v):
        raise ValueError(f"Phase weights must be non-negative: {v}")
    if not math.isclose(sum(v), 1.0, abs_tol=1e-9):
        raise ValueError(f"Phase weights must sum to 1.0, got {sum(v)}")
    return v


class PhaseWeightsConfig(BaseModel):
    """Share of the project span given to preparation, execution and verification."""

    # Bands shown alongside the phase tree
    bands: list[float] = Field(default_factory=lambda: [0.4, 0.4, 0.2])
    # Ranges used to place unscheduled tasks
    auto_schedule: list[float] = Field(default_factory=lambda: [0.2, 0.6, 0.2])

    @field_validator("bands", "auto_schedule")
    @classmethod
    def validate_weights(cls, v: list[float]) -> list[float]:
        """Weights are three non-negative shares summing to one."""
        return _check_weights(v)


class DelayConfig(BaseModel):
    """Configuration for delay-driven shift proposals."""

    # Keep only the first proposal per task when several delays target it
    dedupe_targets: bool = False


class RescheduleConfig(BaseModel):
    """Day-width scale used to turn drag distance into days."""

    viewport_width: float = 800.0
    min_day_width: float = 30.0
    max_day_width: float = 60.0
    padding_before_days: int = 3
    padding_after_days: int = 7
    default_visible_days: int = 30

    def model_post_init(self, __context: Any) -> None:
        """Validate configuration after initialization."""
        if self.min_day_width <= 0:
            raise ValueError("reschedule.min_day_width must be positive")
        if self.max_day_width < self.min_day_width:
            raise ValueError(
                f"reschedule.max_day_width ({self.max_day_width}) must be >= "
                f"min_day_width ({self.min_day_width})"
            )
        if self.viewport_width <= 0:
            raise ValueError("reschedule.viewport_width must be positive")


class PhaselineConfig(BaseModel):
    """Complete Phaseline configuration."""

    classifier: ClassifierConfig = ClassifierConfig()
    categories: CategoriesConfig = CategoriesConfig()
    weights: PhaseWeightsConfig = PhaseWeightsConfig()
    delays: DelayConfig = DelayConfig()
    reschedule: RescheduleConfig = RescheduleConfig()


def load_config(config_path: Path | str) -> PhaselineConfig:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to phaseline_config.yaml

    Returns:
        PhaselineConfig with defaults for every omitted section

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with config_path.open() as f:
        data: Any = yaml.safe_load(f)

    if not data:
        return PhaselineConfig()
    if not isinstance(data, dict):
        raise ValueError("Config must contain a mapping at the root level")

    # Allow the category table to be given directly as a list
    categories = data.get("categories")
    if isinstance(categories, list):
        data["categories"] = {"categories": categories}

    # pydantic's ValidationError subclasses ValueError
    return PhaselineConfig.model_validate(data)


def discover_config(
    task_file: Path | None = None,
    config_path: Path | None = None,
) -> PhaselineConfig:
    """Find and load configuration, falling back to defaults.

    Search order:
    1. Explicit config_path argument
    2. task file directory / phaseline_config.yaml
    3. Current directory / phaseline_config.yaml
    """
    if config_path:
        return load_config(config_path)

    if task_file is not None:
        dir_config = Path(task_file).parent / DEFAULT_CONFIG_FILENAME
        if dir_config.exists():
            return load_config(dir_config)

    cwd_config = Path(DEFAULT_CONFIG_FILENAME)
    if cwd_config.exists():
        return load_config(cwd_config)

    return PhaselineConfig()
