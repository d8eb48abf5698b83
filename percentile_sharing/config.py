"""Configuration management using Pydantic v2 models.

Describes which percentiles to compute, how the reduction is executed and
how the package logs.  Configurations can be built in code or loaded from
YAML.

Examples:
    Quartiles with two policies each::

        from percentile_sharing.config import PercentileConfig

        config = PercentileConfig.grid([0.25, 0.5, 0.75], ["floor", "linear"])

    Loading from file::

        config = PercentileConfig.from_yaml(Path("percentiles.yaml"))

    A matching YAML file::

        requests:
          - percentile: 0.5
            policy: linear
          - percentile: 0.95
            policy: half_up
            name: p95
        execution:
          n_workers: 4
"""

from collections import Counter
import logging
from pathlib import Path
import sys
from typing import Any, Dict, List, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
import yaml

from .ranking import format_quantile_key

PolicyName = Literal["floor", "ceiling", "half_up", "linear"]

DEFAULT_POLICIES: tuple = ("floor", "half_up", "linear", "ceiling")


class LoggingConfig(BaseModel):
    """Logging configuration.

    Controls logging behavior including level, output destinations,
    and message formatting.
    """

    enabled: bool = Field(default=True, description="Enable logging")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING", description="Logging level"
    )
    log_file: Optional[str] = Field(
        default=None, description="Log file path (None=no file logging)"
    )
    console_output: bool = Field(default=True, description="Log to console")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format",
    )


class ExecutionConfig(BaseModel):
    """How :func:`percentile_sharing.reduction.collect` drives a reduction."""

    n_workers: int = Field(default=1, ge=1, description="Worker threads (1=sequential)")
    chunk_size: Optional[int] = Field(
        default=None, ge=1, description="Elements per chunk (None=derive from n_workers)"
    )
    progress_bar: bool = Field(default=False, description="Show a tqdm progress bar")


class PercentileRequest(BaseModel):
    """One percentile column.

    Requests with the same ``share_id`` accumulate and sort the input once.
    """

    model_config = ConfigDict(frozen=True)

    percentile: float = Field(ge=0.0, le=1.0, description="Percentile fraction in [0, 1]")
    policy: PolicyName = Field(default="floor", description="Interpolation policy")
    share_id: str = Field(default="values", description="Share group id")
    name: Optional[str] = Field(default=None, description="Result label override")

    @field_validator("share_id")
    @classmethod
    def validate_share_id(cls, v: str) -> str:
        """Reject blank share ids.

        Args:
            v: Share id to validate.

        Returns:
            The share id unchanged.

        Raises:
            ValueError: If the id is empty or whitespace only.
        """
        if not v.strip():
            raise ValueError("share_id must not be blank")
        return v

    @property
    def label(self) -> str:
        """Result label: *name* if given, else e.g. ``q0500_linear``."""
        if self.name:
            return self.name
        return f"{format_quantile_key(self.percentile)}_{self.policy}"


class PercentileConfig(BaseModel):
    """Complete configuration for one percentile computation."""

    requests: List[PercentileRequest] = Field(default_factory=list)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def validate_unique_labels(self) -> "PercentileConfig":
        """Ensure every request produces a distinct result label.

        Returns:
            Validated configuration.

        Raises:
            ValueError: If two requests share a label.
        """
        counts = Counter(request.label for request in self.requests)
        duplicates = sorted(label for label, count in counts.items() if count > 1)
        if duplicates:
            raise ValueError(f"Duplicate request labels: {duplicates}")
        return self

    @classmethod
    def grid(
        cls,
        percentiles: Sequence[float],
        policies: Sequence[str] = DEFAULT_POLICIES,
        share_id: str = "values",
        **kwargs: Any,
    ) -> "PercentileConfig":
        """Build a configuration with one request per percentile and policy.

        Args:
            percentiles: Percentile fractions.
            policies: Policy names applied to every percentile.
            share_id: Share group id used by all requests.
            **kwargs: Further ``PercentileConfig`` fields.

        Returns:
            New configuration.
        """
        requests = [
            PercentileRequest(percentile=p, policy=policy, share_id=share_id)
            for p in percentiles
            for policy in policies
        ]
        return cls(requests=requests, **kwargs)

    @classmethod
    def from_yaml(cls, path: Path) -> "PercentileConfig":
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML file.

        Returns:
            Validated configuration.

        Raises:
            FileNotFoundError: If *path* does not exist.
            pydantic.ValidationError: If the contents are invalid.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            data: Dict[str, Any] = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self, path: Path) -> None:
        """Save configuration to YAML file.

        Args:
            path: Path where to save the configuration.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(self.model_dump(), f, default_flow_style=False, sort_keys=False)

    def setup_logging(self) -> None:
        """Configure the ``percentile_sharing`` logger from :attr:`logging`."""
        if not self.logging.enabled:
            return

        logger = logging.getLogger("percentile_sharing")
        logger.setLevel(getattr(logging, self.logging.level))
        logger.handlers.clear()

        formatter = logging.Formatter(self.logging.format)

        if self.logging.console_output:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(formatter)
            logger.addHandler(console_handler)

        if self.logging.log_file:
            log_path = Path(self.logging.log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
