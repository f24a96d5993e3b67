"""Configuration loader for the explanation table generator.

Loads settings from configs/config.yaml and provides typed access
to all configuration sections via dataclasses. The export path and
the suppress-in-docs switch can also be set from the environment,
which is how the decorator API is configured.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "configs" / "config.yaml"

EXPORT_ENV_VAR = "EXPLAINED_EXPORT"
NO_DOC_ENV_VAR = "EXPLAINED_NO_DOC"

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str) -> Optional[bool]:
    """Read a boolean flag from the environment, None if unset."""
    raw = os.getenv(name)
    if raw is None:
        return None
    return raw.strip().lower() in _TRUTHY


@dataclass
class ExplanationConfig:
    """Configuration for docstring composition and export.

    Attributes:
        export_path: File the composed message and table are written
            to for every annotated function. Empty disables export.
        suppress_in_docs: Leave docstrings untouched while still
            exporting.
    """

    export_path: str = ""
    suppress_in_docs: bool = False

    @classmethod
    def from_env(cls) -> "ExplanationConfig":
        """Build a config from the EXPLAINED_* environment variables."""
        config = cls()
        return config.with_env_overrides()

    def with_env_overrides(self) -> "ExplanationConfig":
        """Return a copy with environment variables applied on top."""
        export_path = os.getenv(EXPORT_ENV_VAR)
        suppress = _env_flag(NO_DOC_ENV_VAR)
        return ExplanationConfig(
            export_path=export_path if export_path is not None else self.export_path,
            suppress_in_docs=suppress if suppress is not None else self.suppress_in_docs,
        )


@dataclass
class OutputConfig:
    """Configuration for generated reports."""

    report_format: str = "rst"
    output_dir: str = "docs/generated"
    report_title: str = "Explanations"


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None


@dataclass
class AppConfig:
    """Top-level application configuration."""

    explanations: ExplanationConfig = field(default_factory=ExplanationConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load application configuration from a YAML file.

    Reads the YAML config file and constructs a fully typed AppConfig
    object. Falls back to defaults for any missing values. The
    EXPLAINED_EXPORT and EXPLAINED_NO_DOC environment variables take
    precedence over the file.

    Args:
        config_path: Path to the YAML config file. If None, uses the
            default path at configs/config.yaml.

    Returns:
        A fully populated AppConfig instance.

    Raises:
        yaml.YAMLError: If the config file contains invalid YAML.
    """
    path = Path(config_path) if config_path else _DEFAULT_CONFIG_PATH

    if not path.exists():
        logger.debug("Config file not found at %s, using defaults", path)
        return AppConfig(explanations=ExplanationConfig.from_env())

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    logger.info("Loaded configuration from %s", path)

    explanations_data = raw.get("explanations", {})
    explanations_config = ExplanationConfig(
        export_path=explanations_data.get("export_path") or "",
        suppress_in_docs=bool(explanations_data.get("suppress_in_docs", False)),
    ).with_env_overrides()

    output_data = raw.get("output", {})
    output_config = OutputConfig(
        report_format=output_data.get("report_format", "rst"),
        output_dir=output_data.get("output_dir", "docs/generated"),
        report_title=output_data.get("report_title", "Explanations"),
    )

    logging_data = raw.get("logging", {})
    logging_config = LoggingConfig(
        level=logging_data.get("level", "INFO"),
        format=logging_data.get(
            "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ),
        file=logging_data.get("file"),
    )

    return AppConfig(
        explanations=explanations_config,
        output=output_config,
        logging=logging_config,
    )
