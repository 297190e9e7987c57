"""Configuration loading and validation for diagspan."""
from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

from diagspan.constants import (
    CONFIG_TABLE,
    DEFAULT_AFTER_LABEL_LINES,
    DEFAULT_BEFORE_LABEL_LINES,
    DEFAULT_END_CONTEXT_LINES,
    DEFAULT_START_CONTEXT_LINES,
    DEFAULT_TAB_WIDTH,
    CharSet,
    ColorMode,
    DisplayStyle,
    EmitterKind,
)
from diagspan.types import Chars, ConfigError, DiagspanConfig, RenderConfig

logger = logging.getLogger(__name__)

_COUNT_DEFAULTS: dict[str, int] = {
    "tab_width": DEFAULT_TAB_WIDTH,
    "start_context_lines": DEFAULT_START_CONTEXT_LINES,
    "end_context_lines": DEFAULT_END_CONTEXT_LINES,
    "before_label_lines": DEFAULT_BEFORE_LABEL_LINES,
    "after_label_lines": DEFAULT_AFTER_LABEL_LINES,
}


class ConfigLoader:
    """Loads and validates diagspan configuration."""

    @staticmethod
    def find_config_file(start_path: Path | None = None) -> Path | None:
        """
        Find pyproject.toml by walking up from start_path.

        Args:
            start_path: Directory to start searching from. Defaults to cwd.

        Returns:
            Path to pyproject.toml if found, None otherwise.
        """
        if start_path is None:
            start_path = Path.cwd()

        start_path = start_path.resolve()

        for directory in [start_path, *start_path.parents]:
            config_path: Path = directory / "pyproject.toml"
            if config_path.is_file():
                return config_path

        return None

    @staticmethod
    def load(path: Path | None = None) -> DiagspanConfig:
        """
        Load configuration from pyproject.toml.

        Args:
            path: Explicit path to pyproject.toml. If None, searches upward.

        Returns:
            Validated DiagspanConfig instance.

        Raises:
            ConfigError: If configuration is invalid.
        """
        if path is None:
            path = ConfigLoader.find_config_file()

        if path is None:
            logger.debug("No pyproject.toml found, using defaults")
            return DiagspanConfig()

        try:
            with open(path, "rb") as f:
                data: dict[str, Any] = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML: {e}", path=path) from e
        except OSError as e:
            raise ConfigError(f"Cannot read config file: {e}", path=path) from e

        tool_config: dict[str, Any] = data.get("tool", {}).get(CONFIG_TABLE, {})
        logger.debug("Loaded [tool.%s] from %s", CONFIG_TABLE, path)

        return ConfigLoader._parse_config(tool_config, config_path=path)

    @staticmethod
    def _parse_config(
        data: dict[str, Any],
        *,
        config_path: Path | None = None,
    ) -> DiagspanConfig:
        """Parse and validate configuration dictionary."""
        errors: list[str] = []

        # Parse display_style
        display_style: DisplayStyle = DisplayStyle.RICH
        if "display_style" in data:
            try:
                display_style = DisplayStyle(data["display_style"])
            except ValueError:
                valid: list[str] = [s.value for s in DisplayStyle]
                errors.append(f"display_style must be one of {valid}")

        # Parse chars
        char_set: CharSet = CharSet.BOX_DRAWING
        if "chars" in data:
            try:
                char_set = CharSet(data["chars"])
            except ValueError:
                valid = [c.value for c in CharSet]
                errors.append(f"chars must be one of {valid}")

        # Parse line counts and tab width
        counts: dict[str, int] = ConfigLoader._parse_counts(data, errors)

        # Parse color
        color: ColorMode = ColorMode.AUTO
        if "color" in data:
            try:
                color = ColorMode(data["color"])
            except ValueError:
                valid = [c.value for c in ColorMode]
                errors.append(f"color must be one of {valid}")

        # Parse emitter
        emitter: EmitterKind | None = None
        if "emitter" in data:
            try:
                emitter = EmitterKind(data["emitter"])
            except ValueError:
                valid = [e.value for e in EmitterKind]
                errors.append(f"emitter must be one of {valid}")

        if errors:
            error_msg: str = "Configuration errors:\n" + "\n".join(
                f"  - {e}" for e in errors
            )
            raise ConfigError(error_msg, path=config_path)

        render: RenderConfig = RenderConfig(
            display_style=display_style,
            chars=Chars.for_char_set(char_set),
            **counts,
        )
        return DiagspanConfig(
            config_path=config_path,
            render=render,
            char_set=char_set,
            color=color,
            emitter=emitter,
        )

    @staticmethod
    def _parse_counts(data: dict[str, Any], errors: list[str]) -> dict[str, int]:
        """Parse the non-negative integer options."""
        counts: dict[str, int] = {}
        for key, default in _COUNT_DEFAULTS.items():
            value: Any = data.get(key, default)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                errors.append(f"{key} must be a non-negative integer")
                value = default
            counts[key] = value
        return counts


def resolve_emitter_kind(*, config: DiagspanConfig, isatty: bool) -> EmitterKind:
    """Pick the style backend for a configuration and output stream."""
    if config.emitter is not None:
        return config.emitter
    if config.color == ColorMode.ALWAYS:
        return EmitterKind.ANSI
    if config.color == ColorMode.AUTO and isatty:
        return EmitterKind.ANSI
    return EmitterKind.PLAIN


def load_config(path: Path | None = None) -> DiagspanConfig:
    """
    Convenience function to load configuration.

    Args:
        path: Optional explicit path to pyproject.toml.

    Returns:
        Validated configuration.
    """
    return ConfigLoader.load(path)
