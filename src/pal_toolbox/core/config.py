"""ConfigManager — colorizer defaults read from TOML files."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from pal_toolbox.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "PAL_TOOLBOX_CONFIG_DIR"
_DEFAULT_CONFIG_DIR = Path.home() / ".config" / "pal-toolbox"

# Settings the CLI reads, with the TOML types they accept.
SETTINGS: dict[str, tuple[type, ...]] = {
    "scale": (int,),
    "workers": (int,),
    "source": (str,),
    "strict": (bool,),
    "name_format": (str,),
    "title": (str,),
    "indexed_output": (bool,),
}


def default_config_dir() -> Path:
    """Return ``$PAL_TOOLBOX_CONFIG_DIR`` or ``~/.config/pal-toolbox``."""
    override = os.environ.get(CONFIG_DIR_ENV)
    return Path(override) if override else _DEFAULT_CONFIG_DIR


class ConfigManager:
    """Colorizer defaults, global and per tool.

    ``config.toml`` holds values for every command; ``tools/colorizer.toml``
    and ``tools/batch_colorizer.toml`` override them for single and batch
    mode respectively.  Values given on the command line always win; the
    CLI only consults the config for options left unset.

    Args:
        config_dir: Root directory for configuration files.
                    Defaults to ``default_config_dir()``.
    """

    def __init__(self, config_dir: Path | None = None) -> None:
        self._config_dir = config_dir or default_config_dir()
        self._global: dict[str, Any] = {}
        self._per_tool: dict[str, dict[str, Any]] = {}

    @property
    def config_dir(self) -> Path:
        """Return the configuration directory path."""
        return self._config_dir

    def load(self) -> None:
        """Read ``config.toml`` and ``tools/*.toml`` if they exist.

        Raises:
            ValidationError: If a file is not valid TOML or a known setting
                has the wrong type.
        """
        global_file = self._config_dir / "config.toml"
        if global_file.is_file():
            self._global = self._read_settings(global_file)
            logger.info("Loaded global config from %s", global_file)

        tools_dir = self._config_dir / "tools"
        if tools_dir.is_dir():
            for toml_file in sorted(tools_dir.glob("*.toml")):
                self._per_tool[toml_file.stem] = self._read_settings(toml_file)
                logger.info("Loaded config for tool '%s'", toml_file.stem)

    def get(self, key: str, *, tool: str | None = None, default: Any = None) -> Any:
        """Look *key* up for *tool*, then globally, then fall back to *default*."""
        if tool and key in self._per_tool.get(tool, {}):
            return self._per_tool[tool][key]
        return self._global.get(key, default)

    @staticmethod
    def _check(key: str, value: Any, origin: str) -> None:
        expected = SETTINGS[key]
        # bool is an int subclass; "scale = true" must not pass as 1.
        if not isinstance(value, expected) or (isinstance(value, bool) and bool not in expected):
            names = " or ".join(t.__name__ for t in expected)
            msg = f"Config key '{key}' in {origin} must be {names}, got {value!r}"
            raise ValidationError(msg)

    @classmethod
    def _read_settings(cls, path: Path) -> dict[str, Any]:
        """Parse *path* and type-check the settings it contains."""
        try:
            with path.open("rb") as fh:
                data = tomllib.load(fh)
        except tomllib.TOMLDecodeError as exc:
            msg = f"Config file '{path}' is not valid TOML: {exc}"
            raise ValidationError(msg) from exc

        for key, value in data.items():
            if key in SETTINGS:
                cls._check(key, value, str(path))
            else:
                logger.warning("Ignoring unknown config key '%s' in %s", key, path)
        return data
