"""YAML configuration loading with include directive support."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import yaml
from platformdirs import user_config_dir
from pydantic_settings import BaseSettings, YamlConfigSettingsSource

from rebasekit.core.log import logger

DEFAULTS_FILE = Path(__file__).parent.parent / "defaults" / "default.yaml"
PROJECT_FILE = "rebasekit.yaml"


def cli_includes(argv: list[str]) -> list[str]:
    """Values of every ``--include FILE`` / ``--include=FILE`` in argv."""
    includes = []
    args = iter(argv[1:])
    for arg in args:
        if arg == "--include":
            value = next(args, None)
            if value is not None:
                includes.append(value)
        elif arg.startswith("--include="):
            includes.append(arg.split("=", 1)[1])
    return includes


def merge_configs(base: dict, override: dict) -> dict:
    """New dict with override merged into base; override wins."""
    result = base.copy()
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value
    return result


class YamlWithIncludesSettingsSource(YamlConfigSettingsSource):
    """YAML source layering defaults, user, project and included files.

    Load order, later wins on conflicts (deep merge):
    1. Package defaults (defaults/default.yaml)
    2. User config (platform config dir)/rebasekit.yaml
    3. ./rebasekit.yaml (2 and 3 are replaced by an explicit yaml_file)
    4. ``--include`` files from the command line

    Any file may itself contain ``include: [other.yaml]``; included
    files are resolved relative to the including file and are
    overridden by it.
    """

    def __init__(self, settings_cls: type[BaseSettings], yaml_file=None):
        self.includes = cli_includes(sys.argv)
        self.explicit_file = Path(yaml_file) if yaml_file else None
        super().__init__(settings_cls, yaml_file)

    def _candidate_files(self) -> list[Path]:
        files = [DEFAULTS_FILE]
        if self.explicit_file is not None:
            files.append(self.explicit_file.expanduser())
        else:
            files.append(
                Path(user_config_dir("rebasekit", appauthor=False))
                / PROJECT_FILE
            )
            files.append(Path(PROJECT_FILE))
        files.extend(Path(f).expanduser() for f in self.includes)
        return files

    def _read_files(self, files, deep_merge: bool = False):
        # The yaml_file setting is replaced by the layered lookup
        result = {}
        for path in self._candidate_files():
            if not path.is_file():
                logger.debug(f"Configuration file not found: {path}")
                continue
            logger.debug(f"Loading configuration: {path}")
            result = merge_configs(
                result, self._load_recursive(path, set())
            )
        return result

    def _load_recursive(self, path: Path, visited: set[Path]) -> dict:
        """Load one file and everything it includes.

        Raises:
            ValueError: On a circular include
        """
        path = path.resolve()
        if path in visited:
            raise ValueError(f"Circular include: {path}")
        visited = visited | {path}

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        includes = data.pop("include", None) or []
        if isinstance(includes, (str, os.PathLike)):
            includes = [includes]

        merged: dict = {}
        for inc in includes:
            inc_path = Path(inc).expanduser()
            if not inc_path.is_absolute():
                inc_path = path.parent / inc_path
            merged = merge_configs(
                merged, self._load_recursive(inc_path, visited)
            )
        return merge_configs(merged, data)
