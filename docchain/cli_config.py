""".env discovery for the docchain command line tools."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Optional

CONFIG_DIR = Path(os.getenv("DOCCHAIN_CONFIG_DIR") or Path.home() / ".config" / "docchain")
CONFIG_ENV_FILE = CONFIG_DIR / ".env"
ENV_EXAMPLE = Path(__file__).resolve().parent.parent / ".env.example"

LOGGER = logging.getLogger(__name__)


def _seed_user_config(
    example: Path, config_dir: Path, target: Path, copy_file: Callable[[Path, Path], object]
) -> bool:
    try:
        config_dir.mkdir(parents=True, exist_ok=True)
        copy_file(example, target)
    except OSError as exc:
        LOGGER.debug("Could not seed %s from %s: %s", target, example, exc)
        return False
    LOGGER.info("Created %s from .env.example; edit it to tune DOCCHAIN_* settings", target)
    return True


def load_config(
    *,
    config_dir: Path = CONFIG_DIR,
    config_env_file: Path = CONFIG_ENV_FILE,
    cwd: Path,
    load_env: Callable[[Path], bool],
    copy_file: Callable[[Path, Path], object],
    example_file: Path = ENV_EXAMPLE,
) -> Optional[Path]:
    """Load the first ``.env`` found and return its path.

    ``./.env`` beats the per-user file. When neither exists, the bundled
    ``.env.example`` seeds the per-user file on first run.
    """
    for candidate in (cwd / ".env", config_env_file):
        if candidate.is_file():
            load_env(candidate)
            return candidate

    if not example_file.is_file():
        return None
    if not _seed_user_config(example_file, config_dir, config_env_file, copy_file):
        return None
    load_env(config_env_file)
    return config_env_file
