"""Global defaults read from ~/.reposync/config.yml.

Destination-specific values live in the destination's git config, see
config.py. Both are merged by the CLI.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)


@dataclass
class GlobalSettings:
    """User-wide defaults for every sync."""

    exclude: list[str] = field(default_factory=list)
    scratch_dir: Optional[Path] = None
    preserve_author: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GlobalSettings:
        """Build settings from parsed YAML.

        `exclude` may be a single name or a list of names. Unknown keys are
        ignored.
        """
        exclude = data.get("exclude") or []
        if isinstance(exclude, str):
            exclude = [exclude]
        scratch_dir = data.get("scratch_dir")
        return cls(
            exclude=[str(name) for name in exclude],
            scratch_dir=Path(str(scratch_dir)).expanduser() if scratch_dir else None,
            preserve_author=bool(data.get("preserve_author", False)),
        )


def get_settings_path() -> Path:
    return Path.home() / ".reposync" / "config.yml"


def load_settings() -> GlobalSettings:
    """Load the global settings.

    Config file format:
    ```yaml
    exclude:
      - dist
      - .venv
    scratch_dir: ~/tmp
    preserve_author: true
    ```

    Returns:
        GlobalSettings; defaults if the file is missing, unreadable or not
        a YAML mapping.
    """
    path = get_settings_path()
    if not path.exists():
        return GlobalSettings()

    try:
        data = yaml.safe_load(path.read_text())
    except (yaml.YAMLError, OSError) as e:
        logger.warning("Ignoring unreadable settings file %s: %s", path, e)
        return GlobalSettings()

    if data is None:
        return GlobalSettings()
    if not isinstance(data, dict):
        logger.warning("Ignoring settings file %s: expected a mapping", path)
        return GlobalSettings()
    return GlobalSettings.from_dict(data)
