"""Config file discovery.

Walk-up finder locates siteplan.toml, similar to how git finds .git/.
Supports the SITEPLAN_CONFIG env var and --config CLI flag overrides.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "siteplan.toml"
CONFIG_ENV_VAR = "SITEPLAN_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for siteplan.toml.

    Checks SITEPLAN_CONFIG first; if it is set but points nowhere,
    no walk-up happens.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        return p if p.is_file() else None

    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None
