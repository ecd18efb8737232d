"""{KEY} placeholder substitution for deployment parameter files."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from ..exceptions import ConfigError

_PLACEHOLDER = re.compile(r"\{([A-Za-z0-9_.\-]+)\}")


def render_parameters(template_text: str, values: dict[str, Any]) -> str:
    """Replace ``{KEY}`` placeholders, matching keys case-insensitively.

    Placeholders with no matching key are left untouched.
    """
    lookup = {str(k).lower(): v for k, v in values.items()}

    def _replace(match: re.Match) -> str:
        key = match.group(1).lower()
        if key not in lookup:
            return match.group(0)
        return str(lookup[key])

    return _PLACEHOLDER.sub(_replace, template_text)


def load_parameters(path: str | Path, values: dict[str, Any]) -> dict[str, Any]:
    """Render a parameter file and return its parameter mapping.

    ARM parameter files (``{"parameters": {...}}``) are unwrapped to the inner mapping.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Parameter file not found: {path}")

    rendered = render_parameters(path.read_text(), values)
    try:
        data = json.loads(rendered)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Parameter file {path} is not valid JSON after substitution: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Parameter file {path} must contain a JSON object")
    if isinstance(data.get("parameters"), dict):
        return data["parameters"]
    return data


def load_template(path: str | Path) -> dict[str, Any]:
    """Read an ARM template as JSON."""
    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Deployment template not found: {path}")
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Deployment template {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Deployment template {path} must contain a JSON object")
    return data
