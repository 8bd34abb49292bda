"""Configuration file loading and validation.

Loads an optional YAML configuration file, expands ``${ENV_VAR}``
placeholders, and validates against the Pydantic models in
:mod:`schema`.  Without a config file every setting has a default.
"""

import logging
import os
import re
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from hostkeeper.config.schema import HostkeeperConfig
from hostkeeper.errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "HOSTKEEPER_CONFIG"

# Recognised config file extensions.
_YAML_EXTS = frozenset({".yaml", ".yml"})

# Config file search order per directory (first match wins)
_CONFIG_SEARCH_ORDER = ("config.yaml", "config.yml")

_CONFIG_DIR = os.path.join(
    os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config")),
    "hostkeeper",
)

# Regex for ${VAR_NAME}, captures the variable name
_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")


def expand_env_vars(value: Any) -> Any:
    """Recursively expand ``${VAR}`` references in string values.

    - If the env var is not set, the placeholder is left unchanged.
    - Non-string leaves are returned as-is.
    - Dicts and lists are walked recursively.
    """
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(
            lambda m: os.environ.get(m.group(1), m.group(0)),
            value,
        )
    if isinstance(value, dict):
        return {k: expand_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [expand_env_vars(item) for item in value]
    return value


def find_config_file(config_dir: str = _CONFIG_DIR) -> Optional[str]:
    """Locate a config file in the user config directory, if any."""
    for name in _CONFIG_SEARCH_ORDER:
        candidate = os.path.join(config_dir, name)
        if os.path.isfile(candidate):
            return candidate
    return None


def _read_config_file(cfg_fpath: str) -> Dict[str, Any]:
    """Read and parse a YAML config file from *cfg_fpath*.

    Raises :class:`ConfigurationError` on I/O or parse errors.
    """
    ext = os.path.splitext(cfg_fpath)[1].lower()
    if ext not in _YAML_EXTS:
        raise ConfigurationError(
            f"Unsupported config file extension '{ext}'. "
            "Only YAML files (.yaml, .yml) are supported."
        )

    try:
        with open(cfg_fpath, "r", encoding="utf-8") as f:
            raw_data = yaml.safe_load(f)
    except Exception as exc:
        raise ConfigurationError(f"Error reading configuration file: {cfg_fpath}\n  {exc}") from exc

    if raw_data is None:
        return {}
    if not isinstance(raw_data, dict):
        raise ConfigurationError(
            "Top-level configuration content must be a YAML mapping (dictionary)."
        )
    return raw_data


def _format_validation_errors(exc: ValidationError) -> str:
    """Format Pydantic validation errors into a readable multi-line string."""
    lines: List[str] = []
    for err in exc.errors():
        loc = " → ".join(str(part) for part in err["loc"])
        lines.append(f"  • {loc}: {err['msg']}")
    return "\n".join(lines)


def load_config(cfg_fpath: Optional[str] = None) -> HostkeeperConfig:
    """Load, expand and validate the configuration.

    Resolution: explicit *cfg_fpath* → ``$HOSTKEEPER_CONFIG`` → a
    ``config.yaml``/``config.yml`` in the user config directory →
    defaults.  An explicitly named file that does not exist is an error.

    Raises:
        ConfigurationError: On I/O errors, parse errors, or validation
            failures (all errors reported at once).
    """
    if cfg_fpath is None:
        cfg_fpath = os.environ.get(CONFIG_ENV_VAR) or None
        if cfg_fpath is None:
            cfg_fpath = find_config_file()
            if cfg_fpath is None:
                logger.debug("No configuration file found, using defaults.")
                return HostkeeperConfig()

    logger.debug("Loading configuration file: %s", cfg_fpath)
    if not os.path.exists(cfg_fpath):
        raise ConfigurationError(f"Configuration file does not exist: {cfg_fpath}")

    raw_data = _read_config_file(cfg_fpath)
    raw_data = expand_env_vars(raw_data)

    try:
        config = HostkeeperConfig.model_validate(raw_data)
    except ValidationError as exc:
        error_summary = _format_validation_errors(exc)
        raise ConfigurationError(
            f"Configuration validation failed ({len(exc.errors())} error(s)):\n" f"{error_summary}"
        ) from exc

    logger.info("Configuration '%s' loaded (v%s).", cfg_fpath, config.version)
    return config
