"""Import configuration.

Configuration comes from three places, highest priority first:
1. Command-line flags
2. defaults: section of an optional YAML config file
3. Built-in defaults

Config file resolution:
1. --config argument
2. $IMAGE_IMPORT_CONFIG environment variable
3. No file (built-in defaults only)

Example config file:

    defaults:
      zone: us-central1-c
      network: import-net
      subnet: import-subnet
      no_external_ip: true
      labels: team=images
"""

import logging
import os
import secrets
import string
from pathlib import Path
from typing import Optional

import yaml

from errors import ConfigError

logger = logging.getLogger(__name__)

# Keys accepted in the defaults: section
DEFAULT_KEYS = {
    'zone', 'region', 'network', 'subnet', 'project', 'timeout', 'labels', 'no_external_ip',
    'scratch_bucket_gcs_path', 'oauth', 'compute_endpoint_override',
    'disable_gcs_logging', 'disable_cloud_logging', 'disable_stdout_logging',
}

# Keys that must be YAML booleans (true/false, not quoted strings)
BOOL_KEYS = {
    'no_external_ip', 'disable_gcs_logging', 'disable_cloud_logging', 'disable_stdout_logging',
}

BUILD_ID_LENGTH = 5


def get_base_dir() -> Path:
    """Get the repository directory."""
    return Path(__file__).parent.parent  # src/ -> repo/


def get_workflow_dir() -> Path:
    """Discover the image_import workflow directory.

    Resolution order:
    1. $IMAGE_IMPORT_WORKFLOW_DIR environment variable
    2. daisy_workflows/image_import/ next to the repo (dev workspace)
    3. /usr/local/share/image-import/workflows/ (installed)
    """
    if env_path := os.environ.get('IMAGE_IMPORT_WORKFLOW_DIR'):
        path = Path(env_path)
        if path.is_dir():
            return path
        raise ConfigError(f"IMAGE_IMPORT_WORKFLOW_DIR={env_path} does not exist")

    sibling = get_base_dir().parent / 'daisy_workflows' / 'image_import'
    if sibling.is_dir():
        return sibling

    installed = Path('/usr/local/share/image-import/workflows')
    if installed.is_dir():
        return installed

    raise ConfigError(
        "image_import workflows not found. "
        "Set IMAGE_IMPORT_WORKFLOW_DIR or clone daisy_workflows as sibling directory."
    )


def _parse_yaml(path: Path) -> dict:
    """Parse a YAML file and return contents."""
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Cannot parse {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping")
    return data


def load_defaults(path: Optional[Path] = None) -> dict:
    """Load flag defaults from a YAML config file.

    Returns an empty dict when no config file is configured.

    Raises:
        ConfigError: If the file is missing or unparsable, has unknown keys,
            or has a non-boolean value for a boolean key
    """
    if path is None:
        env_path = os.environ.get('IMAGE_IMPORT_CONFIG')
        if not env_path:
            return {}
        path = Path(env_path)

    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    defaults = _parse_yaml(path).get('defaults') or {}
    unknown = set(defaults) - DEFAULT_KEYS
    if unknown:
        raise ConfigError(
            f"Unknown keys in {path}: {', '.join(sorted(unknown))}. "
            f"Allowed: {', '.join(sorted(DEFAULT_KEYS))}"
        )
    for key in sorted(BOOL_KEYS & set(defaults)):
        if not isinstance(defaults[key], bool):
            raise ConfigError(
                f"{key} in {path} must be true or false, got {defaults[key]!r}"
            )
    logger.debug(f"Loaded defaults from {path}: {sorted(defaults)}")
    return defaults


def resolve_build_id() -> str:
    """Return $BUILD_ID, or a random id when not running under a build."""
    if build_id := os.environ.get('BUILD_ID'):
        return build_id
    alphabet = string.ascii_lowercase + string.digits
    return ''.join(secrets.choice(alphabet) for _ in range(BUILD_ID_LENGTH))
