"""YAML engine configuration loading and management.

Provides functions to:
- List available configurations
- Load configurations from YAML files
- Merge overrides and environment secrets into configurations
"""

import logging
import os
from pathlib import Path

import yaml

from ..errors import ConfigNotFound
from ..models.settings import EngineSettings

logger = logging.getLogger(__name__)

# Named configurations shipped inside the package
CONFIGS_DIR = Path(__file__).parent.parent / "configs"

# Environment variable -> routing setting
ENV_SECRETS = {
    "LINKPATH_MAPBOX_TOKEN": "mapbox_token",
    "LINKPATH_ORS_API_KEY": "ors_api_key",
}


def get_config_path(name: str = "default", configs_dir: Path | None = None) -> Path:
    """Get the path to a named configuration file.

    Args:
        name: Configuration name (without .yaml extension)
        configs_dir: Directory to look in (default: packaged configs)

    Returns:
        Path to the YAML file

    Raises:
        ConfigNotFound: If the configuration doesn't exist
    """
    path = (configs_dir or CONFIGS_DIR) / f"{name}.yaml"
    if not path.exists():
        raise ConfigNotFound(f"Config '{name}' not found at {path}")
    return path


def list_configs(configs_dir: Path | None = None) -> list[dict[str, str]]:
    """List all available configurations.

    Returns:
        List of dicts with 'name' and 'description' keys
    """
    directory = configs_dir or CONFIGS_DIR
    configs = []

    if not directory.exists():
        logger.warning(f"Configs directory not found: {directory}")
        return configs

    for yaml_file in directory.glob("*.yaml"):
        configs.append({
            "name": yaml_file.stem,
            "description": _extract_description(yaml_file),
        })

    return sorted(configs, key=lambda c: c["name"])


def _extract_description(yaml_path: Path) -> str:
    """Extract description from first comment line of YAML file."""
    with open(yaml_path) as f:
        first_line = f.readline().strip()
    if first_line.startswith("#"):
        return first_line.lstrip("#").strip()
    return f"Settings from {yaml_path.name}"


def apply_env_secrets(settings: EngineSettings, environ: dict | None = None) -> EngineSettings:
    """Fill provider credentials from environment variables.

    Values already set in the configuration win over the environment.
    """
    env = os.environ if environ is None else environ
    routing_override = {}
    for var, field_name in ENV_SECRETS.items():
        value = env.get(var)
        if value and not getattr(settings.routing, field_name):
            routing_override[field_name] = value

    if not routing_override:
        return settings
    logger.debug(f"Applied environment credentials: {sorted(routing_override)}")
    return settings.merge_override({"routing": routing_override})


def load_settings(
    name: str = "default",
    override: dict | None = None,
    configs_dir: Path | None = None,
    environ: dict | None = None,
) -> EngineSettings:
    """Load engine settings from YAML with optional overrides.

    Args:
        name: Configuration name (without .yaml extension)
        override: Optional dict of values to merge on top
        configs_dir: Directory to look in (default: packaged configs)
        environ: Environment mapping for credentials (default: os.environ)

    Returns:
        EngineSettings instance
    """
    path = get_config_path(name, configs_dir)

    with open(path) as f:
        yaml_content = f.read()

    settings = EngineSettings.from_yaml(yaml_content)

    if override:
        settings = settings.merge_override(override)
        logger.debug(f"Applied overrides to config '{name}'")

    return apply_env_secrets(settings, environ)


def save_settings(settings: EngineSettings, name: str, configs_dir: Path | None = None) -> Path:
    """Save settings to a YAML file.

    Credentials are not written.

    Returns:
        Path to saved file
    """
    directory = configs_dir or CONFIGS_DIR
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{name}.yaml"

    data = settings.model_dump(
        exclude_none=True,
        exclude={"routing": {"mapbox_token", "ors_api_key"}},
    )

    with open(path, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    logger.info(f"Saved config to {path}")
    return path


def validate_settings_yaml(yaml_content: str) -> tuple[bool, str | None]:
    """Validate YAML content as engine settings.

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        EngineSettings.from_yaml(yaml_content)
        return True, None
    except (TypeError, ValueError, yaml.YAMLError) as e:
        return False, str(e)
