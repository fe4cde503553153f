"""Engine configuration loading."""

from .loader import (
    CONFIGS_DIR,
    apply_env_secrets,
    get_config_path,
    list_configs,
    load_settings,
    save_settings,
    validate_settings_yaml,
)

__all__ = [
    "CONFIGS_DIR",
    "get_config_path",
    "list_configs",
    "load_settings",
    "save_settings",
    "apply_env_secrets",
    "validate_settings_yaml",
]
