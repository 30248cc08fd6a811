"""
Configuration loader for clusterer profiles and environment variables.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from ..spatial.config import ClustererConfig


PROFILE_ENV_VAR = "MARKERCLUSTER_PROFILE"
DEFAULT_PROFILE = "default"


class ConfigLoader:
    """Load and manage configuration from YAML files and environment."""

    CONFIG_DIR = Path(__file__).parent / "configs"

    @classmethod
    def load_profile(cls, profile_name: str = DEFAULT_PROFILE) -> Dict[str, Any]:
        """
        Load a clusterer profile.

        Args:
            profile_name: Name of the profile (default, dense, sparse)

        Returns:
            Dictionary with configuration values

        Raises:
            FileNotFoundError: If profile doesn't exist
        """
        profile_path = cls.CONFIG_DIR / f"{profile_name}.yaml"

        if not profile_path.exists():
            available = sorted(f.stem for f in cls.CONFIG_DIR.glob("*.yaml"))
            raise FileNotFoundError(
                f"Profile '{profile_name}' not found. Available profiles: {', '.join(available)}"
            )

        with open(profile_path, "r") as f:
            return yaml.safe_load(f) or {}

    @classmethod
    def get_profile_from_env(cls) -> Optional[str]:
        """Get profile name from the MARKERCLUSTER_PROFILE environment variable."""
        return os.getenv(PROFILE_ENV_VAR)

    @classmethod
    def load_default_or_env_profile(cls) -> Dict[str, Any]:
        """Load the profile named in the environment, or the default one."""
        profile = cls.get_profile_from_env() or DEFAULT_PROFILE
        return cls.load_profile(profile)


def load_config(path: Union[str, Path]) -> ClustererConfig:
    """Build a :class:`ClustererConfig` from a YAML file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)
    with open(path, "r") as f:
        return ClustererConfig.from_dict(yaml.safe_load(f))


def get_config() -> ClustererConfig:
    """Convenience function to get the current configuration."""
    return ClustererConfig.from_dict(ConfigLoader.load_default_or_env_profile())
