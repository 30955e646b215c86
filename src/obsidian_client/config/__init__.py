"""Environment-backed settings for the panel client."""

from .client_settings import ClientSettings, load_client_settings
from .errors import ConfigurationError
from .runtime import env_bool, env_float, env_int, env_seconds, env_str, reload_dotenv_defaults

__all__ = [
    "ClientSettings",
    "ConfigurationError",
    "env_bool",
    "env_float",
    "env_int",
    "env_seconds",
    "env_str",
    "load_client_settings",
    "reload_dotenv_defaults",
]
