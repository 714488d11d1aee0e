from .loader import load_config
from .models import FilePluginConfig, ProviderConfig

__all__ = [
    "FilePluginConfig",
    "ProviderConfig",
    "load_config",
]
