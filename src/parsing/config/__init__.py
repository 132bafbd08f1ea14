# Configuration submodule
from .settings import StatementConfig, ChannelMarker, DEFAULT_CONFIG
from .loader import load_config, config_from_dict

__all__ = ['StatementConfig', 'ChannelMarker', 'DEFAULT_CONFIG', 'load_config', 'config_from_dict']
