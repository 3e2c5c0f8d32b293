"""Configuration for lspgraph: defaults plus environment-driven settings."""

from lspgraph.config.defaults import *  # noqa: F401,F403
from lspgraph.config.settings import LspGraphConfig, get_config, set_config  # noqa: F401
