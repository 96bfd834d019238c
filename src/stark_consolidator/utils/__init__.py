# -*- coding: utf-8 -*-
"""
Shared helpers: text normalization, configuration, logging and output paths.
"""

from .config_manager import ConfigurationManager, get_config_manager
from .logging_config import get_logger, setup_logging
from .output_manager import OutputManager

__all__ = ['ConfigurationManager', 'get_config_manager', 'get_logger', 'setup_logging', 'OutputManager']
