"""
Core module - configuration
"""

from .config import Config, NamingRulesConfig, load_naming_rules

__all__ = ['Config', 'NamingRulesConfig', 'load_naming_rules']
