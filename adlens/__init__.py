"""
AdLens - Creative Performance Analytics

Groups ad-level performance records into meaningful creative clusters,
extracts representative ad copy, derives performance metrics and colors
them against per-account benchmarks.
"""

__version__ = "1.0.0"
__author__ = "AdLens Team"
