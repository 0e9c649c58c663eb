"""
Release index service: merges two upstream release archives into one
version/platform index and serves it over HTTP.
"""

__version__ = "0.1.0"
