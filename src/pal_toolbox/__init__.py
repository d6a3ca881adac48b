"""pal-toolbox — colorize handheld screenshots with device palette files."""

__version__ = "0.1.0"
