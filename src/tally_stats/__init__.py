"""tally-stats: GitHub contribution stats for a single developer."""

__version__ = "0.3.0"
