"""RPS Arena — rock-paper-scissors particle battle simulation."""

__version__ = "0.1.0"
