"""LogNova - browse container, journal and file logs through one query surface."""

__version__ = "0.1.0"
