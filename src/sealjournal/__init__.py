"""sealjournal - a password-sealed personal journal."""

__version__ = "0.1.0"
