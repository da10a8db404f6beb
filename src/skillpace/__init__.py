"""skillpace: track recurring practice commitments against a weekly plan."""

__version__ = "0.1.0"
