"""PPD+ credit and savings backend (members, credits, payments)."""

__version__ = "0.4.0"
