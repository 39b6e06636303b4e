"""metamonitor — periodic availability prober for public status services."""

__version__ = "2.0.0"
