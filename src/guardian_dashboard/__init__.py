"""Parental-control usage dashboard: screen time and blocked-site attempts per child."""

__version__ = "0.2.0"
