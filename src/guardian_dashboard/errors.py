"""Exception types raised while building usage reports."""

from __future__ import annotations


class DashboardError(Exception):
    """Base class for dashboard failures."""


class DataSourceUnavailable(DashboardError):
    """The backing store could not answer a lookup."""


class MalformedRecord(DashboardError):
    """A raw activity record could not be interpreted at all."""


class NoActiveChild(DashboardError):
    """No child is selected, so there is nothing to report on."""


class PipelineFault(DashboardError):
    """Unexpected failure while generating a report."""
