"""
Exception types raised by dipolar-nmr.

All of them derive from DipolarError, so callers can catch the whole family
at once; each also derives from the builtin that best describes it.
"""


class DipolarError(Exception):
    """Base class for all dipolar-nmr errors."""


class UnknownNucleusError(DipolarError, ValueError):
    """A nucleus symbol has no gyromagnetic ratio entry."""


class EmptySelectionError(DipolarError, ValueError):
    """A centroid was requested for a selection matching zero atoms."""


class InvalidGeometryError(DipolarError, ValueError):
    """A distance or angle cannot produce a defined coupling (e.g. r = 0)."""


class OutputWriteError(DipolarError, OSError):
    """The output file could not be opened for writing."""
