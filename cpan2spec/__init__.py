"""Generate RPM spec files from CPAN source distributions."""

__version__ = "0.4.0"

__all__ = ["__version__"]
