"""PulseStudy — gamified study dashboard core."""

__version__ = "1.0.0"
