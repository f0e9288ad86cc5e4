"""surfcalc - numeric calculus engine for user-supplied surfaces f(x, y, t)."""

__version__ = "0.1.0"
