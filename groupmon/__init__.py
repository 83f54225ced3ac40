"""Group activity monitor: per-group activity recording for neural simulations."""

__version__ = "0.2.0"
