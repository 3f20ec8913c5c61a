"""Tragedy-of-the-commons simulations on a fixed-timestep kernel."""

__version__ = "0.1.0"
