"""Simulation package.

This module exposes the Simulation class at `cachesim.simulation` so callers
can write `from cachesim.simulation import Simulation`.
"""
from .simulation import Simulation

__all__ = ["Simulation"]
