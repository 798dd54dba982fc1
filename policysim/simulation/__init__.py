"""Simulation package.

This module exposes the Simulation class at `policysim.simulation` so UI
code can do `from policysim.simulation import Simulation`.
"""
from .simulation import Simulation

__all__ = ["Simulation"]
