"""Simulation package shim.

This module exposes the Simulation class at `stepcache.simulation` so
imports such as `from stepcache.simulation import Simulation` work.
"""
from .simulation import Simulation

__all__ = ["Simulation"]
