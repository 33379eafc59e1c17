"""Phaseline - phase gating, delay propagation and rescheduling for construction tasks."""

__version__ = "0.1.0"
