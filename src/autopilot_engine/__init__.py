"""Autopilot Engine - chained AI video generation and recurring product republishing."""

__version__ = "0.1.0"
