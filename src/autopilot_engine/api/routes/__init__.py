"""API route modules."""

from autopilot_engine.api.routes import assets, autopilot, health

__all__ = ["assets", "autopilot", "health"]
