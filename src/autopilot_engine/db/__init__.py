"""Database layer."""

from autopilot_engine.db.models import (
    AutopilotConfigModel,
    AutopilotHistoryModel,
    AutopilotProductModel,
    AutopilotStoreModel,
    Base,
    MediaAssetModel,
    PublishJobModel,
)
from autopilot_engine.db.session import check_database, get_session, get_session_context

__all__ = [
    "Base",
    "check_database",
    "get_session",
    "get_session_context",
    # Models
    "AutopilotConfigModel",
    "AutopilotHistoryModel",
    "AutopilotProductModel",
    "AutopilotStoreModel",
    "MediaAssetModel",
    "PublishJobModel",
]
