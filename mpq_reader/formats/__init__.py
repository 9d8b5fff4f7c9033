"""Game-specific metadata carried by MPQ archives."""

from .maps import SC2MapInfo, WC3CampaignInfo, WC3MapInfo
from .serialized import SerializedDataError, parse_serialized_data

__all__ = [
    "SC2MapInfo",
    "WC3CampaignInfo",
    "WC3MapInfo",
    "SerializedDataError",
    "parse_serialized_data",
]
