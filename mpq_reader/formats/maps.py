"""Map metadata found while locating the MPQ header."""

from dataclasses import dataclass
from typing import Any, Optional

from .serialized import struct_field


@dataclass(frozen=True)
class WC3MapInfo:
    """Fields of the Warcraft III "HM3W" prefix."""

    name: str
    flags: int
    player_count: int


@dataclass(frozen=True)
class WC3CampaignInfo:
    """A Warcraft III archive holding a campaign rather than a single map."""

    name: str
    flags: int
    player_count: int

    @classmethod
    def from_map(cls, info: WC3MapInfo) -> "WC3CampaignInfo":
        return cls(name=info.name, flags=info.flags, player_count=info.player_count)


@dataclass(frozen=True)
class SC2MapInfo:
    """StarCraft II user data: the build the map was saved with."""

    major: int
    minor: int
    revision: int
    build: int
    base_build: Optional[int] = None
    signature: bytes = b""

    @property
    def version_string(self) -> str:
        return f"{self.major}.{self.minor}.{self.revision}.{self.build}"

    @classmethod
    def from_user_data(cls, data: Any) -> Optional["SC2MapInfo"]:
        """Build from a decoded user data struct; None when no version is present."""
        version = struct_field(data, 1)
        if not isinstance(version, dict):
            return None

        fields = [version.get(key) for key in (1, 2, 3, 4)]
        if not all(isinstance(value, int) for value in fields):
            return None

        signature = struct_field(data, 0)
        base_build = version.get(5)
        return cls(
            *fields,
            base_build=base_build if isinstance(base_build, int) else None,
            signature=signature if isinstance(signature, bytes) else b"",
        )
