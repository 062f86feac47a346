"""TeamMember - Geolocated roster entry shown on the team map.

Records are created, edited and deleted by the admin screens; the map only
reads them. A member is rendered only when both coordinates are present,
finite and inside the valid geographic range.
"""

import math
from dataclasses import dataclass
from typing import Any

from sage_teammap.constants import MarkerConfig

# Geographic coordinate bounds (degrees)
LAT_RANGE = (-90.0, 90.0)
LON_RANGE = (-180.0, 180.0)


def _to_float(value: Any) -> float | None:
    """Coerce a remote column value to float, None when missing or unparseable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _optional_text(value: Any) -> str | None:
    """Return stripped text or None for missing/blank values."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class TeamMember:
    """A team member with display fields and an optional map location.

    Attributes:
        id: Stable unique identifier
        name: Display name (initials glyph is derived from it)
        role: Role on the team
        location: Free-text place label (e.g., "Austin, TX")
        latitude: Degrees in [-90, 90], None if unknown
        longitude: Degrees in [-180, 180], None if unknown
        profile_image_url: Portrait image, initials glyph used when absent
        email: Contact address shown as mailto link
        school: School name
        bio: Short biography
        created_at: ISO timestamp, roster ordering key

    Example:
        member = TeamMember(id="1", name="Ada Lovelace", role="Mentor",
                            location="London", latitude=51.5, longitude=-0.12)
        member.initials  # "AL"
    """

    id: str
    name: str
    role: str
    location: str
    latitude: float | None = None
    longitude: float | None = None
    profile_image_url: str | None = None
    email: str | None = None
    school: str | None = None
    bio: str | None = None
    created_at: str | None = None

    @property
    def has_coordinates(self) -> bool:
        """True if both coordinates are finite and within geographic bounds."""
        if self.latitude is None or self.longitude is None:
            return False
        if not (math.isfinite(self.latitude) and math.isfinite(self.longitude)):
            return False
        return LAT_RANGE[0] <= self.latitude <= LAT_RANGE[1] and LON_RANGE[0] <= self.longitude <= LON_RANGE[1]

    @property
    def initials(self) -> str:
        """First character of every whitespace-separated token of the name."""
        tokens = self.name.split()
        if not tokens:
            return MarkerConfig.FALLBACK_INITIALS
        return "".join(token[0] for token in tokens)

    @property
    def lat_lon(self) -> tuple[float, float]:
        """Return (lat, lon) tuple - standard geographic order."""
        if not self.has_coordinates:
            raise ValueError(f"Member {self.id} has no valid coordinates")
        return (self.latitude, self.longitude)  # type: ignore[return-value]

    @property
    def lon_lat(self) -> tuple[float, float]:
        """Return (lon, lat) tuple - GeoJSON/Pydeck order."""
        lat, lon = self.lat_lon
        return (lon, lat)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "TeamMember":
        """Create TeamMember from a remote table row.

        Raises:
            ValueError: If the row has no id or no name.
        """
        member_id = _optional_text(record.get("id"))
        name = _optional_text(record.get("name"))
        if member_id is None:
            raise ValueError(f"Team member record without id: {record!r}")
        if name is None:
            raise ValueError(f"Team member {member_id} has no name")

        return cls(
            id=member_id,
            name=name,
            role=_optional_text(record.get("role")) or "",
            location=_optional_text(record.get("location")) or "",
            latitude=_to_float(record.get("latitude")),
            longitude=_to_float(record.get("longitude")),
            profile_image_url=_optional_text(record.get("profile_image_url")),
            email=_optional_text(record.get("email")),
            school=_optional_text(record.get("school")),
            bio=_optional_text(record.get("bio")),
            created_at=_optional_text(record.get("created_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the remote row shape."""
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "location": self.location,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "profile_image_url": self.profile_image_url,
            "email": self.email,
            "school": self.school,
            "bio": self.bio,
            "created_at": self.created_at,
        }
