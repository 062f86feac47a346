"""Shared pytest fixtures for sage_teammap tests.

Provides member records, a fake clock for the lifecycle timers and an
in-memory directory. Nothing here needs a running Streamlit session: the
selection state machine is always created without the rerun listener.

COORDINATES:
    Members are placed at well-known cities so failures are easy to read.
    (40.0, -75.0) is the single-member reference point near Philadelphia.
"""

import pytest

from sage_teammap.constants import MapConfig
from sage_teammap.core.directory import FetchResult
from sage_teammap.core.lifecycle import SurfaceLifecycle
from sage_teammap.core.surface import MapContainer
from sage_teammap.model.team_member import TeamMember
from sage_teammap.ui.team_map_view import TeamMapView


# =============================================================================
# TEST DOUBLES
# =============================================================================


class FakeClock:
    """Manually advanced monotonic clock for deferred lifecycle calls."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StaticDirectory:
    """Directory returning queued FetchResults in order (last one repeats)."""

    def __init__(self, *results: FetchResult) -> None:
        self.results = list(results) or [FetchResult()]
        self.calls = 0

    def fetch_team_members(self) -> FetchResult:
        index = min(self.calls, len(self.results) - 1)
        self.calls += 1
        return self.results[index]


# =============================================================================
# MEMBER FIXTURES
# =============================================================================


@pytest.fixture
def member_ada() -> TeamMember:
    """Ada Lovelace in London, no portrait (initials glyph "AL")."""
    return TeamMember(
        id="m-ada",
        name="Ada Lovelace",
        role="Mentor",
        location="London, UK",
        latitude=51.5074,
        longitude=-0.1278,
        created_at="2024-01-01T00:00:00Z",
    )


@pytest.fixture
def member_grace() -> TeamMember:
    """Grace Hopper in New York with portrait, school, email and bio."""
    return TeamMember(
        id="m-grace",
        name="Grace Hopper",
        role="Tutoring Lead",
        location="New York, NY",
        latitude=40.7128,
        longitude=-74.0060,
        profile_image_url="https://example.org/grace.png",
        email="grace@example.org",
        school="Yale",
        bio="Wrote the first compiler.",
        created_at="2024-01-02T00:00:00Z",
    )


@pytest.fixture
def member_no_location() -> TeamMember:
    """Member without latitude (must never get a marker)."""
    return TeamMember(
        id="m-remote",
        name="Remote Member",
        role="Outreach",
        location="Remote",
        latitude=None,
        longitude=-75.0,
        created_at="2024-01-03T00:00:00Z",
    )


@pytest.fixture
def member_philadelphia() -> TeamMember:
    """Single-member reference point at (40.0, -75.0)."""
    return TeamMember(
        id="m-philly",
        name="Solo Member",
        role="Director",
        location="Philadelphia, PA",
        latitude=40.0,
        longitude=-75.0,
        created_at="2024-01-04T00:00:00Z",
    )


@pytest.fixture
def roster(member_ada: TeamMember, member_grace: TeamMember, member_no_location: TeamMember) -> list[TeamMember]:
    """Three members, two with coordinates."""
    return [member_ada, member_grace, member_no_location]


# =============================================================================
# MAP FIXTURES
# =============================================================================


@pytest.fixture
def container() -> MapContainer:
    """Full-page map slot."""
    return MapContainer(key="team_map", height_px=MapConfig.PAGE_HEIGHT_PX)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def lifecycle(clock: FakeClock) -> SurfaceLifecycle:
    """Tile engine lifecycle with fake clock and no network probe."""
    return SurfaceLifecycle(engine=MapConfig.ENGINE_TILE, probe_basemap=False, clock=clock)


@pytest.fixture
def ready_lifecycle(lifecycle: SurfaceLifecycle, container: MapContainer) -> SurfaceLifecycle:
    """Lifecycle with a created, ready surface."""
    lifecycle.create(container)
    return lifecycle


@pytest.fixture
def view_factory():
    """Build a TeamMapView over a StaticDirectory without the Streamlit listener."""

    def make(*results: FetchResult, engine: str = MapConfig.ENGINE_TILE) -> TeamMapView:
        return TeamMapView(directory=StaticDirectory(*results), engine=engine, add_ui_listener=False)

    return make
