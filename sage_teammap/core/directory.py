"""Team directory - read-only access to the team_members table.

Sources:
    RestTeamDirectory: PostgREST endpoint of the hosted database (production)
    FileTeamDirectory: JSON export of the same rows (offline demo, tests)

Both return a FetchResult. A failed fetch carries a DirectoryError and is never
reported as an empty roster, so the view can show an error instead of a map
with zero markers.

DirectoryState is the reactive collection consumed by the map view: it tracks
loading state, the last error and a version counter that changes whenever a
new roster is applied.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

import requests

from sage_teammap.constants import DirectoryConfig
from sage_teammap.model.team_member import TeamMember

logger = logging.getLogger(__name__)


class DirectoryError(Exception):
    """Team directory could not be read."""


@dataclass(frozen=True)
class FetchResult:
    """Outcome of one roster fetch.

    Attributes:
        members: Members ordered by creation time (empty when error is set)
        error: Failure signal, None on success
        skipped_records: Rows dropped because they had no id or name
    """

    members: list[TeamMember] = field(default_factory=list)
    error: DirectoryError | None = None
    skipped_records: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    @staticmethod
    def failure(message: str) -> "FetchResult":
        return FetchResult(members=[], error=DirectoryError(message))


def parse_member_records(records: Any) -> FetchResult:
    """Convert raw rows to TeamMembers, keeping row order.

    Rows without id or name are skipped and counted; a payload that is not a
    list of objects is a failure.
    """
    if not isinstance(records, list):
        return FetchResult.failure(f"Unexpected payload type {type(records).__name__}, expected a list of rows")

    members: list[TeamMember] = []
    skipped = 0
    for record in records:
        if not isinstance(record, dict):
            skipped += 1
            logger.warning(f"[DIRECTORY] Skipping non-object row: {record!r}")
            continue
        try:
            members.append(TeamMember.from_record(record))
        except ValueError as e:
            skipped += 1
            logger.warning(f"[DIRECTORY] Skipping malformed row: {e}")

    return FetchResult(members=members, skipped_records=skipped)


class TeamDirectory(Protocol):
    """Anything that can fetch the roster."""

    def fetch_team_members(self) -> FetchResult: ...


@dataclass(frozen=True)
class DirectorySettings:
    """Connection settings for the team directory.

    Attributes:
        url: Project base URL (e.g., https://xyz.supabase.co), None if not configured
        api_key: Anonymous (read-only) API key
        members_file: JSON file used when no URL is configured
        timeout_s: HTTP timeout
    """

    url: str | None = None
    api_key: str | None = None
    members_file: Path | None = None
    timeout_s: float = DirectoryConfig.TIMEOUT_S

    @classmethod
    def from_env(cls) -> "DirectorySettings":
        """Read settings from environment variables."""
        members_file = os.environ.get(DirectoryConfig.ENV_MEMBERS_FILE)
        return cls(
            url=os.environ.get(DirectoryConfig.ENV_URL) or None,
            api_key=os.environ.get(DirectoryConfig.ENV_KEY) or None,
            members_file=Path(members_file) if members_file else None,
        )


class RestTeamDirectory:
    """Fetches the roster from the hosted database REST endpoint.

    Equivalent query:
        GET {url}/rest/v1/team_members?select=*&order=created_at.asc

    Example:
        directory = RestTeamDirectory(settings=DirectorySettings.from_env())
        result = directory.fetch_team_members()
        if not result.ok:
            show_error(result.error)
    """

    def __init__(self, settings: DirectorySettings, session: requests.Session | None = None) -> None:
        if not settings.url:
            raise DirectoryError(f"{DirectoryConfig.ENV_URL} is not configured")
        self.settings = settings
        self.session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{self.settings.url.rstrip('/')}{DirectoryConfig.REST_PATH}{DirectoryConfig.TABLE}"  # type: ignore[union-attr]

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.settings.api_key:
            headers["apikey"] = self.settings.api_key
            headers["Authorization"] = f"Bearer {self.settings.api_key}"
        return headers

    def fetch_team_members(self) -> FetchResult:
        """Read all members ordered by creation time ascending. No side effects."""
        params = {"select": "*", "order": f"{DirectoryConfig.ORDER_COLUMN}.asc"}
        logger.info(f"[DIRECTORY] Fetching {DirectoryConfig.TABLE} from {self.endpoint}")
        try:
            response = self.session.get(
                self.endpoint,
                params=params,
                headers=self._headers(),
                timeout=self.settings.timeout_s,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"[DIRECTORY] Fetch failed: {e}")
            return FetchResult.failure(f"Request to team directory failed: {e}")

        try:
            payload = response.json()
        except ValueError as e:
            logger.error(f"[DIRECTORY] Invalid JSON from team directory: {e}")
            return FetchResult.failure("Team directory returned invalid JSON")

        result = parse_member_records(payload)
        if result.ok:
            logger.info(f"[DIRECTORY] Loaded {len(result.members)} members ({result.skipped_records} skipped)")
        return result


class FileTeamDirectory:
    """Reads the roster from a JSON export (list of rows).

    Rows are sorted by created_at with a stable sort; rows without a
    timestamp keep their file order after the timestamped ones.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def fetch_team_members(self) -> FetchResult:
        logger.info(f"[DIRECTORY] Reading members from {self.path}")
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except OSError as e:
            logger.error(f"[DIRECTORY] Cannot read {self.path}: {e}")
            return FetchResult.failure(f"Cannot read member file {self.path}")
        except UnicodeDecodeError as e:
            logger.error(f"[DIRECTORY] Member file {self.path} is not UTF-8: {e}")
            return FetchResult.failure(f"Member file {self.path} is not valid UTF-8")
        except json.JSONDecodeError as e:
            logger.error(f"[DIRECTORY] Invalid JSON in {self.path}: {e}")
            return FetchResult.failure(f"Member file {self.path} is not valid JSON")

        result = parse_member_records(payload)
        if not result.ok:
            return result

        ordered = sorted(result.members, key=lambda m: (m.created_at is None, m.created_at or ""))
        return FetchResult(members=ordered, skipped_records=result.skipped_records)


def create_directory(settings: DirectorySettings) -> TeamDirectory:
    """Pick the directory source for the given settings.

    Raises:
        DirectoryError: If neither a URL nor a members file is configured.
    """
    if settings.url:
        return RestTeamDirectory(settings=settings)
    if settings.members_file is not None:
        return FileTeamDirectory(path=settings.members_file)
    if DirectoryConfig.DEMO_MEMBERS_FILE.exists():
        logger.info(f"[DIRECTORY] No directory configured, using demo roster {DirectoryConfig.DEMO_MEMBERS_FILE}")
        return FileTeamDirectory(path=DirectoryConfig.DEMO_MEMBERS_FILE)
    raise DirectoryError(
        f"No team directory configured. Set {DirectoryConfig.ENV_URL} or {DirectoryConfig.ENV_MEMBERS_FILE}."
    )


@dataclass
class DirectoryState:
    """Reactive roster collection with loading state.

    Attributes:
        members: Last successfully loaded roster
        is_loading: A fetch is in flight
        error: Error of the last fetch, None if it succeeded
        loaded: At least one fetch succeeded
        version: Incremented every time a new roster is applied
    """

    members: list[TeamMember] = field(default_factory=list)
    is_loading: bool = False
    error: DirectoryError | None = None
    loaded: bool = False
    version: int = 0

    @property
    def needs_load(self) -> bool:
        """True before the first fetch has started."""
        return not self.loaded and not self.is_loading and self.error is None

    def begin_loading(self) -> None:
        self.is_loading = True
        self.error = None

    def resolve(self, result: FetchResult) -> None:
        """Apply a fetch result. Errors keep the previous roster but set error."""
        self.is_loading = False
        if not result.ok:
            self.error = result.error
            return
        self.members = list(result.members)
        self.error = None
        self.loaded = True
        self.version += 1

    def get(self, member_id: str) -> TeamMember | None:
        for member in self.members:
            if member.id == member_id:
                return member
        return None
