"""
Response-Time External Integrations
===================================

External services for response-time analytics:
- CRM events API client (paginated, time-boxed)
- Business-hours YAML config with watchdog hot reload
"""

import asyncio
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import httpx
import yaml
from pydantic import ValidationError
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler

from src.config import settings, FetchStopReason, TRACKED_EVENT_TYPES
from src.core.exceptions import ConfigurationException, EventFeedException
from src.response_time.application.services import IBusinessHoursProvider, IEventSource
from src.response_time.domain import BusinessHoursConfig, Event, FetchOutcome
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

EVENTS_PATH = "/api/v4/events"


def parse_event(raw: Any) -> Optional[Event]:
    """
    Build an Event from one feed item.

    Returns None for items missing a type, entity id or creation time.
    The new responsible user of an ownership change is read from the first
    `value_after` entry, either as `responsible_user_id` or as
    `responsible_user.id`.
    """
    if not isinstance(raw, dict):
        return None

    try:
        event_type = raw["type"]
        entity_id = int(raw["entity_id"])
        created_at = int(raw["created_at"])
    except (KeyError, TypeError, ValueError):
        return None

    actor_id = raw.get("created_by")
    if actor_id is not None:
        try:
            actor_id = int(actor_id)
        except (TypeError, ValueError):
            actor_id = None

    return Event(
        id=str(raw.get("id", "")),
        type=str(event_type),
        entity_id=entity_id,
        created_at=created_at,
        actor_id=actor_id,
        new_responsible_id=_new_responsible_id(raw.get("value_after")),
    )


def _new_responsible_id(value_after: Any) -> Optional[int]:
    if not isinstance(value_after, list) or not value_after:
        return None
    first = value_after[0]
    if not isinstance(first, dict):
        return None

    user_id = first.get("responsible_user_id")
    if user_id is None and isinstance(first.get("responsible_user"), dict):
        user_id = first["responsible_user"].get("id")

    try:
        return int(user_id) if user_id else None
    except (TypeError, ValueError):
        return None


class CrmEventsClient(IEventSource):
    """
    Paginated client for the CRM events API.

    Fetching is sequential and bounded three ways: a page ceiling, a
    per-page timeout and a wall-clock budget for the whole fetch. Any
    failure stops pagination; the events gathered so far are returned in
    a FetchOutcome that records why fetching stopped.
    """

    def __init__(
        self,
        page_size: Optional[int] = None,
        max_pages: Optional[int] = None,
        page_timeout_seconds: Optional[float] = None,
        fetch_budget_seconds: Optional[float] = None,
        user_agent: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.page_size = page_size or settings.events_page_size
        self.max_pages = max_pages or settings.events_max_pages
        self.page_timeout_seconds = page_timeout_seconds or settings.events_page_timeout_seconds
        self.fetch_budget_seconds = fetch_budget_seconds or settings.events_fetch_budget_seconds
        self.user_agent = user_agent or settings.events_user_agent
        self._http_client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.page_timeout_seconds)
            )
        return self._http_client

    def _build_params(
        self,
        event_types: Iterable[str],
        from_timestamp: int,
        to_timestamp: int,
        page: int
    ) -> List[tuple]:
        params = [("filter[type][]", event_type) for event_type in event_types]
        params.extend([
            ("filter[created_at][from]", from_timestamp),
            ("filter[created_at][to]", to_timestamp),
            ("limit", self.page_size),
            ("page", page),
        ])
        return params

    async def fetch_page(
        self,
        account_url: str,
        access_token: str,
        event_types: Iterable[str],
        from_timestamp: int,
        to_timestamp: int,
        page: int
    ) -> List[Any]:
        """
        Fetch one page of raw events.

        Returns an empty list for 204 responses and for payloads that are
        not valid JSON or lack `_embedded.events`.

        Raises:
            EventFeedException: on non-2xx status or transport failure.
            httpx.TimeoutException: when the request times out.
        """
        client = await self._get_client()
        url = f"{account_url.rstrip('/')}{EVENTS_PATH}"

        try:
            response = await client.get(
                url,
                params=self._build_params(event_types, from_timestamp, to_timestamp, page),
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Content-Type": "application/json",
                    "User-Agent": self.user_agent,
                },
            )
        except httpx.TimeoutException:
            raise
        except httpx.HTTPError as e:
            raise EventFeedException(str(e) or type(e).__name__, page=page) from e

        if response.status_code == 204:
            return []
        if not response.is_success:
            raise EventFeedException(
                f"events API returned {response.status_code}",
                page=page,
                status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError:
            logger.warning("Unparseable events page treated as empty", extra={"page": page})
            return []

        embedded = data.get("_embedded") if isinstance(data, dict) else None
        events = embedded.get("events") if isinstance(embedded, dict) else None
        if not isinstance(events, list):
            logger.warning("Events page without _embedded.events", extra={"page": page})
            return []
        return events

    async def fetch_events(
        self,
        account_url: str,
        access_token: str,
        from_timestamp: int,
        to_timestamp: int,
        event_types: Iterable[str] = TRACKED_EVENT_TYPES,
        cancel_event: Optional[asyncio.Event] = None
    ) -> FetchOutcome:
        """
        Fetch every event of the given types created within [from, to].

        Never raises for feed problems. Setting `cancel_event` stops the
        fetch before the next page is requested.
        """
        event_types = list(event_types)
        outcome = FetchOutcome()
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.fetch_budget_seconds
        page = 1

        while True:
            if cancel_event is not None and cancel_event.is_set():
                outcome.stop_reason = FetchStopReason.CANCELLED
                break
            if page > self.max_pages:
                outcome.stop_reason = FetchStopReason.PAGE_LIMIT
                break

            remaining = deadline - loop.time()
            if remaining <= 0:
                outcome.stop_reason = FetchStopReason.BUDGET_EXHAUSTED
                break
            page_timeout = min(self.page_timeout_seconds, remaining)

            try:
                raw_events = await asyncio.wait_for(
                    self.fetch_page(
                        account_url, access_token, event_types,
                        from_timestamp, to_timestamp, page
                    ),
                    timeout=page_timeout,
                )
            except (asyncio.TimeoutError, httpx.TimeoutException):
                outcome.stop_reason = (
                    FetchStopReason.TIMEOUT
                    if page_timeout >= self.page_timeout_seconds
                    else FetchStopReason.BUDGET_EXHAUSTED
                )
                logger.error("Events fetch timeout", extra={"page": page})
                break
            except EventFeedException as e:
                outcome.stop_reason = (
                    FetchStopReason.HTTP_ERROR if e.status_code else FetchStopReason.TRANSPORT_ERROR
                )
                logger.error(
                    "Events fetch failed",
                    extra={"page": page, "status_code": e.status_code, "error": e.message}
                )
                break

            outcome.pages_fetched += 1
            if not raw_events:
                outcome.stop_reason = FetchStopReason.EXHAUSTED
                break

            outcome.raw_event_count += len(raw_events)
            for raw in raw_events:
                event = parse_event(raw)
                if event is None:
                    logger.debug("Dropping malformed event", extra={"page": page})
                    continue
                outcome.events.append(event)

            if len(raw_events) < self.page_size:
                outcome.stop_reason = FetchStopReason.EXHAUSTED
                break
            page += 1

        logger.info(
            "Events fetch finished",
            extra={
                "events": len(outcome.events),
                "raw_events": outcome.raw_event_count,
                "pages": outcome.pages_fetched,
                "stop_reason": outcome.stop_reason,
            }
        )
        return outcome

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None


class ConfigFileHandler(FileSystemEventHandler):
    """Watchdog event handler for business-hours config file changes."""

    def __init__(self, config_manager: "BusinessHoursConfigManager", config_path: Path):
        self.config_manager = config_manager
        self.config_path = config_path
        super().__init__()

    def on_modified(self, event):
        """Handle file modification event."""
        if event.is_directory:
            return
        if Path(event.src_path).resolve() == self.config_path.resolve():
            logger.info(f"Business-hours config changed: {event.src_path}")
            self.config_manager.reload()


class BusinessHoursConfigManager(IBusinessHoursProvider):
    """
    Thread-safe business-hours configuration with hot reload.

    Uses watchdog to pick up edits of the YAML file without restarting
    the service. A missing file means the built-in defaults.
    """

    def __init__(self):
        self._config: Optional[BusinessHoursConfig] = None
        self._lock = threading.Lock()
        self._path: Optional[Path] = None
        self._observer = None

    def load(self, path: Path) -> BusinessHoursConfig:
        """Initial configuration load."""
        self._path = Path(path)
        config = self._load_from_file(self._path)
        with self._lock:
            self._config = config
        return config

    def _load_from_file(self, path: Path) -> BusinessHoursConfig:
        """Load and validate the YAML config file."""
        if not path.exists():
            logger.warning(f"Business-hours config not found: {path}, using defaults")
            return BusinessHoursConfig()

        try:
            with open(path, "r") as f:
                data: Dict[str, Any] = yaml.safe_load(f) or {}
            return BusinessHoursConfig(**data.get("business_hours", data))
        except (OSError, yaml.YAMLError, ValidationError, TypeError, AttributeError) as e:
            raise ConfigurationException(
                f"Invalid business-hours config: {path}",
                {"path": str(path), "error": str(e)}
            ) from e

    def reload(self) -> bool:
        """Reload configuration from file, keeping the old one on error."""
        if self._path is None:
            return False

        try:
            new_config = self._load_from_file(self._path)
        except ConfigurationException as e:
            logger.error(f"Failed to reload business-hours config: {e.details.get('error')}")
            return False

        with self._lock:
            self._config = new_config
        logger.info("Business-hours configuration reloaded")
        return True

    def start_watching(self) -> None:
        """
        Start watching the configuration file for changes.

        Skipped when the file does not exist or the platform cannot
        watch files (e.g. some containers).
        """
        if self._path is None:
            raise RuntimeError("Config not loaded. Call load() first.")

        if not self._path.exists():
            logger.info(f"Config file doesn't exist, skipping file watch: {self._path}")
            return

        try:
            self._observer = Observer()
            self._observer.schedule(
                ConfigFileHandler(self, self._path),
                str(self._path.parent),
                recursive=False
            )
            self._observer.start()
            logger.info(f"Started watching config file: {self._path}")
        except OSError as e:
            logger.warning(f"File watching not available, using static config: {e}")
            self._observer = None

    def stop_watching(self) -> None:
        """Stop watching configuration file (safe to call even if not watching)."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

    @property
    def config(self) -> BusinessHoursConfig:
        """Get current configuration."""
        with self._lock:
            if self._config is None:
                raise RuntimeError("Business-hours configuration not loaded")
            return self._config

    def get_config(self) -> BusinessHoursConfig:
        return self.config
