from __future__ import annotations
import json
import logging
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Optional

from pydantic import ValidationError

from app.schemas import LocationModel
from models.records import Location
from settings import get_settings

logger = logging.getLogger(__name__)


class LocationStore:
    """Remembers the last selected location, optionally persisted as JSON."""

    def __init__(self, persistence_path: Optional[Path] = None) -> None:
        self._location: Optional[Location] = None
        self.persistence_path = persistence_path
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def save(self, location: Location) -> None:
        with self._lock:
            self._location = location
            self._persist()

    def load(self) -> Optional[Location]:
        with self._lock:
            return self._location

    def _persist(self) -> None:
        if not self.persistence_path or self._location is None:
            return
        payload = LocationModel.from_domain(self._location).model_dump(mode="json")
        self.persistence_path.write_text(json.dumps(payload, indent=2, sort_keys=True))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "null"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            data = None

        if data is None:
            return
        try:
            self._location = LocationModel.model_validate(data).to_domain()
        except ValidationError:
            logger.warning(
                "Ignoring unreadable last location",
                extra={"reason": str(self.persistence_path)},
            )


@lru_cache
def build_default_store(path: Optional[str] = None) -> LocationStore:
    settings = get_settings()
    store_path = settings.location_store_path if path is None else path
    persistence = Path(store_path) if store_path else None
    return LocationStore(persistence_path=persistence)
