"""Writes the production starter data set (rooms, menu, stock, accounts)."""

import logging
from pathlib import Path
from typing import Any

import yaml

from hotel_pos.application.services.storage_facade import StorageFacade
from hotel_pos.domain import collections as c
from hotel_pos.domain.exceptions import InvalidPayloadError, SeedRefusedError

logger = logging.getLogger(__name__)

# Insertion order of the plain record lists in the seed file.
_SEEDED_LISTS = (
    c.KTV_ROOMS,
    c.PAYMENT_METHODS,
    c.DISHES,
    c.INVENTORY,
    c.SIGN_BILL_ACCOUNTS,
)


def build_hotel_rooms(layout: dict[str, Any]) -> list[dict[str, Any]]:
    """Expand the wing layout into one record per room (``8201`` … ``8332``).

    The first ``standard_per_wing`` rooms of each wing get the ``standard``
    attributes, the remainder the ``deluxe`` ones.
    """
    rooms: list[dict[str, Any]] = []
    per_wing = int(layout.get("rooms_per_wing", 32))
    standard_count = int(layout.get("standard_per_wing", per_wing // 2))
    defaults = layout.get("defaults", {})
    for wing in layout.get("wings", []):
        for number in range(1, per_wing + 1):
            tier = layout["standard"] if number <= standard_count else layout["deluxe"]
            rooms.append({
                "roomNumber": f"{wing}{number:02d}",
                **tier,
                **defaults,
                "amenities": list(defaults.get("amenities", [])),
            })
    return rooms


class SeedService:
    """Seeds a real backend; refuses to touch the in-memory fallback."""

    def __init__(self, facade: StorageFacade, data_path: Path):
        self._facade = facade
        self._data_path = data_path

    def load_seed_data(self) -> dict[str, Any]:
        try:
            with open(self._data_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as exc:
            logger.exception("Failed to load seed data: %s", self._data_path)
            raise InvalidPayloadError("seed", f"cannot read {self._data_path}: {exc}") from exc
        if not isinstance(data, dict):
            raise InvalidPayloadError("seed", f"{self._data_path} must hold a mapping")
        return data

    async def seed(self) -> dict[str, int]:
        """Write every starter record and return the count per collection."""
        status = await self._facade.connection_status()
        if not status.is_real_connection:
            logger.warning("Seed refused: backend '%s' is not a real connection", status.backend)
            raise SeedRefusedError(status.backend)

        data = self.load_seed_data()
        counts: dict[str, int] = {}

        rooms = build_hotel_rooms(data.get(c.HOTEL_ROOMS) or {})
        for room in rooms:
            await self._facade.create(c.HOTEL_ROOMS, room)
        counts[c.HOTEL_ROOMS] = len(rooms)

        for collection in _SEEDED_LISTS:
            records = data.get(collection) or []
            for record in records:
                await self._facade.create(collection, record)
            counts[collection] = len(records)

        settings = data.get(c.SYSTEM_SETTINGS)
        if settings:
            await self._facade.put(c.SYSTEM_SETTINGS, c.DEFAULT_SETTINGS_ID, settings)
            counts[c.SYSTEM_SETTINGS] = 1

        logger.info(
            "Seeded %d records into '%s' backend: %s",
            sum(counts.values()),
            status.backend,
            ", ".join(f"{name}={n}" for name, n in counts.items()),
        )
        return counts
