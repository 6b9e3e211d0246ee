"""
Seating zone configuration.

Zones are configured, not stored: settings.TICKET_ZONES maps a zone code
to its capacity and canonical price (whole RWF), optionally a gate.

    TICKET_ZONES = {
        "VIP": {"capacity": 150, "price": 25000},
        "REGULAR": {"capacity": 1800, "price": 8000},
        "GENERAL": {"capacity": 3200, "price": 5000, "gate": "North"},
    }

The gate defaults to the zone code.
"""

from __future__ import annotations

from dataclasses import dataclass

from django.conf import settings


@dataclass(frozen=True)
class Zone:
    code: str
    capacity: int
    price: int
    gate: str


def normalize_zone_code(code: str) -> str:
    return (code or "").strip().upper()


def get_zones() -> dict[str, Zone]:
    """Return every configured zone keyed by code, in configuration order."""
    zones = {}
    for code, conf in settings.TICKET_ZONES.items():
        key = normalize_zone_code(code)
        zones[key] = Zone(
            code=key,
            capacity=int(conf["capacity"]),
            price=int(conf["price"]),
            gate=conf.get("gate") or key,
        )
    return zones


def get_zone(code: str) -> Zone | None:
    return get_zones().get(normalize_zone_code(code))
