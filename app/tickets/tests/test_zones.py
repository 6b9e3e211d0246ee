"""Tests for seating zone configuration."""

from tickets.zones import Zone, get_zone, get_zones, normalize_zone_code


class TestZones:
    def test_codes_are_normalized(self):
        assert normalize_zone_code(" vip ") == "VIP"
        assert normalize_zone_code(None) == ""

    def test_gate_defaults_to_zone_code(self, settings):
        settings.TICKET_ZONES = {
            "vip": {"capacity": 150, "price": 25000},
            "General": {"capacity": 3200, "price": "5000", "gate": "North"},
        }

        zones = get_zones()

        assert list(zones) == ["VIP", "GENERAL"]
        assert zones["VIP"] == Zone(code="VIP", capacity=150, price=25000, gate="VIP")
        assert zones["GENERAL"].gate == "North"
        assert zones["GENERAL"].price == 5000

    def test_unknown_zone(self, settings):
        settings.TICKET_ZONES = {"VIP": {"capacity": 150, "price": 25000}}

        assert get_zone("vip").capacity == 150
        assert get_zone("SKYBOX") is None
