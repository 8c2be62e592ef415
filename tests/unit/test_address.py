"""Unit tests for the Address value object."""

from src.am_common.address import Address


class TestAddress:
    def test_complete_when_required_fields_present(self) -> None:
        addr = Address(street="1 Main", city="Pune", state="MH", postal_code="411001")
        assert addr.is_complete is True

    def test_blank_after_trim_is_incomplete(self) -> None:
        addr = Address(street="   ", city="Pune", state="MH", postal_code="411001")
        assert addr.is_complete is False

    def test_country_defaults_to_india(self) -> None:
        assert Address().country == "India"

    def test_from_dict_fills_missing_keys(self) -> None:
        addr = Address.from_dict({"street": "1 Main", "city": "Pune"}, "India")
        assert addr.state == ""
        assert addr.country == "India"
        assert addr.is_complete is False

    def test_from_dict_none(self) -> None:
        assert Address.from_dict(None) == Address()

    def test_to_dict_round_trip(self) -> None:
        addr = Address(street="1 Main", city="Pune", state="MH", postal_code="411001")
        assert Address.from_dict(addr.to_dict()) == addr
