import pytest

from core.converters import inventory_key, minor_from_price, normalize_name, price_from_minor


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Rice", "rice"),
        ("  Toor Dal ", "toor_dal"),
        ("Sunflower Oil 1L", "sunflower_oil_1l"),
        ("Chai-Patti (250g)", "chai_patti__250g_"),
        ("", ""),
    ],
)
def test_normalize_name(name, expected):
    assert normalize_name(name) == expected


def test_inventory_key_is_stable_across_spellings():
    assert inventory_key("v1", "Rice") == "v1_rice"
    assert inventory_key("v1", " rice ") == inventory_key("v1", "RICE")
    assert inventory_key("v1", "Rice") != inventory_key("v2", "Rice")


def test_minor_units():
    assert minor_from_price(165.5) == 16550
    assert minor_from_price(0.1 + 0.2) == 30
    assert minor_from_price(None) is None
    assert minor_from_price("n/a") is None
    assert price_from_minor(16550) == 165.5
    assert price_from_minor(None) is None
