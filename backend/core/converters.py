import re
from typing import Optional

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_name(name: str) -> str:
    """Lowercase, trim, and replace every character outside [a-z0-9] with '_'."""
    return _NON_ALNUM.sub("_", (name or "").strip().lower())


def inventory_key(owner_id: str, name: str) -> str:
    """Primary key of an owner's inventory item: `<owner_id>_<normalized name>`."""
    return f"{owner_id}_{normalize_name(name)}"


def minor_from_price(price: Optional[float]) -> Optional[int]:
    if price is None:
        return None
    try:
        return int(round(float(price) * 100))
    except Exception:
        return None


def price_from_minor(minor: Optional[int]) -> Optional[float]:
    if minor is None:
        return None
    return float(minor) / 100.0
