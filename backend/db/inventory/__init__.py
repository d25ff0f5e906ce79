"""
Inventory (two locations: DEALER/VENDOR).

Models:
- InventoryItem (one row per owner and normalized name, quantity held on the row)
- InventoryMovement (append-only deltas recorded alongside every quantity change)
"""

LOCATION_DEALER = "DEALER"
LOCATION_VENDOR = "VENDOR"

ROLE_LOCATIONS = {
    "dealer": LOCATION_DEALER,
    "vendor": LOCATION_VENDOR,
}
