"""Inventory helpers. An item is held when its key is present with a count > 0."""

from __future__ import annotations

from typing import Dict, Iterable, List

from .story_schema import InventoryEffect


def has_item(inventory: Dict[str, int], item: str) -> bool:
    if not isinstance(inventory, dict) or not isinstance(item, str):
        return False
    key = item.strip()
    if not key:
        return False
    try:
        return int(inventory.get(key, 0)) > 0
    except (TypeError, ValueError):
        return False


def apply_inventory_effects(
    inventory: Dict[str, int], effects: Iterable[InventoryEffect]
) -> List[InventoryEffect]:
    applied: List[InventoryEffect] = []
    for effect in effects or []:
        item = effect.item.strip() if isinstance(effect.item, str) else ""
        if not item or not effect.delta:
            continue
        updated = inventory.get(item, 0) + effect.delta
        if updated <= 0:
            inventory.pop(item, None)
        else:
            inventory[item] = updated
        applied.append(InventoryEffect(item=item, delta=effect.delta))
    return applied


def format_inventory(inventory: Dict[str, int], *, empty: str = "—") -> str:
    if not inventory:
        return empty
    return ", ".join(f"{name} x{count}" for name, count in sorted(inventory.items()))
