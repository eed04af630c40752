"""Inventory tree and the availability resolver

Units are resolved once into explicit Parent / Child / Standalone nodes so the
exclusivity rule never has to compare parent ids ad hoc:

- a booked Parent blocks itself and every one of its Children;
- a booked Child blocks itself and its Parent, siblings stay bookable;
- a Standalone unit is blocked only by its own reservations.
"""
import logging
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Union

from pydantic import BaseModel

from gite_booking.domain.entities import Reservation, Unit
from gite_booking.domain.enums import AccommodationType

logger = logging.getLogger(__name__)


class ParentNode(BaseModel):
    unit_id: int
    children: FrozenSet[int] = frozenset()

    class Config:
        frozen = True


class ChildNode(BaseModel):
    unit_id: int
    parent_id: int

    class Config:
        frozen = True


class StandaloneNode(BaseModel):
    unit_id: int

    class Config:
        frozen = True


InventoryNode = Union[ParentNode, ChildNode, StandaloneNode]


class Inventory:
    """Read-only view over the units of a property, built per query"""

    def __init__(self, units: Dict[int, Unit], nodes: Dict[int, InventoryNode]):
        self._units = units
        self._nodes = nodes

    @classmethod
    def from_units(cls, units: Iterable[Unit]) -> "Inventory":
        """Resolve the flat unit list into tagged nodes, checking the tree invariants"""
        by_id = {unit.unit_id: unit for unit in units}
        children: Dict[int, Set[int]] = {}

        for unit in by_id.values():
            if unit.parent_unit_id is None:
                continue
            parent = by_id.get(unit.parent_unit_id)
            if parent is None:
                raise ValueError(
                    f"Unit {unit.unit_id} references unknown parent {unit.parent_unit_id}"
                )
            if parent.accommodation_type != AccommodationType.WHOLE:
                raise ValueError(
                    f"Unit {unit.unit_id} has parent {parent.unit_id} which is not a Whole unit"
                )
            if parent.parent_unit_id is not None:
                raise ValueError(
                    f"Unit {unit.unit_id} would be a grandchild of {parent.parent_unit_id}"
                )
            children.setdefault(parent.unit_id, set()).add(unit.unit_id)

        nodes: Dict[int, InventoryNode] = {}
        for unit in by_id.values():
            if unit.parent_unit_id is not None:
                nodes[unit.unit_id] = ChildNode(unit_id=unit.unit_id, parent_id=unit.parent_unit_id)
            elif unit.unit_id in children or unit.accommodation_type == AccommodationType.WHOLE:
                nodes[unit.unit_id] = ParentNode(
                    unit_id=unit.unit_id,
                    children=frozenset(children.get(unit.unit_id, ()))
                )
            else:
                nodes[unit.unit_id] = StandaloneNode(unit_id=unit.unit_id)

        return cls(by_id, nodes)

    def __contains__(self, unit_id: int) -> bool:
        return unit_id in self._nodes

    def unit(self, unit_id: int) -> Optional[Unit]:
        return self._units.get(unit_id)

    def node(self, unit_id: int) -> Optional[InventoryNode]:
        return self._nodes.get(unit_id)

    def units(self) -> List[Unit]:
        return sorted(self._units.values(), key=lambda u: u.unit_id)

    def nodes(self) -> List[InventoryNode]:
        return [self._nodes[unit_id] for unit_id in sorted(self._nodes)]

    def group_key(self, unit_id: int) -> int:
        """Serialization key shared by a Parent and all of its Children"""
        node = self._nodes.get(unit_id)
        if isinstance(node, ChildNode):
            return node.parent_id
        return unit_id


def resolve_blocked(inventory: Inventory, overlapping_reservations: Iterable[Reservation]) -> Set[int]:
    """Compute the unit ids blocked by the given overlapping reservations"""
    booked = {r.unit_id for r in overlapping_reservations if r.is_active()}
    blocked: Set[int] = set()

    for node in inventory.nodes():
        if isinstance(node, ParentNode):
            if node.unit_id in booked:
                # Whole-property booking excludes every slot
                blocked.add(node.unit_id)
                blocked.update(node.children)
            else:
                booked_children = node.children & booked
                if booked_children:
                    # A partially occupied property cannot be rented whole
                    blocked.update(booked_children)
                    blocked.add(node.unit_id)
        elif isinstance(node, StandaloneNode):
            if node.unit_id in booked:
                blocked.add(node.unit_id)

    logger.debug(f"Booked units {sorted(booked)} block {sorted(blocked)}")
    return blocked


def apply_occupancy_filter(inventory: Inventory, blocked: Set[int], party_size: Optional[int]) -> Set[int]:
    """Add units too small for the party; runs after exclusivity blocking"""
    if party_size is None:
        return set(blocked)
    too_small = {unit.unit_id for unit in inventory.units() if not unit.can_host(party_size)}
    return set(blocked) | too_small
