"""
Tile-capability lookup table.

Maps a tile id to what the validation engine needs to know about it:
whether units can walk on it, whether buildings can be placed on it,
whether it blocks flood-fill propagation, and which resource (if any)
a seam tile yields.

Wall and seam families occupy four consecutive ids (the base id plus
three shape variants); base + 50 is the reinforced form of the same
family. Ids above 100 are the same terrain as id - 100, marked as not
yet uncovered in the level.
"""
from dataclasses import dataclass, replace
from typing import Dict, Optional

HIDDEN_OFFSET = 100
REINFORCED_OFFSET = 50
FAMILY_VARIANTS = 4


@dataclass(frozen=True)
class TileCapability:
    name: str
    walkable: bool = False
    buildable: bool = False
    wall: bool = False
    hazard: bool = False
    resource: Optional[str] = None     # 'crystals', 'ore' or 'recharge'


def _ground(name, buildable=False):
    return TileCapability(name, walkable=True, buildable=buildable)


def _wall(name, resource=None):
    return TileCapability(name, wall=True, resource=resource)


def _hazard(name):
    return TileCapability(name, hazard=True)


BASE_TILES: Dict[int, TileCapability] = {
    1: _ground('Ground', buildable=True),
    2: _ground('Rubble (light)'),
    3: _ground('Rubble (medium)'),
    4: _ground('Rubble (heavy)'),
    5: _hazard('Hot Rock'),
    6: _hazard('Lava'),
    7: _hazard('Erosion (stage 1)'),
    8: _hazard('Erosion (stage 2)'),
    9: _hazard('Erosion (stage 3)'),
    10: _hazard('Erosion (stage 4)'),
    11: _hazard('Water'),
    12: _hazard('Slimy Slug Hole'),
    14: _ground('Power Path', buildable=True),
    26: _wall('Dirt'),
    30: _wall('Loose Rock'),
    34: _wall('Hard Rock'),
    38: _wall('Solid Rock'),
    42: _wall('Energy Crystal Seam', resource='crystals'),
    46: _wall('Ore Seam', resource='ore'),
    50: _wall('Recharge Seam', resource='recharge'),
    60: _ground('Landslide Rubble (light)'),
    61: _ground('Landslide Rubble (medium)'),
    62: _ground('Landslide Rubble (heavy)'),
    63: _ground('Landslide Rubble (dense)'),
    64: _ground('Landslide Rubble (full)'),
}


def _build_tile_table():
    table = dict(BASE_TILES)
    for tile_id, cap in BASE_TILES.items():
        if not cap.wall:
            continue
        for offset in range(1, FAMILY_VARIANTS):
            table[tile_id + offset] = replace(cap, name=f'{cap.name} (variant {offset})')
        for offset in range(FAMILY_VARIANTS):
            reinforced = tile_id + REINFORCED_OFFSET + offset
            # 101-103 are hidden ground, so reinforced recharge is a single id
            if reinforced > HIDDEN_OFFSET:
                break
            suffix = f' (variant {offset})' if offset else ''
            table[reinforced] = replace(cap, name=f'Reinforced {cap.name}{suffix}')

    for tile_id, cap in list(table.items()):
        table[tile_id + HIDDEN_OFFSET] = replace(cap, name=f'{cap.name} (hidden)')
    return table


TILE_CAPABILITIES: Dict[int, TileCapability] = _build_tile_table()

# Resource kind → every tile id that carries it
SEAM_TILES: Dict[str, frozenset] = {
    kind: frozenset(t for t, cap in TILE_CAPABILITIES.items() if cap.resource == kind)
    for kind in ('crystals', 'ore', 'recharge')
}
RESOURCE_TILES = frozenset().union(*SEAM_TILES.values())
WALKABLE_TILES = frozenset(t for t, cap in TILE_CAPABILITIES.items() if cap.walkable)
BUILDABLE_TILES = frozenset(t for t, cap in TILE_CAPABILITIES.items() if cap.buildable)


def tile_capability(tile_id) -> Optional[TileCapability]:
    """Capability record for a tile id, or None for ids outside the known space."""
    return TILE_CAPABILITIES.get(int(tile_id))


def is_known(tile_id) -> bool:
    return int(tile_id) in TILE_CAPABILITIES


def is_walkable(tile_id) -> bool:
    return int(tile_id) in WALKABLE_TILES


def is_buildable(tile_id) -> bool:
    return int(tile_id) in BUILDABLE_TILES
