"""
Document: the assembled, typed model of one level file.

Produced once by parser.parse(); edited afterwards only through the
mutation methods, each of which returns a Result instead of raising.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from mmdat.blocks import BlockGraph, BlockType, VisualBlock
from mmdat.data_model import (
    Entity, EntityKind, Info, MutationError, Objective, ResourceList, Result,
    Section, Wire,
)
from mmdat.grid import Grid


@dataclass(eq=False)
class Document:
    info: Optional[Info] = None
    tiles: Optional[Grid] = None
    height: Optional[Grid] = None
    resources: ResourceList = field(default_factory=ResourceList)
    objectives: List[Objective] = field(default_factory=list)
    entities: List[Entity] = field(default_factory=list)
    blocks: BlockGraph = field(default_factory=BlockGraph)
    # Unknown sections, verbatim, in source order
    extra_sections: List[Section] = field(default_factory=list)
    # Section names in the order they appeared in the source text
    section_order: List[str] = field(default_factory=list)

    # ── Views ─────────────────────────────────────────────────────────

    def entities_of(self, kind: EntityKind) -> List[Entity]:
        return [e for e in self.entities if e.kind == kind]

    @property
    def buildings(self) -> List[Entity]:
        return self.entities_of(EntityKind.BUILDING)

    @property
    def vehicles(self) -> List[Entity]:
        return self.entities_of(EntityKind.VEHICLE)

    @property
    def creatures(self) -> List[Entity]:
        return self.entities_of(EntityKind.CREATURE)

    @property
    def miners(self) -> List[Entity]:
        return self.entities_of(EntityKind.MINER)

    def entities_by_kind(self) -> Dict[EntityKind, List[Entity]]:
        return {kind: self.entities_of(kind) for kind in EntityKind}

    def extra_section(self, name) -> Optional[Section]:
        for section in self.extra_sections:
            if section.name == name:
                return section
        return None

    # ── Mutations ─────────────────────────────────────────────────────

    def set_tile(self, row, col, tile_id) -> Result:
        if self.tiles is None:
            return Result.failure(MutationError.OUT_OF_BOUNDS, 'Document has no tiles grid')
        if not self.tiles.in_bounds(row, col):
            return Result.failure(
                MutationError.OUT_OF_BOUNDS,
                f'Tile ({row}, {col}) is outside the {self.tiles.rows}x{self.tiles.cols} map')
        return self.tiles.set(row, col, tile_id)

    def add_entity(self, entity: Entity) -> Result:
        """Append an entity; rejected when it lies outside an existing tiles grid."""
        if self.tiles is not None and not self.tiles.in_bounds(entity.y, entity.x):
            return Result.failure(
                MutationError.OUT_OF_BOUNDS,
                f'{entity.type} at x={entity.x}, y={entity.y} is outside the '
                f'{self.tiles.rows}x{self.tiles.cols} map')
        self.entities.append(entity)
        return Result.success(entity)

    def add_block(self, block: VisualBlock) -> Result:
        """Append a block to the graph.

        `block.block_type` may be given as a BlockType or its name; an unknown
        name fails with UNKNOWN_BLOCK_TYPE.
        """
        block_type = BlockType.from_name(block.block_type)
        if block_type is None:
            return Result.failure(
                MutationError.UNKNOWN_BLOCK_TYPE, f'Unknown block type {block.block_type!r}')
        if block.id in self.blocks.block_ids():
            return Result.failure(
                MutationError.DUPLICATE_ID, f'Block id {block.id} is already in use')
        if self.tiles is not None and not self.tiles.in_bounds(block.row, block.col):
            return Result.failure(
                MutationError.OUT_OF_BOUNDS,
                f'Block {block.id} at {block.row},{block.col} is outside the '
                f'{self.tiles.rows}x{self.tiles.cols} map')
        block.block_type = block_type
        self.blocks.blocks.append(block)
        return Result.success(block)

    def add_wire(self, wire: Wire) -> Result:
        ids = self.blocks.block_ids()
        for endpoint in (wire.source, wire.target):
            if endpoint not in ids:
                return Result.failure(
                    MutationError.UNKNOWN_BLOCK, f'Wire endpoint {endpoint} is not a block')
        self.blocks.wires.append(wire)
        return Result.success(wire)

    # ── Equality ──────────────────────────────────────────────────────

    def __eq__(self, other):
        """Field-by-field equality; entities compare per kind, section order is ignored."""
        if not isinstance(other, Document):
            return NotImplemented
        return (self.info == other.info
                and self.tiles == other.tiles
                and self.height == other.height
                and self.resources == other.resources
                and self.objectives == other.objectives
                and self.entities_by_kind() == other.entities_by_kind()
                and self.blocks == other.blocks
                and self.extra_sections == other.extra_sections)
