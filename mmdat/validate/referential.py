"""
Referential checks: everything that points at a tile or another record
must point at something that exists.
"""
import logging
from collections import defaultdict

from mmdat.data_model import (
    EntityKind, IssueCategory, ObjectiveKind, Severity, ValidationIssue,
    TELEPORT_PAD_MARKER, TELEPORT_TAG_PROPERTY, TOOL_STORE_TYPE,
)
from mmdat.tiles import is_buildable

logger = logging.getLogger(__name__)

# Entities that must stand on the map and on buildable ground
PLACED_KINDS = (EntityKind.BUILDING, EntityKind.VEHICLE)


def _issue(severity, section, message, location=None):
    return ValidationIssue(severity, IssueCategory.REFERENTIAL, section, message, location)


def check_entity_placement(doc):
    """Buildings/vehicles in bounds and on buildable tiles; creatures/miners in bounds."""
    tiles = doc.tiles
    if tiles is None:
        return []
    issues = []
    for e in doc.entities:
        section = e.kind.value
        row, col = e.position
        if not tiles.in_bounds(row, col):
            severity = Severity.ERROR if e.kind in PLACED_KINDS else Severity.WARNING
            issues.append(_issue(
                severity, section,
                f'{e.type} at x={e.x}, y={e.y} is outside the {tiles.rows}x{tiles.cols} map'))
            continue
        if e.kind in PLACED_KINDS and not is_buildable(tiles[row, col]):
            issues.append(_issue(
                Severity.WARNING, section,
                f'{e.type} sits on non-buildable tile {tiles[row, col]}', (row, col)))
    return issues


def check_teleport_pairs(doc):
    """Every tagged teleport pad needs at least one other pad with the same tag."""
    by_tag = defaultdict(list)
    for b in doc.buildings:
        if TELEPORT_PAD_MARKER in b.type and TELEPORT_TAG_PROPERTY in b.properties:
            by_tag[b.properties[TELEPORT_TAG_PROPERTY]].append(b)
    return [
        _issue(Severity.WARNING, 'buildings',
               f'Teleport pad tag {tag!r} has no matching pad', pads[0].position)
        for tag, pads in by_tag.items() if len(pads) < 2
    ]


def check_tool_store(doc):
    buildings = doc.buildings
    if not buildings or any(b.type == TOOL_STORE_TYPE for b in buildings):
        return []
    return [_issue(Severity.WARNING, 'buildings', f'No Tool Store ({TOOL_STORE_TYPE}) placed')]


def check_resource_positions(doc):
    tiles = doc.tiles
    if tiles is None:
        return []
    return [
        _issue(Severity.ERROR, 'resources',
               f'{name} deposit at x={d.x}, y={d.y} is outside the map')
        for name, deposits in doc.resources.deposits.items()
        for d in deposits if not tiles.in_bounds(d.y, d.x)
    ]


def check_objective_locations(doc):
    tiles = doc.tiles
    if tiles is None:
        return []
    issues = []
    for obj in doc.objectives:
        if obj.kind != ObjectiveKind.DISCOVER or obj.location is None:
            continue
        x, y = obj.location
        if not tiles.in_bounds(y, x):
            issues.append(_issue(
                Severity.ERROR, 'objectives',
                f'Discover location x={x}, y={y} is outside the {tiles.rows}x{tiles.cols} map'))
    return issues


def check_block_positions(doc):
    tiles = doc.tiles
    if tiles is None:
        return []
    return [
        _issue(Severity.WARNING, 'blocks',
               f'Block {b.id} ({b.name}) at {b.row},{b.col} is outside the map')
        for b in doc.blocks.blocks if not tiles.in_bounds(b.row, b.col)
    ]


def check_referential(doc, config):
    issues = []
    issues.extend(check_entity_placement(doc))
    issues.extend(check_teleport_pairs(doc))
    issues.extend(check_tool_store(doc))
    issues.extend(check_resource_positions(doc))
    issues.extend(check_objective_locations(doc))
    issues.extend(check_block_positions(doc))
    issues.extend(doc.blocks.validate())
    logger.debug('Referential checks: %d issue(s)', len(issues))
    return issues
