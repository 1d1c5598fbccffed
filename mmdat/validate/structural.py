"""
Structural checks: required sections, declared vs actual dimensions,
tile-id range, height map shape, numeric info ranges.
"""
import logging

import numpy as np

from mmdat.data_model import IssueCategory, Severity, ValidationIssue
from mmdat.tiles import BUILDABLE_TILES, TILE_CAPABILITIES
from mmdat.validate.constants import REQUIRED_SECTIONS, SPIDER_RATE_RANGE

logger = logging.getLogger(__name__)

NON_NEGATIVE_INFO_KEYS = ('oxygen', 'initialcrystals', 'initialore')


def _issue(severity, section, message, location=None):
    return ValidationIssue(severity, IssueCategory.STRUCTURAL, section, message, location)


def check_required_sections(doc):
    present = {'info': doc.info is not None, 'tiles': doc.tiles is not None}
    return [
        _issue(Severity.ERROR, name, f'Missing required section {name}{{}}')
        for name in REQUIRED_SECTIONS if not present[name]
    ]


def check_dimensions(doc, config):
    """rowcount/colcount must be present, positive, sane, and match the tiles grid."""
    info = doc.info
    if info is None:
        return []
    issues = []
    for key in ('rowcount', 'colcount'):
        value = getattr(info, key)
        if value is None:
            issues.append(_issue(Severity.ERROR, 'info', f'Missing {key}'))
        elif value <= 0:
            issues.append(_issue(Severity.ERROR, 'info', f'{key} must be positive, got {value}'))
        elif value > config.max_dimension:
            issues.append(_issue(
                Severity.WARNING, 'info',
                f'{key}={value} exceeds {config.max_dimension}; very large maps may perform poorly'))

    tiles = doc.tiles
    if tiles is not None and info.rowcount is not None and info.colcount is not None:
        if (tiles.rows, tiles.cols) != (info.rowcount, info.colcount):
            issues.append(_issue(
                Severity.ERROR, 'tiles',
                f'Tiles grid is {tiles.rows}x{tiles.cols} but info declares '
                f'{info.rowcount}x{info.colcount} (rowcount={info.rowcount}, '
                f'colcount={info.colcount})'))
    return issues


def check_tile_ids(doc):
    """Unknown tile ids are warnings, one per distinct id."""
    tiles = doc.tiles
    if tiles is None or tiles.array.size == 0:
        return []
    issues = []
    unknown = ~tiles.isin(TILE_CAPABILITIES)
    for tile_id in np.unique(tiles.array[unknown]):
        positions = tiles.positions(tiles.array == tile_id)
        issues.append(_issue(
            Severity.WARNING, 'tiles',
            f'Unknown tile id {int(tile_id)} ({len(positions)} tile(s))',
            positions[0]))
    if not tiles.isin(BUILDABLE_TILES).any():
        issues.append(_issue(
            Severity.ERROR, 'tiles', 'No buildable ground tile; a Tool Store cannot be placed'))
    return issues


def check_height(doc):
    tiles, height = doc.tiles, doc.height
    if height is None:
        return [_issue(Severity.WARNING, 'height', 'Missing height{} section')]
    issues = []
    if tiles is not None and height.shape != tiles.shape:
        issues.append(_issue(
            Severity.ERROR, 'height',
            f'Height grid is {height.rows}x{height.cols} but tiles grid is '
            f'{tiles.rows}x{tiles.cols}'))
    negative = height.array < 0
    if negative.any():
        issues.append(_issue(
            Severity.WARNING, 'height',
            f'{int(negative.sum())} negative height value(s)',
            height.positions(negative)[0]))
    return issues


def check_info_ranges(doc):
    info = doc.info
    if info is None:
        return []
    issues = []
    low, high = SPIDER_RATE_RANGE
    if info.spiderrate is not None and not low <= info.spiderrate <= high:
        issues.append(_issue(
            Severity.ERROR, 'info', f'spiderrate must be between {low} and {high}, '
                                    f'got {info.spiderrate}'))
    for key in NON_NEGATIVE_INFO_KEYS:
        value = getattr(info, key)
        if value is not None and value < 0:
            issues.append(_issue(Severity.ERROR, 'info', f'{key} cannot be negative, got {value}'))
    return issues


def check_objectives_present(doc):
    if doc.objectives:
        return []
    return [_issue(Severity.INFO, 'objectives', 'No objectives defined')]


def check_structural(doc, config):
    issues = []
    issues.extend(check_required_sections(doc))
    issues.extend(check_dimensions(doc, config))
    issues.extend(check_tile_ids(doc))
    issues.extend(check_height(doc))
    issues.extend(check_info_ranges(doc))
    issues.extend(check_objectives_present(doc))
    logger.debug('Structural checks: %d issue(s)', len(issues))
    return issues
