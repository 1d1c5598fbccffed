"""
Accessibility checks: 4-neighbour flood fill over walkable tiles.

The reachable set is seeded at building positions (or, with no buildings,
the largest walkable region). Walls and hazards block propagation. Every
resource seam needs at least one reachable neighbour to be mined.
"""
import logging
from collections import deque
from typing import List, Tuple

import numpy as np

from mmdat.data_model import IssueCategory, Severity, ValidationIssue
from mmdat.tiles import RESOURCE_TILES, WALKABLE_TILES, tile_capability

logger = logging.getLogger(__name__)


def _issue(severity, message, location=None):
    return ValidationIssue(severity, IssueCategory.ACCESSIBILITY, 'tiles', message, location)


def label_regions(grid, walkable) -> Tuple[np.ndarray, List[int], List[Tuple[int, int]]]:
    """Connected components of a walkable mask.

    Returns:
        (labels, sizes, starts): labels is -1 on non-walkable cells, otherwise
        the region index into sizes. starts holds each region's first cell
        in row-major order.
    """
    labels = np.full(grid.shape, -1, dtype=np.int64)
    sizes = []
    starts = []
    for start in grid.positions(walkable):
        if labels[start] >= 0:
            continue
        region = len(sizes)
        labels[start] = region
        queue = deque([start])
        size = 0
        while queue:
            row, col = queue.popleft()
            size += 1
            for nr, nc in grid.neighbors(row, col):
                if walkable[nr, nc] and labels[nr, nc] < 0:
                    labels[nr, nc] = region
                    queue.append((nr, nc))
        sizes.append(size)
        starts.append(start)
    return labels, sizes, starts


def seed_regions(doc, labels, sizes) -> set:
    """Regions touched by a building tile or one of its neighbours."""
    tiles = doc.tiles
    seeds = set()
    for b in doc.buildings:
        row, col = b.position
        if not tiles.in_bounds(row, col):
            continue
        for r, c in [(row, col)] + list(tiles.neighbors(row, col)):
            if labels[r, c] >= 0:
                seeds.add(int(labels[r, c]))
    if not seeds and sizes:
        seeds.add(int(np.argmax(sizes)))
    return seeds


def flood_fill(doc):
    """Returns (labels, sizes, starts, seed regions, reachable mask) for doc.tiles."""
    tiles = doc.tiles
    labels, sizes, starts = label_regions(tiles, tiles.isin(WALKABLE_TILES))
    seeds = seed_regions(doc, labels, sizes)
    reachable = np.isin(labels, list(seeds)) if seeds else np.zeros(tiles.shape, dtype=bool)
    return labels, sizes, starts, seeds, reachable


def check_accessibility(doc, config):
    tiles = doc.tiles
    if tiles is None or tiles.array.size == 0:
        return []

    _, sizes, starts, seeds, reachable = flood_fill(doc)

    issues = []
    for row, col in tiles.positions(tiles.isin(RESOURCE_TILES)):
        if any(reachable[r, c] for r, c in tiles.neighbors(row, col)):
            continue
        name = tile_capability(tiles[row, col]).name
        issues.append(_issue(
            Severity.WARNING, f'{name} at {row},{col} is not accessible', (row, col)))

    for region, size in enumerate(sizes):
        if region in seeds or size >= config.small_region_size:
            continue
        issues.append(_issue(
            Severity.INFO, f'Isolated walkable area of {size} tile(s) is unreachable',
            starts[region]))

    logger.debug('Accessibility checks: %d issue(s), %d region(s), %d reachable tile(s)',
                 len(issues), len(sizes), int(reachable.sum()))
    return issues
