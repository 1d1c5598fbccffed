import numpy as np

from mmdat.data_model import Entity, EntityKind, IssueCategory, Severity
from mmdat.grid import Grid
from mmdat.parser import parse
from mmdat.validate import ValidationConfig, flood_fill, label_regions, validate
from mmdat.validate.constants import ACCESSIBILITY

from conftest import make_level

# Crystal seam at (2,2) walled in by solid rock, ground ring around it
WALLED_SEAM = [
    [1, 1, 1, 1, 1],
    [1, 38, 38, 38, 1],
    [1, 38, 42, 38, 1],
    [1, 38, 38, 38, 1],
    [1, 1, 1, 1, 1],
]


def _accessibility(doc, **config):
    return validate(doc, ValidationConfig(checks=[ACCESSIBILITY], **config))


def test_walled_in_seam_is_inaccessible():
    doc, _ = parse(make_level(WALLED_SEAM))
    issues = _accessibility(doc)
    assert len(issues) == 1
    issue = issues[0]
    assert issue.severity == Severity.WARNING
    assert issue.category == IssueCategory.ACCESSIBILITY
    assert issue.location == (2, 2)
    assert '2,2' in issue.message


def test_seam_on_open_ground_is_accessible():
    doc, _ = parse(make_level([[1, 1, 1, 1], [1, 42, 46, 1], [1, 50, 1, 1]]))
    assert _accessibility(doc) == []


def test_single_tile_seam_with_no_floor():
    doc, _ = parse('info{\nrowcount:1\ncolcount:1\n}\ntiles{\n42\n}\n')
    assert len(_accessibility(doc)) == 1


def test_label_regions():
    grid = Grid.from_rows([[1, 38, 1], [1, 38, 1], [38, 38, 1]])
    labels, sizes, starts = label_regions(grid, grid.isin({1}))
    assert sorted(sizes) == [2, 3]
    assert starts == [(0, 0), (0, 2)]
    assert labels[0, 1] == -1
    assert labels[0, 0] == labels[1, 0]
    assert labels[0, 0] != labels[0, 2]


def test_buildings_seed_the_fill():
    # Two floors split by rock; ore seam only touches the left one
    tiles = [
        [1, 46, 38, 1, 1, 1],
        [1, 1, 38, 1, 1, 1],
    ]
    doc, _ = parse(make_level(tiles))
    # Without buildings the larger right-hand floor is the seed
    issues = _accessibility(doc)
    assert [i.location for i in issues if i.severity == Severity.WARNING] == [(0, 1)]

    doc.add_entity(Entity(EntityKind.BUILDING, 'BuildingToolStore_C', 0, 1))
    issues = _accessibility(doc)
    assert not [i for i in issues if i.severity == Severity.WARNING]
    assert [i.location for i in issues if i.severity == Severity.INFO] == [(0, 3)]


def test_hazards_block_propagation():
    doc, _ = parse(make_level([[1, 1, 6, 1, 42]]))
    doc.add_entity(Entity(EntityKind.BUILDING, 'BuildingToolStore_C', 0, 0))
    _, _, _, _, reachable = flood_fill(doc)
    assert np.array_equal(reachable, [[True, True, False, False, False]])
    assert [i.location for i in _accessibility(doc) if i.severity == Severity.WARNING] == [(0, 4)]


def test_small_isolated_region_is_info():
    tiles = [[1] * 6 for _ in range(3)] + [[38] * 6, [1, 38, 38, 38, 38, 38]]
    doc, _ = parse(make_level(tiles))
    issues = _accessibility(doc)
    assert len(issues) == 1
    assert issues[0].severity == Severity.INFO
    assert issues[0].location == (4, 0)
    assert _accessibility(doc, small_region_size=1) == []


def test_walled_in_seam_variant_is_inaccessible():
    tiles = [row[:] for row in WALLED_SEAM]
    tiles[2][2] = 43
    doc, _ = parse(make_level(tiles))
    issues = _accessibility(doc)
    assert [i.location for i in issues] == [(2, 2)]
    assert 'Energy Crystal Seam (variant 1)' in issues[0].message


def test_checkerboard_reports_every_isolated_tile():
    size = 20
    tiles = [[1 if (r + c) % 2 == 0 else 38 for c in range(size)] for r in range(size)]
    doc, _ = parse(make_level(tiles))
    issues = _accessibility(doc)
    ground = [(r, c) for r in range(size) for c in range(size) if (r + c) % 2 == 0]
    # the first ground tile is the seed region when there are no buildings
    assert [i.location for i in issues] == ground[1:]
    assert all(i.severity == Severity.INFO for i in issues)
