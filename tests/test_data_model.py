import pytest

from mmdat.data_model import (
    IssueCategory, MutationError, ParseError, ParseErrorKind, ResourceDeposit,
    ResourceList, Result, Severity, ValidationIssue,
)
from mmdat.tiles import (
    BUILDABLE_TILES, HIDDEN_OFFSET, RESOURCE_TILES, SEAM_TILES, is_buildable, is_known,
    is_walkable, tile_capability,
)


def test_result_truthiness():
    ok = Result.success(5)
    bad = Result.failure(MutationError.DUPLICATE_ID, 'taken')
    assert ok and ok.value == 5 and ok.error is None
    assert not bad
    assert bad.error == MutationError.DUPLICATE_ID
    assert bad.message == 'taken'


def test_parse_error_str():
    err = ParseError(ParseErrorKind.UNTERMINATED_SECTION, 'never closed', line=4)
    assert str(err) == '[error] unterminated_section (line 4): never closed'


def test_validation_issue_format():
    issue = ValidationIssue(Severity.WARNING, IssueCategory.ACCESSIBILITY, 'tiles',
                            'Ore Seam at 2,3 is not accessible', (2, 3))
    assert issue.format() == '[warning] accessibility tiles @2,3 :: Ore Seam at 2,3 is not accessible'
    plain = ValidationIssue(Severity.INFO, IssueCategory.STRUCTURAL, 'objectives', 'none')
    assert str(plain) == '[info] structural objectives :: none'


def test_resource_list_totals():
    resources = ResourceList({'crystals': [ResourceDeposit(0, 0, 3), ResourceDeposit(1, 1, 4)]})
    assert resources.total('crystals') == 7
    assert resources.total('ore') == 0
    assert resources.ore == []
    assert len(resources) == 2


@pytest.mark.parametrize("tile_id,walkable,buildable", [
    (1, True, True),
    (14, True, True),
    (2, True, False),
    (6, False, False),
    (38, False, False),
    (42, False, False),
    (43, False, False),
    (95, False, False),
    (101, True, True),
])
def test_tile_capabilities(tile_id, walkable, buildable):
    assert is_walkable(tile_id) == walkable
    assert is_buildable(tile_id) == buildable


@pytest.mark.parametrize("tile_id,resource", [
    (43, "crystals"),
    (45, "crystals"),
    (92, "crystals"),
    (95, "crystals"),
    (47, "ore"),
    (49, "ore"),
    (96, "ore"),
    (99, "ore"),
    (144, "crystals"),
    (197, "ore"),
    (51, "recharge"),
    (100, "recharge"),
])
def test_seam_variants_carry_their_resource(tile_id, resource):
    cap = tile_capability(tile_id)
    assert cap.wall and cap.resource == resource


@pytest.mark.parametrize("tile_id", [27, 33, 41, 76, 91, 188])
def test_wall_variants_are_plain_walls(tile_id):
    cap = tile_capability(tile_id)
    assert cap.wall and cap.resource is None


def test_reinforced_ids_stop_at_hidden_ground():
    assert tile_capability(101).walkable
    assert tile_capability(103).walkable
    assert tile_capability(100).name == "Reinforced Recharge Seam"


def test_hidden_tiles_mirror_base_tiles():
    for tile_id in (1, 26, 42, 46, 50):
        hidden = tile_capability(tile_id + HIDDEN_OFFSET)
        assert hidden.resource == tile_capability(tile_id).resource
        assert hidden.name.endswith('(hidden)')
    assert tile_capability(999) is None
    assert not is_known(999)


def test_seam_sets():
    crystal_ids = {42, 43, 44, 45, 92, 93, 94, 95}
    ore_ids = {46, 47, 48, 49, 96, 97, 98, 99}
    assert SEAM_TILES['crystals'] == crystal_ids | {t + HIDDEN_OFFSET for t in crystal_ids}
    assert SEAM_TILES['ore'] == ore_ids | {t + HIDDEN_OFFSET for t in ore_ids}
    assert 50 in RESOURCE_TILES
    assert not RESOURCE_TILES & BUILDABLE_TILES
