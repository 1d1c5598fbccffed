"""Shared level-text fixtures for mmdat tests."""
import textwrap

import pytest

from mmdat.parser import parse

# 6x6 cave: solid rock border, ground floor, one crystal and one ore seam,
# a Tool Store, a pair of teleport pads and a small trigger graph.
SAMPLE_LEVEL = textwrap.dedent("""\
    comments{
    Hand-made sample level
    }
    info{
    rowcount:6
    colcount:6
    camerapos:Translation: X=450 Y=300 Z=0 Rotation: P=44.99 Y=-90 R=0 Scale X=1 Y=1 Z=1
    camerazoom:10
    biome:ice
    creator:tester
    levelname:Sample Cave
    oxygen:3000
    initialcrystals:2
    spiderrate:20
    customkey:hello
    }
    tiles{
    38,38,38,38,38,38,
    38,1,1,1,42,38,
    38,1,1,1,46,38,
    38,1,1,14,1,38,
    38,1,1,1,1,38,
    38,38,38,38,38,38,
    }
    height{
    0,0,0,0,0,0,
    0,1,1,1,1,0,
    0,1,2,2,1,0,
    0,1,2,2,1,0,
    0,1,1,1,1,0,
    0,0,0,0,0,0,
    }
    resources{
    crystals:
    2,2,5
    ore:
    3,3,2
    }
    objectives{
    objective:
      type:collect
      target:crystals
      amount:5
    objective:
      type:discover
      location:
        x:4
        y:4
      description:Find the cave
      hidden:true
    }
    buildings{
    1,1,BuildingToolStore_C,90,1
    3,3,BuildingTeleportPad_C,0,1,tag=A
    4,3,BuildingTeleportPad_C,0,1,tag=A
    }
    vehicles{
    2,4,VehicleHoverScout_C,180
    }
    creatures{
    4,4,CreatureRockMonster_C,0
    }
    miners{
    2,2,Pilot,0
    }
    blocks{
    1/TriggerEnter:2,2,5,true,false,
    2/EventDrill:2,3
    3/EventEmergeCreature:4,4,N,0,CreatureRockMonster_C,2
    1-2
    1-3
    }
    """)


def make_level(tiles, rowcount=None, colcount=None, extra=''):
    """Minimal level text around a tiles grid given as a list of row lists."""
    rowcount = len(tiles) if rowcount is None else rowcount
    colcount = (len(tiles[0]) if tiles else 0) if colcount is None else colcount
    rows = '\n'.join(','.join(str(v) for v in row) for row in tiles)
    return (f'info{{\nrowcount:{rowcount}\ncolcount:{colcount}\n}}\n'
            f'tiles{{\n{rows}\n}}\n' + extra)


@pytest.fixture
def sample_text():
    return SAMPLE_LEVEL


@pytest.fixture
def sample_doc():
    doc, errors = parse(SAMPLE_LEVEL)
    assert errors == []
    return doc
