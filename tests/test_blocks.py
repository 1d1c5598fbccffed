import pytest

from mmdat.blocks import (
    BLOCK_SCHEMAS, BlockGraph, BlockType, VisualBlock, find_cycles, format_block,
    format_wire, parse_blocks,
)
from mmdat.data_model import (
    BlockKind, IssueCategory, ParseErrorKind, Severity, Wire, WireKind,
)

TIMER = '1/TriggerTimer:5,5,T,10,20,10'
DRILL = '2/EventDrill:6,6'


def _messages(issues, severity=None):
    return [i.message for i in issues if severity is None or i.severity == severity]


def test_schema_coercers_follow_name_heuristic():
    types = {p.name: p.type_name for s in BLOCK_SCHEMAS.values() for p in s.params}
    assert types['miners'] == types['vehicles'] == types['anywhere'] == 'bool'
    assert types['cooldown'] == types['delay'] == types['radius'] == 'float'
    assert types['maxTime'] == types['minTime'] == 'float'
    assert types['tileID'] == 'int'
    assert types['name'] == types['maxWave'] == 'str'
    assert set(BLOCK_SCHEMAS) == set(BlockType)


def test_kind_from_type_prefix():
    assert BlockType.TRIGGER_TIMER.kind == BlockKind.TRIGGER
    assert BlockType.EVENT_DRILL.kind == BlockKind.EVENT


def test_parse_block_parameters():
    graph, errors = parse_blocks('\n'.join([
        TIMER,
        '3/TriggerEnter:1,2,0.5,true,FALSE,CreatureRockMonster_C',
        '4/EventPlace:3,3,,42',
    ]))
    assert errors == []
    timer, enter, place = graph.blocks
    assert (timer.row, timer.col) == (5, 5)
    assert timer.parameters == {'name': 'T', 'delay': 10.0, 'max': '20', 'min': '10'}
    assert enter.parameters == {'cooldown': 0.5, 'miners': True, 'vehicles': False,
                                'creature': 'CreatureRockMonster_C'}
    assert place.parameters == {'tileID': 42}


def test_orphan_event_block():
    graph, errors = parse_blocks('\n'.join([TIMER, DRILL, '1-2']))
    assert errors == []
    assert not any('no connections' in m for m in _messages(graph.validate()))

    graph, _ = parse_blocks('\n'.join([TIMER, DRILL]))
    orphans = [i for i in graph.validate() if 'no connections' in i.message]
    assert len(orphans) == 1
    assert orphans[0].severity == Severity.WARNING
    assert 'Event block 2' in orphans[0].message
    assert orphans[0].location == (6, 6)


def test_unconnected_trigger_is_not_an_orphan():
    graph, _ = parse_blocks(TIMER)
    assert graph.validate() == []


@pytest.mark.parametrize("wires,warns", [
    (['1?2', '1?2', '1?3'], False),
    (['1?2'], True),
    (['1?2', '1?2'], True),
])
def test_random_wire_fanout(wires, warns):
    lines = [TIMER, DRILL, '3/EventDrill:7,7'] + wires
    graph, errors = parse_blocks('\n'.join(lines))
    assert errors == []
    low = [i for i in graph.validate() if 'randomness' in i.message]
    assert bool(low) == warns


def test_backup_wire_requires_emerge_source():
    text = '\n'.join([
        '1/EventEmergeCreature:1,1,N,0,CreatureRockMonster_C,1',
        DRILL,
        '3/EventDrill:2,2',
        '1~2',
        '3~2',
    ])
    graph, errors = parse_blocks(text)
    assert errors == []
    assert [w.kind for w in graph.wires] == [WireKind.BACKUP, WireKind.BACKUP]
    backup = [i for i in graph.validate() if 'backup' in i.message.lower()]
    assert len(backup) == 1
    assert backup[0].severity == Severity.ERROR
    assert 'EventDrill' in backup[0].message


def test_duplicate_block_id():
    graph, _ = parse_blocks('\n'.join([TIMER, '1/EventDrill:2,2', '1-1']))
    errors = _messages(graph.validate(), Severity.ERROR)
    assert any('Duplicate block id 1' in m for m in errors)
    assert any('wired to itself' in m for m in errors)


def test_forward_reference_resolves():
    graph, errors = parse_blocks('\n'.join(['1-2', TIMER, DRILL]))
    assert errors == []
    assert graph.wires == [Wire(1, 2, WireKind.NORMAL)]


def test_unknown_wire_endpoint():
    graph, errors = parse_blocks('\n'.join([TIMER, '1-9']))
    assert [e.kind for e in errors] == [ParseErrorKind.UNKNOWN_BLOCK_REFERENCE]
    assert errors[0].line == 2
    assert len(graph.wires) == 1
    assert any('unknown block 9' in m for m in _messages(graph.validate(), Severity.ERROR))


def test_bad_lines_are_collected_and_skipped():
    text = '\n'.join([
        '# comment',
        '; another',
        '5/TriggerBogus:1,1',
        '6/EventDrill:x,1',
        '7/EventDrill:1',
        'what is this',
        '',
        DRILL,
        '}',
    ])
    graph, errors = parse_blocks(text, first_line=10)
    assert [b.id for b in graph.blocks] == [2]
    assert [e.kind for e in errors] == [
        ParseErrorKind.UNKNOWN_BLOCK_TYPE,
        ParseErrorKind.MALFORMED_NUMERIC_TOKEN,
        ParseErrorKind.SECTION_GRAMMAR_MISMATCH,
        ParseErrorKind.SECTION_GRAMMAR_MISMATCH,
    ]
    assert [e.line for e in errors] == [12, 13, 14, 15]


def test_bad_parameter_and_extra_tokens():
    graph, errors = parse_blocks('1/EventPlace:1,1,2,lava,9')
    block = graph.blocks[0]
    assert block.parameters == {'cooldown': 2.0}
    assert errors[0].kind == ParseErrorKind.MALFORMED_NUMERIC_TOKEN
    assert errors[1].severity == Severity.WARNING


@pytest.mark.parametrize("line", [DRILL + ',', '4/EventPlace:3,3,,42,', '5/EventRelay:1,1,2,'])
def test_single_trailing_comma_is_ignored(line):
    graph, errors = parse_blocks(line)
    assert errors == []
    assert len(graph.blocks) == 1


def test_non_finite_float_parameter_is_rejected():
    graph, errors = parse_blocks('1/EventRelay:1,1,nan,inf')
    assert graph.blocks[0].parameters == {}
    assert [e.kind for e in errors] == [ParseErrorKind.MALFORMED_NUMERIC_TOKEN] * 2


def test_overlapping_blocks_and_cycles():
    text = '\n'.join(['1/EventRelay:3,3,0,1', '2/EventRelay:3,3,0,1', '1-2', '2-1'])
    graph, errors = parse_blocks(text)
    assert errors == []
    issues = graph.validate()
    assert all(i.category == IssueCategory.REFERENTIAL for i in issues)
    warnings = _messages(issues, Severity.WARNING)
    assert any('Multiple blocks (1, 2) at 3,3' in m for m in warnings)
    assert any('cycle' in m for m in warnings)


def test_find_cycles():
    assert find_cycles({1: [2], 2: [3], 3: []}) == []
    assert find_cycles({1: [2], 2: [3], 3: [1]}) == [[1, 2, 3, 1]]


def test_format_block_and_wire():
    block = VisualBlock(4, BlockType.EVENT_PLACE, 3, 3, {'tileID': 42})
    assert format_block(block) == '4/EventPlace:3,3,,42'
    timer = VisualBlock(1, BlockType.TRIGGER_TIMER, 5, 5,
                        {'name': 'T', 'delay': 10.0, 'max': '20', 'min': '10'})
    assert format_block(timer) == TIMER
    assert format_block(VisualBlock(2, BlockType.EVENT_DRILL, 6, 6)) == DRILL
    assert format_wire(Wire(1, 2, WireKind.RANDOM)) == '1?2'


def test_empty_graph_is_falsy():
    assert not BlockGraph()
    assert BlockGraph().validate() == []
