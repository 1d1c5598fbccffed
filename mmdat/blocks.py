"""
Visual block graph: trigger/event blocks and the wires between them.

Grammar per non-empty, non-comment line of a blocks{} section:

    id/BlockType:row,col,p2,...,pn     block declaration
    id-id  id~id  id?id                normal / backup / random wire

Parsing is two-pass: block ids are collected while reading every line, and
wire endpoints are resolved only after the whole section has been read, so
a wire may name a block declared further down.
"""
import enum
import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from mmdat.data_model import (
    BlockKind, IssueCategory, ParseError, ParseErrorKind, Scalar, Severity,
    ValidationIssue, Wire, WireKind, EMERGE_MARKER, finite_float, format_scalar,
)

logger = logging.getLogger(__name__)

BLOCK_RE = re.compile(r'^(\d+)/(\w+):(.*)$')
WIRE_RE = re.compile(r'^(\d+)\s*([-~?])\s*(\d+)$')
COMMENT_PREFIXES = ('#', ';', '//')

SECTION = 'blocks'


class BlockType(enum.Enum):
    TRIGGER_TIMER = 'TriggerTimer'
    TRIGGER_ENTER = 'TriggerEnter'
    TRIGGER_CHANGE = 'TriggerChange'
    TRIGGER_EVENT_CHAIN = 'TriggerEventChain'
    EVENT_EMERGE_CREATURE = 'EventEmergeCreature'
    EVENT_DRILL = 'EventDrill'
    EVENT_PLACE = 'EventPlace'
    EVENT_CALL_EVENT = 'EventCallEvent'
    EVENT_RELAY = 'EventRelay'
    EVENT_UNIT_FLEE = 'EventUnitFlee'
    EVENT_RANDOM_SPAWN_SETUP = 'EventRandomSpawnSetup'
    EVENT_RANDOM_SPAWN_START = 'EventRandomSpawnStart'
    EVENT_RANDOM_SPAWN_STOP = 'EventRandomSpawnStop'

    @property
    def kind(self) -> BlockKind:
        return BlockKind.TRIGGER if self.value.startswith('Trigger') else BlockKind.EVENT

    @classmethod
    def from_name(cls, name) -> Optional['BlockType']:
        if isinstance(name, cls):
            return name
        try:
            return cls(name)
        except ValueError:
            return None


# ── Parameter schema ──────────────────────────────────────────────────

BOOL_PARAMS = frozenset({'miners', 'vehicles', 'anywhere'})
FLOAT_PARAMS = frozenset({'cooldown', 'delay', 'radius'})
INT_PARAMS = frozenset({'tileID'})


def _to_bool(token):
    lowered = token.lower()
    if lowered not in ('true', 'false'):
        raise ValueError(f'expected true/false, got {token!r}')
    return lowered == 'true'


def _to_str(token):
    return token


def param_coercer(name) -> Tuple[str, Callable[[str], Scalar]]:
    """Name-based type heuristic for block parameters: (type name, coercer)."""
    if name in BOOL_PARAMS:
        return 'bool', _to_bool
    if 'Time' in name or name in FLOAT_PARAMS:
        return 'float', finite_float
    if name in INT_PARAMS:
        return 'int', int
    return 'str', _to_str


@dataclass(frozen=True)
class ParamSpec:
    name: str
    type_name: str
    coerce: Callable[[str], Scalar] = field(compare=False, repr=False)


@dataclass(frozen=True)
class BlockSchema:
    block_type: BlockType
    params: Tuple[ParamSpec, ...]     # after the mandatory row,col
    description: str = ''

    @property
    def kind(self) -> BlockKind:
        return self.block_type.kind

    @property
    def param_names(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self.params)


_SCHEMA_SOURCE = {
    BlockType.TRIGGER_TIMER: (
        ('name', 'delay', 'max', 'min'), 'Fires periodically at random intervals'),
    BlockType.TRIGGER_ENTER: (
        ('cooldown', 'miners', 'vehicles', 'creature'), 'Fires when units enter a tile'),
    BlockType.TRIGGER_CHANGE: (
        ('cooldown', 'tileID'), 'Fires when a tile changes'),
    BlockType.TRIGGER_EVENT_CHAIN: (
        ('cooldown', 'name'), 'Callable from the text script'),
    BlockType.EVENT_EMERGE_CREATURE: (
        ('direction', 'cooldown', 'type', 'radius'), 'Spawns a creature from walls'),
    BlockType.EVENT_DRILL: (
        (), 'Drills a wall tile'),
    BlockType.EVENT_PLACE: (
        ('cooldown', 'tileID'), 'Changes a tile type'),
    BlockType.EVENT_CALL_EVENT: (
        ('cooldown', 'function'), 'Executes a script function'),
    BlockType.EVENT_RELAY: (
        ('cooldown', 'delay'), 'Delays execution flow'),
    BlockType.EVENT_UNIT_FLEE: (
        ('anywhere',), 'Makes the last spawned creature flee'),
    BlockType.EVENT_RANDOM_SPAWN_SETUP: (
        ('type', 'maxTime', 'minTime', 'maxWave', 'minWave', 'maxSpawn', 'minSpawn'),
        'Configures creature waves'),
    BlockType.EVENT_RANDOM_SPAWN_START: (
        ('type',), 'Starts spawning'),
    BlockType.EVENT_RANDOM_SPAWN_STOP: (
        ('type',), 'Stops spawning'),
}


def _build_schemas():
    schemas = {}
    for block_type, (names, description) in _SCHEMA_SOURCE.items():
        params = tuple(ParamSpec(n, *param_coercer(n)) for n in names)
        schemas[block_type] = BlockSchema(block_type, params, description)
    return schemas


BLOCK_SCHEMAS: Dict[BlockType, BlockSchema] = _build_schemas()


# ── Graph model ──────────────────────────────────────────────────────


@dataclass
class VisualBlock:
    id: int
    block_type: BlockType
    row: int
    col: int
    parameters: Dict[str, Scalar] = field(default_factory=dict)
    line: Optional[int] = field(default=None, compare=False)

    @property
    def kind(self) -> BlockKind:
        return self.block_type.kind

    @property
    def name(self) -> str:
        return self.block_type.value

    @property
    def schema(self) -> BlockSchema:
        return BLOCK_SCHEMAS[self.block_type]


@dataclass
class BlockGraph:
    blocks: List[VisualBlock] = field(default_factory=list)
    wires: List[Wire] = field(default_factory=list)

    def block_ids(self) -> set:
        return {b.id for b in self.blocks}

    def find(self, block_id) -> Optional[VisualBlock]:
        """First block declared with this id."""
        for b in self.blocks:
            if b.id == block_id:
                return b
        return None

    def dangling_endpoints(self) -> List[Tuple[Wire, int]]:
        """(wire, missing id) for every wire endpoint naming no declared block."""
        ids = self.block_ids()
        missing = []
        for w in self.wires:
            for endpoint in (w.source, w.target):
                if endpoint not in ids:
                    missing.append((w, endpoint))
        return missing

    def __bool__(self):
        return bool(self.blocks or self.wires)

    def validate(self) -> List[ValidationIssue]:
        """Referential checks over the graph.

        1. duplicate block id → error
        2. event block with no incoming and no outgoing wire → warning
        3. backup wire from a block whose type is not an Emerge block → error
        4. random-wire source with fewer than 2 distinct targets → warning
        5. wire endpoint naming an undeclared block → error
        6. wire from a block to itself → error
        7. several blocks on the same row,col → warning
        8. wires forming a cycle → warning
        """
        issues = []
        issues.extend(_check_duplicate_ids(self))
        issues.extend(_check_orphans(self))
        issues.extend(_check_backup_wires(self))
        issues.extend(_check_random_fanout(self))
        issues.extend(_check_dangling_wires(self))
        issues.extend(_check_self_wires(self))
        issues.extend(_check_overlaps(self))
        issues.extend(_check_cycles(self))
        logger.debug('Block graph validation: %d issue(s)', len(issues))
        return issues


# ── Checks ───────────────────────────────────────────────────────────


def _issue(severity, message, location=None):
    return ValidationIssue(severity, IssueCategory.REFERENTIAL, SECTION, message, location)


def _check_duplicate_ids(graph):
    counts = Counter(b.id for b in graph.blocks)
    issues = []
    for block_id, n in counts.items():
        if n > 1:
            b = graph.find(block_id)
            issues.append(_issue(
                Severity.ERROR, f'Duplicate block id {block_id} ({n} declarations)',
                (b.row, b.col)))
    return issues


def _check_orphans(graph):
    wired = set()
    for w in graph.wires:
        wired.add(w.source)
        wired.add(w.target)
    return [
        _issue(Severity.WARNING, f'Event block {b.id} ({b.name}) has no connections',
               (b.row, b.col))
        for b in graph.blocks
        if b.kind == BlockKind.EVENT and b.id not in wired
    ]


def _check_backup_wires(graph):
    issues = []
    for w in graph.wires:
        if w.kind != WireKind.BACKUP:
            continue
        source = graph.find(w.source)
        if source is not None and EMERGE_MARKER not in source.name:
            issues.append(_issue(
                Severity.ERROR,
                f'Backup wire {w.source}~{w.target} starts at {source.name}; '
                f'only emerge blocks can use backup wires',
                (source.row, source.col)))
    return issues


def _check_random_fanout(graph):
    targets = {}
    for w in graph.wires:
        if w.kind == WireKind.RANDOM:
            targets.setdefault(w.source, set()).add(w.target)
    issues = []
    for source, distinct in targets.items():
        if len(distinct) < 2:
            b = graph.find(source)
            issues.append(_issue(
                Severity.WARNING,
                f'Block {source} has random wire(s) to {len(distinct)} distinct '
                f'target(s); random wire provides no actual randomness',
                (b.row, b.col) if b else None))
    return issues


def _check_dangling_wires(graph):
    return [
        _issue(Severity.ERROR,
               f'Wire {w.source}{w.kind.value}{w.target} references unknown block {missing}')
        for w, missing in graph.dangling_endpoints()
    ]


def _check_self_wires(graph):
    return [
        _issue(Severity.ERROR, f'Block {w.source} is wired to itself')
        for w in graph.wires if w.source == w.target
    ]


def _check_overlaps(graph):
    at = {}
    for b in graph.blocks:
        at.setdefault((b.row, b.col), []).append(b.id)
    return [
        _issue(Severity.WARNING,
               f"Multiple blocks ({', '.join(str(i) for i in ids)}) at {pos[0]},{pos[1]}",
               pos)
        for pos, ids in at.items() if len(ids) > 1
    ]


_VISITING, _DONE = 1, 2


def find_cycles(adjacency) -> List[List[int]]:
    """Cycles found by an iterative DFS; each is [n0, n1, ..., n0]."""
    state = {}
    cycles = []
    for root in adjacency:
        if root in state:
            continue
        state[root] = _VISITING
        path = [root]
        stack = [(root, iter(adjacency.get(root, ())))]
        while stack:
            node, children = stack[-1]
            for child in children:
                seen = state.get(child)
                if seen is None:
                    state[child] = _VISITING
                    path.append(child)
                    stack.append((child, iter(adjacency.get(child, ()))))
                    break
                if seen == _VISITING:
                    cycles.append(path[path.index(child):] + [child])
            else:
                stack.pop()
                path.pop()
                state[node] = _DONE
    return cycles


def _check_cycles(graph):
    ids = graph.block_ids()
    adjacency = {}
    for b in graph.blocks:
        adjacency.setdefault(b.id, [])
    for w in graph.wires:
        if w.source in ids and w.target in ids and w.source != w.target:
            if w.target not in adjacency[w.source]:
                adjacency[w.source].append(w.target)
    return [
        _issue(Severity.WARNING,
               'Wires form a cycle: ' + ' -> '.join(str(n) for n in cycle))
        for cycle in find_cycles(adjacency)
    ]


# ── Parsing ──────────────────────────────────────────────────────────


def _coerce_params(block_id, schema, tokens, line_no):
    """Map positional tokens onto schema names, coercing each by its type."""
    params = {}
    errors = []
    for param, token in zip(schema.params, tokens):
        if token == '':
            continue
        try:
            params[param.name] = param.coerce(token)
        except ValueError:
            errors.append(ParseError(
                ParseErrorKind.MALFORMED_NUMERIC_TOKEN,
                f"Block {block_id} parameter '{param.name}' expects {param.type_name}, "
                f'got {token!r}',
                line=line_no, section=SECTION))
    if len(tokens) > len(schema.params):
        extra = tokens[len(schema.params):]
        errors.append(ParseError(
            ParseErrorKind.SECTION_GRAMMAR_MISMATCH,
            f'Block {block_id} ({schema.block_type.value}) ignores {len(extra)} '
            f'extra parameter(s): {",".join(extra)}',
            line=line_no, section=SECTION, severity=Severity.WARNING))
    return params, errors


def parse_block_line(m, line_no) -> Tuple[Optional[VisualBlock], List[ParseError]]:
    block_id = int(m.group(1))
    type_name = m.group(2)
    tokens = [t.strip() for t in m.group(3).split(',')]
    if tokens and tokens[-1] == '':
        tokens.pop()

    block_type = BlockType.from_name(type_name)
    if block_type is None:
        return None, [ParseError(
            ParseErrorKind.UNKNOWN_BLOCK_TYPE,
            f"Unknown block type '{type_name}' for block {block_id}",
            line=line_no, section=SECTION)]

    if len(tokens) < 2:
        return None, [ParseError(
            ParseErrorKind.SECTION_GRAMMAR_MISMATCH,
            f'Block {block_id} is missing its row,col parameters',
            line=line_no, section=SECTION)]
    try:
        row, col = int(tokens[0]), int(tokens[1])
    except ValueError:
        return None, [ParseError(
            ParseErrorKind.MALFORMED_NUMERIC_TOKEN,
            f'Block {block_id} has invalid row,col {tokens[0]!r},{tokens[1]!r}',
            line=line_no, section=SECTION)]

    params, errors = _coerce_params(block_id, BLOCK_SCHEMAS[block_type], tokens[2:], line_no)
    return VisualBlock(block_id, block_type, row, col, params, line=line_no), errors


def parse_blocks(content, first_line=1) -> Tuple[BlockGraph, List[ParseError]]:
    """Parse the body of a blocks{} section.

    Args:
        content: section body text
        first_line: 1-based source line number of the body's first line

    Returns:
        (BlockGraph, errors). Bad lines are reported and skipped; parsing
        never stops early.
    """
    graph = BlockGraph()
    errors = []

    # Pass 1: blocks and wires in source order
    for i, raw in enumerate(content.split('\n')):
        line = raw.strip()
        line_no = first_line + i
        if not line or line.startswith(COMMENT_PREFIXES):
            continue

        m = BLOCK_RE.match(line)
        if m:
            block, block_errors = parse_block_line(m, line_no)
            errors.extend(block_errors)
            if block is not None:
                graph.blocks.append(block)
            continue

        m = WIRE_RE.match(line)
        if m:
            graph.wires.append(Wire(
                int(m.group(1)), int(m.group(3)), WireKind(m.group(2)), line=line_no))
            continue

        if line != '}':
            errors.append(ParseError(
                ParseErrorKind.SECTION_GRAMMAR_MISMATCH,
                f'Unknown blocks syntax: {line!r}',
                line=line_no, section=SECTION))

    # Pass 2: every wire endpoint must name a declared block
    for wire, missing in graph.dangling_endpoints():
        errors.append(ParseError(
            ParseErrorKind.UNKNOWN_BLOCK_REFERENCE,
            f'Wire {wire.source}{wire.kind.value}{wire.target} references unknown '
            f'block {missing}',
            line=wire.line, section=SECTION))

    logger.debug('Parsed %d block(s), %d wire(s), %d error(s)',
                 len(graph.blocks), len(graph.wires), len(errors))
    return graph, errors


# ── Formatting ───────────────────────────────────────────────────────


def format_block(block: VisualBlock) -> str:
    """Canonical `id/Type:row,col,...` line; absent parameters become empty tokens."""
    names = block.schema.param_names
    last = max((i for i, n in enumerate(names) if n in block.parameters), default=-1)
    tokens = [str(block.row), str(block.col)]
    for name in names[:last + 1]:
        value = block.parameters.get(name)
        tokens.append('' if value is None else format_scalar(value))
    return f'{block.id}/{block.name}:' + ','.join(tokens)


def format_wire(wire: Wire) -> str:
    return f'{wire.source}{wire.kind.value}{wire.target}'
