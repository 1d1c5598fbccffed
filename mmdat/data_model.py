import enum
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

# Scalar value carried by block parameters and entity properties.
Scalar = Union[int, float, bool, str]

# Named constants
DEFAULT_BIOME = 'rock'
TOOL_STORE_TYPE = 'BuildingToolStore_C'
TELEPORT_PAD_MARKER = 'TeleportPad'
TELEPORT_TAG_PROPERTY = 'tag'
EMERGE_MARKER = 'Emerge'


class Severity(enum.Enum):
    ERROR = 'error'        # map unplayable
    WARNING = 'warning'    # should fix
    INFO = 'info'          # suggestion

    def __str__(self):
        return self.value


class ParseErrorKind(enum.Enum):
    UNTERMINATED_SECTION = 'unterminated_section'
    UNKNOWN_BLOCK_TYPE = 'unknown_block_type'
    MALFORMED_NUMERIC_TOKEN = 'malformed_numeric_token'
    SECTION_GRAMMAR_MISMATCH = 'section_grammar_mismatch'
    ROW_LENGTH_MISMATCH = 'row_length_mismatch'
    UNKNOWN_BLOCK_REFERENCE = 'unknown_block_reference'
    DUPLICATE_SECTION = 'duplicate_section'


class IssueCategory(enum.Enum):
    STRUCTURAL = 'structural'
    REFERENTIAL = 'referential'
    ACCESSIBILITY = 'accessibility'
    BALANCE = 'balance'


class MutationError(enum.Enum):
    OUT_OF_RANGE = 'out_of_range'
    OUT_OF_BOUNDS = 'out_of_bounds'
    DUPLICATE_ID = 'duplicate_id'
    UNKNOWN_BLOCK_TYPE = 'unknown_block_type'
    UNKNOWN_BLOCK = 'unknown_block'


class Biome(enum.Enum):
    ROCK = 'rock'
    ICE = 'ice'
    LAVA = 'lava'


class EntityKind(enum.Enum):
    BUILDING = 'buildings'
    VEHICLE = 'vehicles'
    CREATURE = 'creatures'
    MINER = 'miners'


class ObjectiveKind(enum.Enum):
    COLLECT = 'collect'
    BUILD = 'build'
    DISCOVER = 'discover'
    SURVIVE = 'survive'
    CUSTOM = 'custom'


class BlockKind(enum.Enum):
    TRIGGER = 'trigger'
    EVENT = 'event'


class WireKind(enum.Enum):
    NORMAL = '-'
    BACKUP = '~'
    RANDOM = '?'


# Section name → entity kind for the line-oriented entity sections
ENTITY_SECTIONS = {kind.value: kind for kind in EntityKind}


def finite_float(token):
    """float(token), refusing nan and the infinities."""
    value = float(token)
    if not math.isfinite(value):
        raise ValueError(f'non-finite number {token!r}')
    return value


def format_number(value):
    """Shortest text that parses back to the same number ('90', '1.5')."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return repr(value) if isinstance(value, float) else str(value)


def format_scalar(value):
    if isinstance(value, (bool, int, float)):
        return format_number(value)
    return str(value)


# ── Diagnostics ──────────────────────────────────────────────────────


@dataclass
class ParseError:
    kind: ParseErrorKind
    message: str
    line: Optional[int] = None          # 1-based source line
    section: Optional[str] = None
    severity: Severity = Severity.ERROR

    def __str__(self):
        where = f' (line {self.line})' if self.line is not None else ''
        return f'[{self.severity}] {self.kind.value}{where}: {self.message}'


@dataclass
class ValidationIssue:
    """A single validation finding.

    Attributes:
        severity: ERROR (map unplayable), WARNING (should fix), INFO (suggestion)
        category: which check family produced the issue
        section: section the issue points at (e.g. 'tiles', 'blocks')
        message: plain diagnostic text
        location: optional (row, col) grid coordinate
    """
    severity: Severity
    category: IssueCategory
    section: str
    message: str
    location: Optional[Tuple[int, int]] = None

    def format(self) -> str:
        where = f' @{self.location[0]},{self.location[1]}' if self.location else ''
        return f'[{self.severity}] {self.category.value} {self.section}{where} :: {self.message}'

    def __str__(self):
        return self.format()


@dataclass(frozen=True)
class Result:
    """Typed success/failure value returned by grid access and mutations."""
    ok: bool
    value: Any = None
    error: Optional[MutationError] = None
    message: str = ''

    def __bool__(self):
        return self.ok

    @classmethod
    def success(cls, value=None):
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error, message):
        return cls(ok=False, error=error, message=message)


# ── Metadata ─────────────────────────────────────────────────────────


@dataclass
class Vector3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass
class Rotation:
    pitch: float = 0.0
    yaw: float = 0.0
    roll: float = 0.0


@dataclass
class Camera:
    translation: Vector3 = field(default_factory=Vector3)
    rotation: Rotation = field(default_factory=Rotation)
    scale: Vector3 = field(default_factory=lambda: Vector3(1.0, 1.0, 1.0))


@dataclass
class Info:
    rowcount: Optional[int] = None
    colcount: Optional[int] = None
    biome: Biome = Biome.ROCK
    creator: str = ''
    levelname: str = ''
    camera: Optional[Camera] = None
    camerazoom: Optional[float] = None
    version: Optional[str] = None
    opencaves: Optional[str] = None
    oxygen: Optional[float] = None
    initialcrystals: Optional[int] = None
    initialore: Optional[int] = None
    spiderrate: Optional[int] = None
    spidermin: Optional[int] = None
    spidermax: Optional[int] = None
    erosioninitialwaittime: Optional[float] = None
    erosionscale: Optional[float] = None
    # Unknown keys, kept verbatim in source order
    extras: Dict[str, str] = field(default_factory=dict)


# ── Entities, resources, objectives ──────────────────────────────────


@dataclass
class Entity:
    kind: EntityKind
    type: str
    x: int                  # column
    y: int                  # row
    orientation: float = 0.0
    level: Optional[int] = None
    properties: Dict[str, Scalar] = field(default_factory=dict)

    @property
    def position(self) -> Tuple[int, int]:
        """(row, col) of the tile the entity sits on."""
        return self.y, self.x


@dataclass
class ResourceDeposit:
    x: int
    y: int
    amount: int


@dataclass
class ResourceList:
    # Subsection name ('crystals', 'ore', ...) → deposits, in source order
    deposits: Dict[str, List[ResourceDeposit]] = field(default_factory=dict)

    @property
    def crystals(self) -> List[ResourceDeposit]:
        return self.deposits.get('crystals', [])

    @property
    def ore(self) -> List[ResourceDeposit]:
        return self.deposits.get('ore', [])

    def total(self, name: str) -> int:
        return sum(d.amount for d in self.deposits.get(name, []))

    def __len__(self):
        return sum(len(v) for v in self.deposits.values())


@dataclass
class Objective:
    kind: ObjectiveKind
    target: Optional[str] = None
    amount: Optional[int] = None
    location: Optional[Tuple[int, int]] = None   # (x, y)
    time: Optional[float] = None
    description: str = ''
    required: bool = True
    hidden: bool = False
    sequential: bool = False


# ── Block graph ──────────────────────────────────────────────────────


@dataclass
class Wire:
    source: int
    target: int
    kind: WireKind = WireKind.NORMAL
    line: Optional[int] = field(default=None, compare=False)


# ── Sections ─────────────────────────────────────────────────────────


@dataclass
class Section:
    """A named, brace-delimited span of the source text."""
    name: str
    raw_content: str
    start_line: int = field(default=0, compare=False)         # 0-based header line
    end_line: Optional[int] = field(default=None, compare=False)

    @property
    def lines(self) -> List[str]:
        return self.raw_content.split('\n') if self.raw_content else []

    @property
    def terminated(self) -> bool:
        return self.end_line is not None
