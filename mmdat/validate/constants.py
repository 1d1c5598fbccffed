"""Single source of truth for validation constants."""
import warnings
from dataclasses import dataclass, field
from typing import Tuple

STRUCTURAL = 'structural'
REFERENTIAL = 'referential'
ACCESSIBILITY = 'accessibility'
BALANCE = 'balance'
ALL_CHECKS = (STRUCTURAL, REFERENTIAL, ACCESSIBILITY, BALANCE)

REQUIRED_SECTIONS = ('info', 'tiles')

BALANCE_THRESHOLD = 1.5
CRYSTAL_SEAM_YIELD = 4
ORE_SEAM_YIELD = 4
MAX_DIMENSION = 200
SMALL_REGION_SIZE = 10
SPIDER_RATE_RANGE = (0, 100)


@dataclass
class ValidationConfig:
    """Tunable knobs for validate().

    Attributes:
        balance_threshold: available resources must be at least this multiple
            of what the objectives require
        crystal_seam_yield: crystals credited per crystal seam tile
        ore_seam_yield: ore credited per ore seam tile
        max_dimension: rowcount/colcount above this draws a warning
        small_region_size: unreachable walkable regions smaller than this are
            reported as isolated
        checks: which check families to run
    """
    balance_threshold: float = BALANCE_THRESHOLD
    crystal_seam_yield: int = CRYSTAL_SEAM_YIELD
    ore_seam_yield: int = ORE_SEAM_YIELD
    max_dimension: int = MAX_DIMENSION
    small_region_size: int = SMALL_REGION_SIZE
    checks: Tuple[str, ...] = field(default=ALL_CHECKS)

    def __post_init__(self):
        self.checks = tuple(self.checks)
        unknown = [c for c in self.checks if c not in ALL_CHECKS]
        if unknown:
            raise ValueError(f'Unknown validation check(s) {unknown}; expected one of {ALL_CHECKS}')
        if self.balance_threshold < 1.0:
            warnings.warn(f'balance_threshold={self.balance_threshold} accepts levels with '
                          f'fewer resources than their objectives require')

    def seam_yield(self, resource) -> int:
        return {'crystals': self.crystal_seam_yield, 'ore': self.ore_seam_yield}.get(resource, 0)
