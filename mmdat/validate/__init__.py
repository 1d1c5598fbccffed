"""Validation subpackage: structural, referential, accessibility and balance checks."""
from .constants import ALL_CHECKS, ValidationConfig
from .engine import validate, count_by_severity, has_errors
from .accessibility import check_accessibility, flood_fill, label_regions
from .balance import check_balance, required_amounts, available_amount
from .referential import check_referential
from .structural import check_structural
