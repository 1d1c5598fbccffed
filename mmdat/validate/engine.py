"""
Validation engine: runs every enabled check family and aggregates the issues.

Families never short-circuit each other; a document missing its tiles grid
still gets its info, objectives and block graph checked.
"""
import logging
from collections import Counter
from typing import List

from mmdat.data_model import Severity, ValidationIssue
from mmdat.validate.accessibility import check_accessibility
from mmdat.validate.balance import check_balance
from mmdat.validate.constants import (
    ACCESSIBILITY, BALANCE, REFERENTIAL, STRUCTURAL, ValidationConfig,
)
from mmdat.validate.referential import check_referential
from mmdat.validate.structural import check_structural

logger = logging.getLogger(__name__)

CHECK_FUNCTIONS = {
    STRUCTURAL: check_structural,
    REFERENTIAL: check_referential,
    ACCESSIBILITY: check_accessibility,
    BALANCE: check_balance,
}


def validate(doc, config=None) -> List[ValidationIssue]:
    """Run all configured checks over a Document.

    Args:
        doc: parsed or hand-built Document
        config: ValidationConfig, defaults when None

    Returns:
        list of ValidationIssue in check-family order
    """
    config = config or ValidationConfig()
    issues = []
    for name in config.checks:
        issues.extend(CHECK_FUNCTIONS[name](doc, config))
    logger.debug('Validation finished: %s', dict(count_by_severity(issues)))
    return issues


def count_by_severity(issues) -> Counter:
    return Counter(issue.severity.value for issue in issues)


def has_errors(issues) -> bool:
    return any(issue.severity == Severity.ERROR for issue in issues)
