"""
Balance checks: do the resources on the map cover what the objectives ask for?
"""
import logging

from mmdat.data_model import IssueCategory, ObjectiveKind, Severity, ValidationIssue
from mmdat.tiles import SEAM_TILES

logger = logging.getLogger(__name__)

BALANCED_RESOURCES = ('crystals', 'ore')


def required_amounts(objectives):
    """Sum of required collect-objective amounts per resource."""
    required = dict.fromkeys(BALANCED_RESOURCES, 0)
    for obj in objectives:
        if (obj.kind == ObjectiveKind.COLLECT and obj.required
                and obj.target in required and obj.amount):
            required[obj.target] += obj.amount
    return required


def available_amount(doc, resource, config):
    """Seam tiles × yield, plus explicit deposits, plus the starting stock."""
    total = doc.resources.total(resource)
    if doc.tiles is not None:
        seams = int(doc.tiles.isin(SEAM_TILES[resource]).sum())
        total += seams * config.seam_yield(resource)
    if doc.info is not None:
        initial = doc.info.initialcrystals if resource == 'crystals' else doc.info.initialore
        total += initial or 0
    return total


def check_balance(doc, config):
    issues = []
    for resource, required in required_amounts(doc.objectives).items():
        if required <= 0:
            continue
        available = available_amount(doc, resource, config)
        if available < config.balance_threshold * required:
            issues.append(ValidationIssue(
                Severity.WARNING, IssueCategory.BALANCE, 'objectives',
                f'Objectives require {required} {resource} but only {available} are '
                f'available (recommended at least {config.balance_threshold:g}x = '
                f'{config.balance_threshold * required:g})'))
    logger.debug('Balance checks: %d issue(s)', len(issues))
    return issues
