"""
Level text parser: raw text → Document plus a list of ParseErrors.

Each section is handed to its own parser independently; a failure in one
section never stops the others. Unknown sections are kept verbatim.
"""
import logging
import re
from typing import List, NamedTuple, Optional, Tuple

from mmdat.blocks import parse_blocks
from mmdat.data_model import (
    Biome, Camera, ENTITY_SECTIONS, Entity, Info, Objective, ObjectiveKind,
    ParseError, ParseErrorKind, ResourceDeposit, ResourceList, Rotation,
    Severity, Vector3, finite_float,
)
from mmdat.document import Document
from mmdat.grid import Grid
from mmdat.sections import route_sections, split_sections

logger = logging.getLogger(__name__)


class ParseResult(NamedTuple):
    document: Document
    errors: List[ParseError]

    @property
    def ok(self) -> bool:
        return not any(e.severity == Severity.ERROR for e in self.errors)


def body_line(section, index):
    """1-based source line of body line `index` (0-based) of a section."""
    return section.start_line + 2 + index


def _error(kind, message, section, line, severity=Severity.ERROR):
    return ParseError(kind, message, line=line, section=section.name, severity=severity)


def _warning(kind, message, section, line):
    return _error(kind, message, section, line, severity=Severity.WARNING)


def _content_lines(section):
    """(line number, stripped text) for every non-blank body line."""
    for i, raw in enumerate(section.lines):
        text = raw.strip()
        if text:
            yield body_line(section, i), text


# ── Grids ─────────────────────────────────────────────────────────────


def parse_grid(section) -> Tuple[Grid, List[ParseError]]:
    """tiles{} / height{}: one comma-separated row per non-blank line.

    The first row's token count fixes the width; later rows of another
    length are truncated or zero-padded and reported as warnings.
    """
    rows = []
    errors = []
    width = None
    for line_no, text in _content_lines(section):
        tokens = [t.strip() for t in text.split(',')]
        tokens = [t for t in tokens if t]
        row = []
        for token in tokens:
            try:
                row.append(int(token))
            except ValueError:
                errors.append(_error(
                    ParseErrorKind.MALFORMED_NUMERIC_TOKEN,
                    f'Expected an integer, got {token!r}', section, line_no))
                row.append(0)

        if width is None:
            width = len(row)
        elif len(row) != width:
            errors.append(_warning(
                ParseErrorKind.ROW_LENGTH_MISMATCH,
                f'Row {len(rows)} has {len(row)} value(s), expected {width}',
                section, line_no))
            row = row[:width] + [0] * (width - len(row))
        rows.append(row)

    return Grid.from_rows(rows), errors


# ── Info ──────────────────────────────────────────────────────────────

# Typed info keys → coercer. Keys are matched lower-cased.
INFO_KEY_TYPES = {
    'rowcount': int,
    'colcount': int,
    'camerazoom': finite_float,
    'version': str,
    'opencaves': str,
    'oxygen': finite_float,
    'initialcrystals': int,
    'initialore': int,
    'spiderrate': int,
    'spidermin': int,
    'spidermax': int,
    'erosioninitialwaittime': finite_float,
    'erosionscale': finite_float,
}
INFO_TEXT_KEYS = ('creator', 'levelname')

_NUM = r'([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)'
CAMERA_TRANSLATION_RE = re.compile(rf'Translation:\s*X={_NUM}\s*Y={_NUM}\s*Z={_NUM}')
CAMERA_ROTATION_RE = re.compile(rf'Rotation:\s*P={_NUM}\s*Y={_NUM}\s*R={_NUM}')
CAMERA_SCALE_RE = re.compile(rf'Scale\s*X={_NUM}\s*Y={_NUM}\s*Z={_NUM}')


def parse_camera(value) -> Tuple[Camera, bool]:
    """Parse a camerapos value; returns (camera, whether any group matched).

    Missing groups keep their defaults (zero translation and rotation,
    unit scale). Raises ValueError on a non-finite component.
    """
    camera = Camera()
    matched = False
    m = CAMERA_TRANSLATION_RE.search(value)
    if m:
        camera.translation = Vector3(*(finite_float(g) for g in m.groups()))
        matched = True
    m = CAMERA_ROTATION_RE.search(value)
    if m:
        camera.rotation = Rotation(*(finite_float(g) for g in m.groups()))
        matched = True
    m = CAMERA_SCALE_RE.search(value)
    if m:
        camera.scale = Vector3(*(finite_float(g) for g in m.groups()))
        matched = True
    return camera, matched


def parse_info(section) -> Tuple[Info, List[ParseError]]:
    info = Info()
    errors = []
    for line_no, text in _content_lines(section):
        key, sep, value = text.partition(':')
        if not sep:
            errors.append(_warning(
                ParseErrorKind.SECTION_GRAMMAR_MISMATCH,
                f'Expected key:value, got {text!r}', section, line_no))
            continue
        key, value = key.strip(), value.strip()
        lowered = key.lower()

        if lowered in INFO_KEY_TYPES:
            try:
                setattr(info, lowered, INFO_KEY_TYPES[lowered](value))
            except ValueError:
                errors.append(_error(
                    ParseErrorKind.MALFORMED_NUMERIC_TOKEN,
                    f'Invalid value for {key}: {value!r}', section, line_no))
        elif lowered in INFO_TEXT_KEYS:
            setattr(info, lowered, value)
        elif lowered == 'biome':
            try:
                info.biome = Biome(value.lower())
            except ValueError:
                errors.append(_warning(
                    ParseErrorKind.SECTION_GRAMMAR_MISMATCH,
                    f'Unknown biome {value!r}; using {info.biome.value}', section, line_no))
        elif lowered == 'camerapos':
            try:
                camera, matched = parse_camera(value)
            except ValueError:
                errors.append(_error(
                    ParseErrorKind.MALFORMED_NUMERIC_TOKEN,
                    f'Invalid camerapos value {value!r}', section, line_no))
                continue
            if not matched:
                errors.append(_warning(
                    ParseErrorKind.SECTION_GRAMMAR_MISMATCH,
                    f'Unrecognised camerapos value {value!r}', section, line_no))
            info.camera = camera
        else:
            info.extras[key] = value
    return info, errors


# ── Entities ──────────────────────────────────────────────────────────


def coerce_scalar(token):
    """int, then float, then true/false, else the string itself.

    Raises ValueError for nan and the infinities.
    """
    try:
        return int(token)
    except ValueError:
        pass
    try:
        value = float(token)
    except ValueError:
        pass
    else:
        return finite_float(value)
    if token.lower() in ('true', 'false'):
        return token.lower() == 'true'
    return token


def parse_entity_line(kind, text, section, line_no) -> Tuple[Optional[Entity], List[ParseError]]:
    """`x,y,Type[,orientation[,level]][,key=value...]`"""
    tokens = [t.strip() for t in text.split(',')]
    if tokens and tokens[-1] == '':
        tokens.pop()
    if len(tokens) < 3 or not tokens[2]:
        return None, [_error(
            ParseErrorKind.SECTION_GRAMMAR_MISMATCH,
            f'Expected x,y,Type, got {text!r}', section, line_no)]
    try:
        x, y = int(tokens[0]), int(tokens[1])
    except ValueError:
        return None, [_error(
            ParseErrorKind.MALFORMED_NUMERIC_TOKEN,
            f'Invalid entity position {tokens[0]!r},{tokens[1]!r}', section, line_no)]

    entity = Entity(kind, tokens[2], x, y)
    errors = []
    positional = [t for t in tokens[3:] if '=' not in t]
    for token in tokens[3:]:
        if '=' in token:
            key, _, value = token.partition('=')
            try:
                entity.properties[key.strip()] = coerce_scalar(value.strip())
            except ValueError:
                errors.append(_error(
                    ParseErrorKind.MALFORMED_NUMERIC_TOKEN,
                    f'Invalid value for property {key.strip()}: {value.strip()!r}',
                    section, line_no))

    try:
        if len(positional) > 0 and positional[0]:
            entity.orientation = finite_float(positional[0])
        if len(positional) > 1 and positional[1]:
            entity.level = int(positional[1])
    except ValueError:
        errors.append(_error(
            ParseErrorKind.MALFORMED_NUMERIC_TOKEN,
            f'Invalid orientation/level in {text!r}', section, line_no))
    if len(positional) > 2:
        errors.append(_warning(
            ParseErrorKind.SECTION_GRAMMAR_MISMATCH,
            f'Ignoring extra entity field(s): {",".join(positional[2:])}', section, line_no))
    return entity, errors


def parse_entities(section) -> Tuple[List[Entity], List[ParseError]]:
    kind = ENTITY_SECTIONS[section.name]
    entities = []
    errors = []
    for line_no, text in _content_lines(section):
        entity, line_errors = parse_entity_line(kind, text, section, line_no)
        errors.extend(line_errors)
        if entity is not None:
            entities.append(entity)
    return entities, errors


# ── Resources ─────────────────────────────────────────────────────────

RESOURCE_HEADER_RE = re.compile(r'^(\w+)\s*:$')


def parse_resources(section) -> Tuple[ResourceList, List[ParseError]]:
    """`name:` headers, each followed by `x,y,amount` records."""
    resources = ResourceList()
    errors = []
    current = None
    for line_no, text in _content_lines(section):
        m = RESOURCE_HEADER_RE.match(text)
        if m:
            current = m.group(1)
            resources.deposits.setdefault(current, [])
            continue
        if current is None:
            errors.append(_error(
                ParseErrorKind.SECTION_GRAMMAR_MISMATCH,
                f'Resource record before any resource header: {text!r}', section, line_no))
            continue

        tokens = [t.strip() for t in text.rstrip(',').split(',')]
        if len(tokens) != 3:
            errors.append(_error(
                ParseErrorKind.SECTION_GRAMMAR_MISMATCH,
                f'Expected x,y,amount, got {text!r}', section, line_no))
            continue
        try:
            x, y, amount = (int(t) for t in tokens)
        except ValueError:
            errors.append(_error(
                ParseErrorKind.MALFORMED_NUMERIC_TOKEN,
                f'Invalid resource record {text!r}', section, line_no))
            continue
        resources.deposits[current].append(ResourceDeposit(x, y, amount))
    return resources, errors


# ── Objectives ────────────────────────────────────────────────────────

LEGACY_DISCOVER_RE = re.compile(r'^discovertile:\s*(-?\d+)\s*,\s*(-?\d+)\s*/(.*)$')
LEGACY_VARIABLE_RE = re.compile(r'^variable:(.+?)/(.*)$')
LEGACY_RESOURCE_NAMES = ('crystals', 'ore', 'studs')

OBJECTIVE_BOOL_FIELDS = ('required', 'hidden', 'sequential')


def _indent(raw):
    return len(raw) - len(raw.lstrip())


def _objective_lines(section):
    """(line number, indent, stripped text) of the non-blank body lines."""
    out = []
    for i, raw in enumerate(section.lines):
        text = raw.strip()
        if text:
            out.append((body_line(section, i), _indent(raw.expandtabs(4)), text))
    return out


def _parse_mapping(lines, start, parent_indent):
    """Recursive descent over `key:value` lines indented deeper than the parent.

    A key with no value opens a nested mapping of the lines below it.

    Returns:
        (mapping, index of the first line not consumed)
    """
    mapping = {}
    i = start
    while i < len(lines):
        line_no, indent, text = lines[i]
        if indent <= parent_indent:
            break
        key, _, value = text.partition(':')
        key, value = key.strip().lower(), value.strip()
        i += 1
        if value:
            mapping[key] = (value, line_no)
        else:
            nested, i = _parse_mapping(lines, i, indent)
            mapping[key] = (nested, line_no)
    return mapping, i


def _parse_location(value):
    if isinstance(value, dict):
        return int(value['x'][0]), int(value['y'][0])
    x, y = value.split(',')
    return int(x), int(y)


def build_objective(fields, section, line_no) -> Tuple[Optional[Objective], List[ParseError]]:
    """Turn a parsed `objective:` mapping into an Objective."""
    errors = []
    kind_text, _ = fields.pop('type', ('custom', line_no))
    try:
        kind = ObjectiveKind(str(kind_text).lower())
    except ValueError:
        errors.append(_warning(
            ParseErrorKind.SECTION_GRAMMAR_MISMATCH,
            f'Unknown objective type {kind_text!r}; treating as custom', section, line_no))
        kind = ObjectiveKind.CUSTOM
    objective = Objective(kind)

    for key, (value, value_line) in fields.items():
        if isinstance(value, dict) and key != 'location':
            if value:
                errors.append(_warning(
                    ParseErrorKind.SECTION_GRAMMAR_MISMATCH,
                    f'Objective field {key!r} cannot hold nested fields', section, value_line))
            continue
        try:
            if key == 'target':
                objective.target = value
            elif key == 'description':
                objective.description = value
            elif key == 'amount':
                objective.amount = int(value)
            elif key == 'time':
                objective.time = finite_float(value)
            elif key == 'location':
                objective.location = _parse_location(value)
            elif key in OBJECTIVE_BOOL_FIELDS:
                if value.lower() not in ('true', 'false'):
                    errors.append(_error(
                        ParseErrorKind.SECTION_GRAMMAR_MISMATCH,
                        f'Objective field {key!r} expects true/false, got {value!r}',
                        section, value_line))
                    continue
                setattr(objective, key, value.lower() == 'true')
            else:
                errors.append(_warning(
                    ParseErrorKind.SECTION_GRAMMAR_MISMATCH,
                    f'Unknown objective field {key!r}', section, value_line))
        except (ValueError, KeyError, TypeError, AttributeError):
            errors.append(_error(
                ParseErrorKind.MALFORMED_NUMERIC_TOKEN,
                f'Invalid value for objective field {key!r}: {value!r}', section, value_line))
    return objective, errors


def parse_legacy_objective(text, section, line_no) -> Tuple[List[Objective], List[ParseError]]:
    """One-line objective forms: resources:, building:, discovertile:, variable:, findminer:."""
    key, _, value = text.partition(':')
    key, value = key.strip().lower(), value.strip()
    bad = [_error(ParseErrorKind.SECTION_GRAMMAR_MISMATCH,
                  f'Malformed {key} objective: {text!r}', section, line_no)]
    try:
        if key == 'resources':
            amounts = [int(v) for v in value.split(',')]
            if len(amounts) != 3:
                return [], bad
            return [
                Objective(ObjectiveKind.COLLECT, target=name, amount=amount)
                for name, amount in zip(LEGACY_RESOURCE_NAMES, amounts) if amount > 0
            ], []
        if key == 'building':
            return [Objective(ObjectiveKind.BUILD, target=value or None)], []
        if key == 'discovertile':
            m = LEGACY_DISCOVER_RE.match(text)
            if not m:
                return [], bad
            return [Objective(ObjectiveKind.DISCOVER, location=(int(m.group(1)), int(m.group(2))),
                              description=m.group(3).strip())], []
        if key == 'variable':
            m = LEGACY_VARIABLE_RE.match(text)
            if not m:
                return [], bad
            return [Objective(ObjectiveKind.CUSTOM, target=m.group(1).strip() or None,
                              description=m.group(2).strip())], []
        if key == 'findminer':
            return [Objective(ObjectiveKind.CUSTOM, target='findminer', amount=int(value))], []
    except ValueError:
        return [], [_error(ParseErrorKind.MALFORMED_NUMERIC_TOKEN,
                           f'Invalid number in {text!r}', section, line_no)]
    return [], [_error(ParseErrorKind.SECTION_GRAMMAR_MISMATCH,
                       f'Unknown objective line {text!r}', section, line_no)]


def parse_objectives(section) -> Tuple[List[Objective], List[ParseError]]:
    objectives = []
    errors = []
    lines = _objective_lines(section)
    i = 0
    while i < len(lines):
        line_no, indent, text = lines[i]
        if text.lower() == 'objective:':
            fields, i = _parse_mapping(lines, i + 1, indent)
            objective, obj_errors = build_objective(fields, section, line_no)
            errors.extend(obj_errors)
            objectives.append(objective)
            continue
        parsed, line_errors = parse_legacy_objective(text, section, line_no)
        objectives.extend(parsed)
        errors.extend(line_errors)
        i += 1
    return objectives, errors


# ── Document assembly ─────────────────────────────────────────────────


def _apply_info(doc, section):
    doc.info, errors = parse_info(section)
    return errors


def _apply_tiles(doc, section):
    doc.tiles, errors = parse_grid(section)
    return errors


def _apply_height(doc, section):
    doc.height, errors = parse_grid(section)
    return errors


def _apply_resources(doc, section):
    doc.resources, errors = parse_resources(section)
    return errors


def _apply_objectives(doc, section):
    doc.objectives, errors = parse_objectives(section)
    return errors


def _apply_entities(doc, section):
    entities, errors = parse_entities(section)
    doc.entities.extend(entities)
    return errors


def _apply_blocks(doc, section):
    doc.blocks, errors = parse_blocks(section.raw_content, first_line=body_line(section, 0))
    return errors


SECTION_PARSERS = {
    'info': _apply_info,
    'tiles': _apply_tiles,
    'height': _apply_height,
    'resources': _apply_resources,
    'objectives': _apply_objectives,
    'blocks': _apply_blocks,
}
SECTION_PARSERS.update({name: _apply_entities for name in ENTITY_SECTIONS})


def parse(text) -> ParseResult:
    """Parse level text into a Document.

    Never raises on malformed content; every problem is returned as a
    ParseError and the Document holds whatever could be parsed.

    Args:
        text: full level file contents (str)

    Returns:
        ParseResult(document, errors)
    """
    sections, errors = split_sections(text)
    by_name, route_errors = route_sections(sections)
    errors.extend(route_errors)

    doc = Document()
    for name, section in by_name.items():
        doc.section_order.append(name)
        apply = SECTION_PARSERS.get(name)
        if apply is None:
            doc.extra_sections.append(section)
            continue
        section_errors = apply(doc, section)
        logger.debug('Parsed section %s (%d error(s))', name, len(section_errors))
        errors.extend(section_errors)

    return ParseResult(doc, errors)

