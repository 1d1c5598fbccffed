"""
Document → level text.

Output is canonical rather than byte-identical to the source: whitespace
is normalised, objectives always use the block form, and unset optional
info keys are omitted. parse(serialize(doc)) == doc for any Document the
parser can produce.
"""
from typing import List

from mmdat.blocks import format_block, format_wire
from mmdat.data_model import ENTITY_SECTIONS, EntityKind, format_number, format_scalar

CANONICAL_ORDER = (
    'info', 'tiles', 'height', 'resources', 'objectives',
    'buildings', 'vehicles', 'creatures', 'miners', 'blocks',
)

# Typed info keys in emission order (after rowcount/colcount/camerapos/biome)
INFO_OPTIONAL_KEYS = (
    'camerazoom', 'version', 'opencaves', 'oxygen', 'initialcrystals',
    'initialore', 'spiderrate', 'spidermin', 'spidermax',
    'erosioninitialwaittime', 'erosionscale',
)


def _wrap(name, lines):
    return '\n'.join([f'{name}{{'] + list(lines) + ['}'])


# ── Per-section emitters ──────────────────────────────────────────────


def format_camera(camera) -> str:
    t, r, s = camera.translation, camera.rotation, camera.scale
    n = format_number
    return (f'Translation: X={n(t.x)} Y={n(t.y)} Z={n(t.z)} '
            f'Rotation: P={n(r.pitch)} Y={n(r.yaw)} R={n(r.roll)} '
            f'Scale X={n(s.x)} Y={n(s.y)} Z={n(s.z)}')


def info_lines(info) -> List[str]:
    lines = []
    for key in ('rowcount', 'colcount'):
        value = getattr(info, key)
        if value is not None:
            lines.append(f'{key}:{value}')
    if info.camera is not None:
        lines.append(f'camerapos:{format_camera(info.camera)}')
    lines.append(f'biome:{info.biome.value}')
    for key in ('creator', 'levelname'):
        if getattr(info, key):
            lines.append(f'{key}:{getattr(info, key)}')
    for key in INFO_OPTIONAL_KEYS:
        value = getattr(info, key)
        if value is not None:
            lines.append(f'{key}:{format_scalar(value)}')
    for key, value in info.extras.items():
        lines.append(f'{key}:{value}')
    return lines


def grid_lines(grid) -> List[str]:
    return [','.join(str(v) for v in row) + ',' for row in grid.to_rows()]


def resource_lines(resources) -> List[str]:
    lines = []
    for name, deposits in resources.deposits.items():
        lines.append(f'{name}:')
        lines.extend(f'{d.x},{d.y},{d.amount}' for d in deposits)
    return lines


def objective_lines(objectives) -> List[str]:
    lines = []
    for obj in objectives:
        lines.append('objective:')
        lines.append(f'  type:{obj.kind.value}')
        if obj.target:
            lines.append(f'  target:{obj.target}')
        if obj.amount is not None:
            lines.append(f'  amount:{obj.amount}')
        if obj.location is not None:
            lines.extend(['  location:', f'    x:{obj.location[0]}', f'    y:{obj.location[1]}'])
        if obj.time is not None:
            lines.append(f'  time:{format_number(obj.time)}')
        if obj.description:
            lines.append(f'  description:{obj.description}')
        if not obj.required:
            lines.append('  required:false')
        if obj.hidden:
            lines.append('  hidden:true')
        if obj.sequential:
            lines.append('  sequential:true')
    return lines


def entity_line(entity) -> str:
    tokens = [str(entity.x), str(entity.y), entity.type, format_number(entity.orientation)]
    if entity.level is not None:
        tokens.append(str(entity.level))
    tokens.extend(f'{k}={format_scalar(v)}' for k, v in entity.properties.items())
    return ','.join(tokens)


def block_lines(graph) -> List[str]:
    return [format_block(b) for b in graph.blocks] + [format_wire(w) for w in graph.wires]


# ── Document ──────────────────────────────────────────────────────────


def serialize_section(doc, name):
    """Canonical text of one known section, or None when the document has no data for it."""
    if name == 'info':
        return _wrap(name, info_lines(doc.info)) if doc.info is not None else None
    if name in ('tiles', 'height'):
        grid = getattr(doc, name)
        return _wrap(name, grid_lines(grid)) if grid is not None else None
    if name == 'resources':
        return _wrap(name, resource_lines(doc.resources))
    if name == 'objectives':
        return _wrap(name, objective_lines(doc.objectives))
    if name in ENTITY_SECTIONS:
        return _wrap(name, [entity_line(e) for e in doc.entities_of(ENTITY_SECTIONS[name])])
    if name == 'blocks':
        return _wrap(name, block_lines(doc.blocks))
    return None


def _populated(doc, name):
    if name in ('info', 'tiles', 'height'):
        return getattr(doc, name) is not None
    if name == 'resources':
        return bool(doc.resources.deposits)
    if name == 'objectives':
        return bool(doc.objectives)
    if name in ENTITY_SECTIONS:
        return bool(doc.entities_of(EntityKind(name)))
    return bool(doc.blocks)


def serialize(doc) -> str:
    """Emit every section: source order first, then remaining known sections
    in canonical order, then any unknown sections not yet written."""
    extras = {s.name: s for s in reversed(doc.extra_sections)}
    chunks = []
    written = set()

    def emit(name):
        if name in written:
            return
        if name in extras:
            section = extras[name]
            chunks.append(_wrap(name, section.lines))
            written.add(name)
            return
        text = serialize_section(doc, name)
        if text is not None:
            chunks.append(text)
            written.add(name)

    for name in doc.section_order:
        emit(name)
    for name in CANONICAL_ORDER:
        if _populated(doc, name):
            emit(name)
    for section in doc.extra_sections:
        emit(section.name)

    return '\n'.join(chunks) + '\n'
