"""
Lexer / section router for the level text format.

Splits raw text into named top-level `name{ ... }` sections. A header line
is `^\\s*(\\w+)\\s*\\{\\s*$` and a section ends at the next line that is a
bare `}`. Section bodies are kept verbatim; the specialised parsers in
parser.py and blocks.py interpret them.
"""
import logging
import re
from typing import Dict, List, Tuple

from mmdat.data_model import ParseError, ParseErrorKind, Section, Severity

logger = logging.getLogger(__name__)

SECTION_OPEN_RE = re.compile(r'^\s*(\w+)\s*\{\s*$')
SECTION_CLOSE_RE = re.compile(r'^\s*\}\s*$')


def split_lines(text):
    """Split text on any of \\r\\n, \\r, \\n."""
    return text.replace('\r\n', '\n').replace('\r', '\n').split('\n')


def split_sections(text) -> Tuple[List[Section], List[ParseError]]:
    """Scan text into an ordered list of Sections.

    Never raises on malformed input. An unclosed section produces an
    UNTERMINATED_SECTION error and takes the rest of the file as its body;
    non-blank text between sections produces a grammar warning.

    Returns:
        (sections, errors)
    """
    if not isinstance(text, str):
        raise TypeError(f'Expected level text as str, got {type(text).__name__}')

    sections = []
    errors = []
    name = None
    start = 0
    body = []

    for i, line in enumerate(split_lines(text)):
        if name is None:
            m = SECTION_OPEN_RE.match(line)
            if m:
                name, start, body = m.group(1), i, []
            elif line.strip():
                errors.append(ParseError(
                    ParseErrorKind.SECTION_GRAMMAR_MISMATCH,
                    f'Text outside any section: {line.strip()!r}',
                    line=i + 1, severity=Severity.WARNING))
            continue

        if SECTION_CLOSE_RE.match(line):
            sections.append(Section(name, '\n'.join(body), start_line=start, end_line=i))
            name = None
        else:
            body.append(line)

    if name is not None:
        errors.append(ParseError(
            ParseErrorKind.UNTERMINATED_SECTION,
            f"Section '{name}' opened at line {start + 1} is never closed",
            line=start + 1, section=name))
        sections.append(Section(name, '\n'.join(body), start_line=start, end_line=None))

    logger.debug('Split %d section(s): %s', len(sections), [s.name for s in sections])
    return sections, errors


def route_sections(sections) -> Tuple[Dict[str, Section], List[ParseError]]:
    """Index sections by name; the first occurrence of a name wins.

    Returns:
        (name → Section, errors) where errors holds one DUPLICATE_SECTION
        warning per ignored repeat.
    """
    by_name = {}
    errors = []
    for section in sections:
        if section.name in by_name:
            first = by_name[section.name]
            errors.append(ParseError(
                ParseErrorKind.DUPLICATE_SECTION,
                f"Section '{section.name}' repeated; keeping the one at line "
                f"{first.start_line + 1}",
                line=section.start_line + 1, section=section.name,
                severity=Severity.WARNING))
            continue
        by_name[section.name] = section
    return by_name, errors
