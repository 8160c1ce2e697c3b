"""
Symbols — How graph entities look in the terminal

Unicode glyphs where the terminal can show them, bracketed ASCII tags
otherwise. The display.symbols setting forces one or the other.

Output helpers for externally sourced text (issue titles, commit
messages, file names):
- sanitize_control_chars(): drop escape sequences and other control bytes
- safe_print(): print that degrades instead of raising on narrow encodings
"""

import os
import sys
from dataclasses import dataclass
from typing import Optional


# Glyph -> ASCII spelling, applied when stdout cannot encode the glyph
ASCII_FALLBACKS = {
    '→': '->',
    '←': '<-',
    '↔': '<->',
    '…': '...',
    '•': '*',
    '·': '.',
    '✓': 'OK',
    '✗': 'X',
}

UTF_ENCODINGS = frozenset({'utf8', 'utf16', 'utf16le', 'utf16be', 'utf32'})
NARROW_ENCODINGS = frozenset({'ascii', 'latin1', 'iso88591'})


def _is_control(code: int) -> bool:
    # C0, DEL and C1 (0x9b is a single-byte CSI)
    return code < 0x20 or 0x7f <= code < 0xa0


def sanitize_control_chars(text: str) -> str:
    """
    Strip C0, DEL and C1 control characters except tab, newline and
    carriage return.

    Keeps a crafted payload from moving the cursor or recoloring the
    terminal when printed.
    """
    if not text:
        return text
    return ''.join(ch for ch in text if ch in '\t\n\r' or not _is_control(ord(ch)))


def _to_ascii(text: str) -> str:
    for glyph, spelled in ASCII_FALLBACKS.items():
        text = text.replace(glyph, spelled)
    return text


def safe_print(text: str, end: str = '\n', file=None) -> None:
    """
    Print, falling back to ASCII spellings and then to '?' replacement
    when the stream's encoding rejects a character.
    """
    stream = file if file is not None else sys.stdout

    try:
        print(text, end=end, file=stream)
        return
    except UnicodeEncodeError:
        pass

    text = _to_ascii(text)
    try:
        print(text, end=end, file=stream)
    except UnicodeEncodeError:
        encoding = getattr(stream, 'encoding', None) or 'utf-8'
        print(text.encode(encoding, errors='replace').decode(encoding), end=end, file=stream)


SUMMARY_LENGTH = 60


def truncate(text: str, length: int = SUMMARY_LENGTH) -> str:
    """Shorten to `length` characters, ending in '...' when cut."""
    if not text or len(text) <= length:
        return text or ""
    if length <= 3:
        return text[:length]
    return f"{text[:length - 3]}..."


@dataclass(frozen=True)
class SymbolSet:
    """Symbols for node types, edge directions and status markers."""
    # Node types
    issue: str
    pr: str
    commit: str
    file: str
    project: str
    service: str

    # Edge directions
    outgoing: str
    incoming: str

    # Status markers
    check_pass: str
    check_warn: str
    check_fail: str
    bullet: str


UNICODE = SymbolSet(
    issue='◉',
    pr='⇄',
    commit='●',
    file='□',
    project='◆',
    service='⚙',
    outgoing='→',
    incoming='←',
    check_pass='✓',
    check_warn='⚠',
    check_fail='✗',
    bullet='•',
)

ASCII = SymbolSet(
    issue='[I]',
    pr='[PR]',
    commit='[C]',
    file='[F]',
    project='[P]',
    service='[S]',
    outgoing='->',
    incoming='<-',
    check_pass='[OK]',
    check_warn='[!]',
    check_fail='[X]',
    bullet='*',
)


# Node type value -> SymbolSet attribute
TYPE_TO_SYMBOL = {
    'Issue': 'issue',
    'PR': 'pr',
    'Commit': 'commit',
    'File': 'file',
    'Project': 'project',
    'Service': 'service',
}


def _normalized(encoding: str) -> str:
    return encoding.lower().replace('-', '').replace('_', '')


def supports_unicode() -> bool:
    """
    Best guess whether stdout can show Unicode glyphs.

    MAAT_ASCII_ONLY forces ASCII. Otherwise the stdout encoding decides,
    then the locale; anything unknown counts as ASCII.
    """
    if os.environ.get('MAAT_ASCII_ONLY', '').lower() in ('1', 'true', 'yes'):
        return False

    encoding = getattr(sys.stdout, 'encoding', None)
    if encoding:
        name = _normalized(encoding)
        if name in UTF_ENCODINGS:
            return True
        if name.startswith('cp') or name in NARROW_ENCODINGS:
            return False

    locale = ' '.join(os.environ.get(var, '') for var in ('LANG', 'LC_ALL')).lower()
    return 'utf-8' in locale or 'utf8' in locale


def get_symbols(preference: Optional[str] = None) -> SymbolSet:
    """Pick a symbol set: "unicode", "ascii", or "auto"/None to detect."""
    if preference in ('unicode', 'ascii'):
        return UNICODE if preference == 'unicode' else ASCII
    if supports_unicode():
        return UNICODE
    return ASCII


def symbol_for_type(symbols: SymbolSet, node_type) -> str:
    """Glyph for a node type (enum member or its value); bullet if unknown."""
    attr = TYPE_TO_SYMBOL.get(getattr(node_type, 'value', node_type))
    if attr is None:
        return symbols.bullet
    return getattr(symbols, attr)
