"""
Presentation — Terminal output helpers for MAAT
"""

from .symbols import (
    SymbolSet, UNICODE, ASCII, get_symbols, symbol_for_type,
    safe_print, sanitize_control_chars, truncate,
)

__all__ = [
    "SymbolSet", "UNICODE", "ASCII", "get_symbols", "symbol_for_type",
    "safe_print", "sanitize_control_chars", "truncate",
]
