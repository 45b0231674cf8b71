"""Shared constants for program assembly."""

from __future__ import annotations

import string

_ID_SAFE_CHARS = frozenset(string.ascii_letters + string.digits)

_SYMBOL_PREFIX = "n_"
_DIGEST_LEN = 12

_LOOP_INDENT = 4
_SETUP_BANNER = "# ===== SETUP ====="
_LOOP_BANNER = "# ===== MAIN LOOP ====="
_HEADER_TITLE = "# ORBITA generated program"

_UNBOUND_INPUT = "None"
