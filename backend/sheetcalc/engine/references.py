"""Reference extraction: which cells does a formula read?"""

import re
from typing import List

# One or more letters followed by one or more digits: A1, ab12, ZZ999
CELL_REF_RE = re.compile(r'[A-Z]+[0-9]+', re.IGNORECASE)

FORMULA_MARKER = "="


def is_formula(text: str) -> bool:
    return text.startswith(FORMULA_MARKER)


def extract_references(formula: str) -> List[str]:
    """Return every cell reference in ``formula``, upper-cased.

    Duplicates are kept in occurrence order. Text without a leading '=' is
    a literal and references nothing.
    """
    if not is_formula(formula):
        return []
    return [match.upper() for match in CELL_REF_RE.findall(formula[1:])]


def unique_references(formula: str) -> List[str]:
    """Like :func:`extract_references` but each cell appears once."""
    refs: List[str] = []
    seen = set()
    for ref in extract_references(formula):
        if ref not in seen:
            refs.append(ref)
            seen.add(ref)
    return refs
