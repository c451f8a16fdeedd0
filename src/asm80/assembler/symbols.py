"""
Label Symbol Table
==================

Maps label names to absolute 16-bit addresses for one assembly run.

Labels may be referenced with or without a single leading '.' marker
(``jmp loop`` and ``jmp .loop`` are the same target). Both spellings go
through ``normalize_label`` at definition and at lookup time, so one map
entry serves both.

The table only grows. A later definition of the same name replaces the
earlier one.
"""

import logging
from typing import Iterator, Optional

from asm80.errors import SourceLocation, UnresolvedLabelError

logger = logging.getLogger(__name__)

# Leading character accepted on label references
LABEL_MARKER = "."


def normalize_label(name: str) -> str:
    """Strip a single leading label marker."""
    if name.startswith(LABEL_MARKER):
        return name[len(LABEL_MARKER):]
    return name


class SymbolTable:
    """
    Label name to address map, populated during the single forward pass.

    Usage:
        symbols = SymbolTable()
        symbols.define("start", 0x8200)
        symbols.resolve(".start")   # 0x8200
    """

    def __init__(self) -> None:
        self._labels: dict[str, int] = {}

    def define(self, name: str, address: int) -> None:
        """
        Bind a label to an address.

        Args:
            name: Label name, with or without the marker
            address: Absolute 16-bit address
        """
        key = normalize_label(name)
        previous = self._labels.get(key)
        if previous is not None and previous != address:
            logger.debug(f"Label '{key}' redefined: ${previous:04X} -> ${address:04X}")
        self._labels[key] = address

    def resolve(
        self,
        name: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ) -> int:
        """
        Look up the address of a label.

        Raises:
            UnresolvedLabelError: If the label has not been defined yet
        """
        key = normalize_label(name)
        try:
            return self._labels[key]
        except KeyError:
            raise UnresolvedLabelError(
                key,
                location=location,
                source_line=source_line,
                similar_symbols=self._find_similar(key),
            ) from None

    def as_dict(self) -> dict[str, int]:
        """Return a copy of the label map."""
        return dict(self._labels)

    def __contains__(self, name: str) -> bool:
        return normalize_label(name) in self._labels

    def __len__(self) -> int:
        return len(self._labels)

    def __iter__(self) -> Iterator[str]:
        return iter(self._labels)

    def _find_similar(self, name: str) -> list[str]:
        """
        Find labels with similar names for error hints.

        Uses simple edit distance heuristic.
        """
        name_lower = name.lower()
        similar = []

        for label in self._labels:
            label_lower = label.lower()
            if (
                label_lower == name_lower or
                abs(len(label) - len(name)) <= 1 and
                _edit_distance(name_lower, label_lower) <= 2
            ):
                similar.append(label)

        return similar[:3]


def _edit_distance(s1: str, s2: str) -> int:
    """Calculate Levenshtein edit distance between two strings."""
    if len(s1) < len(s2):
        s1, s2 = s2, s1

    distances = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        new_distances = [i + 1]
        for j, c2 in enumerate(s2):
            if c1 == c2:
                new_distances.append(distances[j])
            else:
                new_distances.append(1 + min((
                    distances[j],
                    distances[j + 1],
                    new_distances[-1]
                )))
        distances = new_distances

    return distances[-1]
