"""Expected page structure module."""

from pagescan.core.structure.expected_structure import (
    PageExpectation,
    ExpectedStructure,
    loadStructureFile
)

__all__ = [
    'PageExpectation',
    'ExpectedStructure',
    'loadStructureFile'
]
