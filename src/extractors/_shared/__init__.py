"""
Shared utilities for document extractors.

This package provides common functionality used across multiple parsers:
- office_art: OfficeArt (Escher) records, BLIP store and BLIP decoding
- ole_helpers: OLE compound file opening and bounded stream reads

Design Principle:
    Extractors are self-contained modules, independent from src/core/.
    These utilities are specifically for extractors to maintain modularity.
"""
