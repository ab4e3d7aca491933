"""
Rendering Services Package

Draw-instruction models and the abstract renderer the invoice and ledger
layouts are handed to.
"""

from supply_ledger.services.rendering.interface import (
    Alignment,
    DocumentLayout,
    DocumentRenderer,
    DrawInstruction,
    FontStyle,
    LineInstruction,
    PageBreakInstruction,
    RectInstruction,
    RenderedDocument,
    RenderingError,
    TableColumn,
    TableInstruction,
    TextInstruction,
)

__all__ = [
    "Alignment",
    "DocumentLayout",
    "DocumentRenderer",
    "DrawInstruction",
    "FontStyle",
    "LineInstruction",
    "PageBreakInstruction",
    "RectInstruction",
    "RenderedDocument",
    "RenderingError",
    "TableColumn",
    "TableInstruction",
    "TextInstruction",
]
