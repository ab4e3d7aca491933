"""
Abstract Document Rendering Interface

DESIGN DECISION: The engine never touches a PDF library. It prepares an
ordered list of draw instructions (positioned text, tables, rectangles,
lines) in millimetres on an A4 page, and a renderer turns them into bytes.

This allows us to:
1. Swap the rendering technology without touching invoice math
2. Assert on layout in tests without decoding PDFs
3. Render the same layout to PDF, HTML or an image preview
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

RGB = tuple[int, int, int]

BLACK: RGB = (0, 0, 0)
WHITE: RGB = (255, 255, 255)

PAGE_WIDTH_MM = 210.0
PAGE_HEIGHT_MM = 297.0


class Alignment(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class FontStyle(str, Enum):
    NORMAL = "normal"
    BOLD = "bold"
    ITALIC = "italic"
    BOLD_ITALIC = "bolditalic"


class TextInstruction(BaseModel):
    """Text anchored at (x, y). A list of lines is drawn top to bottom."""

    kind: Literal["text"] = "text"
    x: float
    y: float
    text: Union[str, list[str]]
    font_size: float = 10
    font_style: FontStyle = FontStyle.NORMAL
    align: Alignment = Alignment.LEFT
    color: RGB = BLACK
    max_width: Optional[float] = Field(
        default=None,
        description="Wrap width in mm; None means no wrapping"
    )


class TableColumn(BaseModel):
    header: str
    width: Optional[float] = Field(
        default=None,
        description="Column width in mm; None lets the renderer size it"
    )
    align: Alignment = Alignment.LEFT
    bold: bool = False
    color: RGB = BLACK


class TableInstruction(BaseModel):
    """A grid table starting at y, spanning the page between the margins."""

    kind: Literal["table"] = "table"
    y: float
    columns: list[TableColumn]
    rows: list[list[str]]
    font_size: float = 10
    margin_left: float = 10
    margin_right: float = 10
    header_fill: RGB = (220, 220, 220)
    header_text_color: RGB = BLACK
    striped: bool = False
    highlighted_rows: list[int] = Field(
        default_factory=list,
        description="Row indexes drawn with highlight_fill"
    )
    highlight_fill: RGB = (255, 236, 179)


class RectInstruction(BaseModel):
    kind: Literal["rect"] = "rect"
    x: float
    y: float
    width: float
    height: float
    fill: Optional[RGB] = Field(
        default=None,
        description="Fill colour; None draws the outline only"
    )
    stroke: bool = True


class LineInstruction(BaseModel):
    kind: Literal["line"] = "line"
    x1: float
    y1: float
    x2: float
    y2: float
    width: float = 0.5


class PageBreakInstruction(BaseModel):
    kind: Literal["page_break"] = "page_break"


DrawInstruction = Annotated[
    Union[
        TextInstruction,
        TableInstruction,
        RectInstruction,
        LineInstruction,
        PageBreakInstruction,
    ],
    Field(discriminator="kind"),
]


class DocumentLayout(BaseModel):
    """A complete page description plus the suggested download name."""

    instructions: list[DrawInstruction] = Field(default_factory=list)
    filename: str

    def texts(self) -> list[str]:
        """Every piece of text in drawing order (table cells excluded)."""
        found = []
        for instruction in self.instructions:
            if isinstance(instruction, TextInstruction):
                if isinstance(instruction.text, list):
                    found.extend(instruction.text)
                else:
                    found.append(instruction.text)
        return found

    def tables(self) -> list[TableInstruction]:
        return [i for i in self.instructions if isinstance(i, TableInstruction)]


class RenderedDocument(BaseModel):
    """Binary output of a renderer."""

    content: bytes
    filename: str
    content_type: str = "application/pdf"

    @property
    def size_bytes(self) -> int:
        return len(self.content)


class DocumentRenderer(ABC):
    """
    Abstract interface for the document rendering collaborator.

    Implementations draw the instructions in order and return the bytes.
    """

    @abstractmethod
    async def render(self, layout: DocumentLayout) -> RenderedDocument:
        """
        Render a layout.

        Args:
            layout: Ordered draw instructions and the suggested filename

        Returns:
            The rendered document

        Raises:
            RenderingError: If the document could not be produced
        """
        pass


class RenderingError(Exception):
    """The rendering collaborator failed to produce a document."""
    pass
