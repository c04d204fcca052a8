"""Pydantic schemas for Azure recognition and layout results."""

from typing import List, Optional

from pydantic import BaseModel, Field


class RecognitionResult(BaseModel):
    """Text extracted from one image."""

    text: str = Field(description="Recognized lines joined by newlines")
    confidence: float = Field(ge=0, le=100, description="Mean word confidence scaled to 0-100")


class LayoutParagraph(BaseModel):
    role: Optional[str] = Field(default=None, description="Semantic role such as title or sectionHeading")
    content: str


class LayoutTable(BaseModel):
    row_count: int
    column_count: int


class LayoutData(BaseModel):
    """Structure detected by the layout model."""

    page_count: int = 0
    paragraphs: List[LayoutParagraph] = Field(default_factory=list)
    tables: List[LayoutTable] = Field(default_factory=list)

    def outline(self) -> str:
        """Short structural summary suitable for a prompt."""
        lines = [f"Pages: {self.page_count}"]
        for paragraph in self.paragraphs:
            if paragraph.role:
                lines.append(f"- {paragraph.role}: {paragraph.content}")
        for index, table in enumerate(self.tables, start=1):
            lines.append(f"- table {index}: {table.row_count} rows x {table.column_count} columns")
        return "\n".join(lines)
