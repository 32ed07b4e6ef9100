"""Document snapshot and paragraph diff models"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class DocumentSnapshot(BaseModel):
    """Paragraph texts and selection captured around a code execution"""

    model_config = ConfigDict(populate_by_name=True)

    document_name: str = Field("", alias="documentName")
    paragraph_count: int = Field(0, alias="paragraphCount")
    selection_text: str = Field("", alias="selectionText")
    selection_start: int = Field(0, alias="selectionStart")
    selection_end: int = Field(0, alias="selectionEnd")
    paragraph_texts: list[str] = Field(default_factory=list, alias="paragraphTexts")


class ParagraphChange(BaseModel):
    """A single changed paragraph (1-indexed)"""

    paragraph: int
    before: str
    after: str


class DiffResult(BaseModel):
    """Positional paragraph diff between two snapshots"""

    model_config = ConfigDict(populate_by_name=True)

    document_name: str = Field("", alias="documentName")
    change_count: int = Field(0, alias="changeCount")
    added_paragraphs: int = Field(0, alias="addedParagraphs")
    changes: list[ParagraphChange] = []
    has_more: bool = Field(False, alias="hasMore")
