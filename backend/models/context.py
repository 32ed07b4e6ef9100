"""Writer context models pushed by the execution host"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SelectionContext(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    text: str = ""
    char_count: int = Field(0, alias="charCount")
    start: int = 0
    end: int = 0
    paragraph_count: int = Field(0, alias="paragraphCount")
    style_name: str = Field("", alias="styleName")
    has_selection: bool = Field(False, alias="hasSelection")


class OutlineItem(BaseModel):
    level: int = 1
    text: str = ""


class WriterContext(BaseModel):
    """Latest document context reported by the host"""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    document_name: str = Field("", alias="documentName")
    page_count: int = Field(0, alias="pageCount")
    word_count: int = Field(0, alias="wordCount")
    paragraph_count: int = Field(0, alias="paragraphCount")
    selection: SelectionContext | None = None
    outline: list[OutlineItem] = []
    document_summary: dict | None = Field(None, alias="documentSummary")
    timestamp: int = 0


class AddToChatItem(BaseModel):
    """Selection sent from the host's context menu"""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    text: str = ""
    start_pos: int = Field(0, alias="startPos")
    end_pos: int = Field(0, alias="endPos")
    char_count: int = Field(0, alias="charCount")
    paragraph_count: int = Field(0, alias="paragraphCount")
    style_name: str = Field("", alias="styleName")
    document_name: str = Field("", alias="documentName")
    received_at: int = Field(0, alias="receivedAt")
