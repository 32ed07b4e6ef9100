"""
Diff Generator Service - Paragraph diffs between document snapshots

The diff is positional: paragraphs are compared index by index, so an
insertion in the middle of a document reports every later paragraph as
changed. Snapshots are capped at MAX_SNAPSHOT_PARAGRAPHS, which keeps this
bounded.
"""

from __future__ import annotations

from models.diff import DiffResult, DocumentSnapshot, ParagraphChange

MAX_SNAPSHOT_PARAGRAPHS = 100
MAX_SELECTION_CHARS = 2000
MAX_CHANGE_TEXT = 300
MAX_CHANGES = 50


class DiffGenerator:
    """Generate paragraph diffs for code executed in the host document"""

    def generate_diff(
        self,
        before: DocumentSnapshot | None,
        after: DocumentSnapshot | None,
    ) -> DiffResult | None:
        """Diff two snapshots; None when either snapshot could not be taken"""
        if before is None or after is None:
            return None
        return self.diff_paragraphs(
            before.paragraph_texts,
            after.paragraph_texts,
            document_name=after.document_name,
        )

    def diff_paragraphs(
        self,
        before: list[str],
        after: list[str],
        document_name: str = "",
    ) -> DiffResult:
        """Index-aligned comparison of two paragraph lists"""
        changes = []
        for i in range(max(len(before), len(after))):
            b_text = before[i] if i < len(before) else ""
            a_text = after[i] if i < len(after) else ""
            if b_text != a_text:
                changes.append(
                    ParagraphChange(
                        paragraph=i + 1,  # 1-indexed for the UI
                        before=b_text[:MAX_CHANGE_TEXT],
                        after=a_text[:MAX_CHANGE_TEXT],
                    )
                )

        return DiffResult(
            document_name=document_name,
            change_count=len(changes),
            added_paragraphs=len(after) - len(before),
            changes=changes[:MAX_CHANGES],
            has_more=len(changes) > MAX_CHANGES,
        )


def make_snapshot(
    document_name: str,
    paragraphs: list[str],
    selection_text: str = "",
    selection_start: int = 0,
    selection_end: int = 0,
) -> DocumentSnapshot:
    """Build a snapshot the way the host captures one"""
    return DocumentSnapshot(
        document_name=document_name,
        paragraph_count=len(paragraphs),
        selection_text=selection_text[:MAX_SELECTION_CHARS],
        selection_start=selection_start,
        selection_end=selection_end,
        paragraph_texts=[p.rstrip("\r\n") for p in paragraphs[:MAX_SNAPSHOT_PARAGRAPHS]],
    )
