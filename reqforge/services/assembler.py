"""Document assembler - merges approved subsection content in outline order.

Pure functions over an ``Outline`` and a mapping of saved records. The
output depends only on those inputs: the mapping is consulted by key
while walking the outline, so the order in which sections were saved
never leaks into the document.

Pending policy: every leaf of the outline always gets its heading. A leaf
without an *approved* record (never saved, or saved as draft) is emitted
with the pending placeholder instead of content.
"""

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Protocol

from .outline_registry import Outline, SectionKey

APPROVED = "approved"


class SectionContent(Protocol):
    content: str
    status: str


@dataclass(frozen=True)
class Completion:
    completed_count: int
    total_count: int
    percentage: int

    @property
    def can_export(self) -> bool:
        return self.completed_count > 0


def _status_value(status) -> str:
    return getattr(status, "value", status)


def _heading(text: str, rule: str) -> str:
    return f"{text}\n{rule * len(text)}\n"


def assemble(
    outline: Outline,
    records: Mapping[SectionKey, SectionContent],
    *,
    title: str = "Software Requirements Specification",
    project_title: Optional[str] = None,
    project_description: Optional[str] = None,
    pending_placeholder: str = "[This section is pending completion]",
) -> str:
    """Render the full document text.

    Layout::

        <title>
        Project: <project title>

        Project Description:
        <description>

        1. Introduction
        ===============

        1.1 Purpose
        -----------
        <approved content or pending placeholder>

    No timestamps or other ambient values are emitted, so two calls with
    the same arguments return byte-identical strings.
    """
    parts: list[str] = [f"{title}\n"]
    if project_title:
        parts.append(f"Project: {project_title}\n")
    parts.append("\n")
    if project_description and project_description.strip():
        parts.append(f"Project Description:\n{project_description.strip()}\n\n")

    for section in outline.sections:
        parts.append(_heading(f"{section.id}. {section.title}", "="))
        parts.append("\n")
        for leaf in section.leaves:
            parts.append(_heading(f"{leaf.subsection_id} {leaf.subsection_title}", "-"))
            record = records.get(leaf.key)
            if record is not None and _status_value(record.status) == APPROVED:
                parts.append(f"{record.content.strip()}\n\n")
            else:
                parts.append(f"{pending_placeholder}\n\n")

    return "".join(parts).rstrip("\n") + "\n"


def completion(outline: Outline, saved_keys: Iterable[SectionKey]) -> Completion:
    """Completion metric over distinct saved keys that belong to the outline.

    ``percentage`` rounds half up; an outline with no leaves reports 0.
    """
    leaf_keys = set(outline.leaf_keys())
    completed = len(leaf_keys.intersection(SectionKey(*key) for key in saved_keys))
    total = len(leaf_keys)
    if total == 0:
        return Completion(completed_count=0, total_count=0, percentage=0)
    percentage = (200 * completed + total) // (2 * total)
    return Completion(completed_count=completed, total_count=total, percentage=percentage)
