"""Outline registry - validated, ordered document skeleton.

Pure module: no database access. ``register_outline`` turns a submitted
``OutlineTree`` into an immutable ``Outline`` whose sections and
subsections are sorted by their declared ``order``. Everything downstream
(completion metrics, assembly, answer lookup) walks the outline through
this object, so ordering is decided in exactly one place.
"""

from dataclasses import dataclass
from typing import NamedTuple, Optional

from ..exceptions import ValidationError
from ..schemas.outline import OutlineSection, OutlineSubsection, OutlineTree


class SectionKey(NamedTuple):
    """Composite key of a leaf subsection."""
    section_id: str
    subsection_id: str


@dataclass(frozen=True)
class OutlineLeaf:
    section_id: str
    section_title: str
    subsection_id: str
    subsection_title: str
    order: int
    questions: tuple[str, ...]

    @property
    def key(self) -> SectionKey:
        return SectionKey(self.section_id, self.subsection_id)


@dataclass(frozen=True)
class OutlineSectionNode:
    id: str
    title: str
    order: int
    leaves: tuple[OutlineLeaf, ...]


@dataclass(frozen=True)
class Outline:
    """Registered outline. Sections and leaves are already in declared order."""

    sections: tuple[OutlineSectionNode, ...]

    def leaves(self) -> list[OutlineLeaf]:
        return [leaf for section in self.sections for leaf in section.leaves]

    def leaf_count(self) -> int:
        return sum(len(section.leaves) for section in self.sections)

    def leaf_keys(self) -> list[SectionKey]:
        return [leaf.key for leaf in self.leaves()]

    def find_leaf(self, section_id: str, subsection_id: str) -> Optional[OutlineLeaf]:
        for section in self.sections:
            if section.id != section_id:
                continue
            for leaf in section.leaves:
                if leaf.subsection_id == subsection_id:
                    return leaf
        return None

    def require_leaf(self, section_id: str, subsection_id: str) -> OutlineLeaf:
        """Like find_leaf, but an unknown key is a ValidationError."""
        leaf = self.find_leaf(section_id, subsection_id)
        if leaf is None:
            raise ValidationError(
                f"Subsection {section_id}/{subsection_id} is not part of the outline",
                field="subsection_id",
                section_id=section_id,
                subsection_id=subsection_id,
            )
        return leaf

    def to_tree(self) -> OutlineTree:
        return OutlineTree(
            sections=[
                OutlineSection(
                    id=section.id,
                    title=section.title,
                    order=section.order,
                    subsections=[
                        OutlineSubsection(
                            id=leaf.subsection_id,
                            title=leaf.subsection_title,
                            order=leaf.order,
                            questions=list(leaf.questions),
                        )
                        for leaf in section.leaves
                    ],
                )
                for section in self.sections
            ]
        )


def _check_siblings(nodes, where: str, problems: list[str]) -> None:
    seen_orders: dict[int, str] = {}
    for node in nodes:
        if node.order in seen_orders:
            problems.append(
                f"{where}: '{node.id}' and '{seen_orders[node.order]}' share order {node.order}"
            )
        else:
            seen_orders[node.order] = node.id


def register_outline(tree: OutlineTree) -> Outline:
    """Validate *tree* and freeze it into an ordered ``Outline``.

    Rejects, with a single ValidationError listing every problem:
    duplicate node ids anywhere in the tree, blank ids or titles,
    sections without subsections, leaves without at least one non-blank
    question, and siblings sharing the same ``order`` (which would make
    assembly order ambiguous).

    An outline with no sections at all is valid; its leaf count is 0.
    """
    problems: list[str] = []
    seen_ids: set[str] = set()

    def _claim(node_id: str, where: str) -> None:
        if not node_id.strip():
            problems.append(f"{where}: id must not be blank")
        elif node_id in seen_ids:
            problems.append(f"{where}: duplicate id '{node_id}'")
        else:
            seen_ids.add(node_id)

    _check_siblings(tree.sections, "outline", problems)

    for section in tree.sections:
        _claim(section.id, f"section '{section.id}'")
        if not section.title.strip():
            problems.append(f"section '{section.id}': title must not be blank")
        if not section.subsections:
            problems.append(f"section '{section.id}': needs at least one subsection")
        _check_siblings(section.subsections, f"section '{section.id}'", problems)

        for sub in section.subsections:
            _claim(sub.id, f"subsection '{sub.id}'")
            if not sub.title.strip():
                problems.append(f"subsection '{sub.id}': title must not be blank")
            if not any(q.strip() for q in sub.questions):
                problems.append(f"subsection '{sub.id}': needs at least one question")

    if problems:
        raise ValidationError(
            f"Invalid outline: {problems[0]}" + (f" (and {len(problems) - 1} more)" if len(problems) > 1 else ""),
            field="sections",
            problems=problems,
        )

    sections = []
    for section in sorted(tree.sections, key=lambda s: s.order):
        leaves = tuple(
            OutlineLeaf(
                section_id=section.id,
                section_title=section.title.strip(),
                subsection_id=sub.id,
                subsection_title=sub.title.strip(),
                order=sub.order,
                questions=tuple(q.strip() for q in sub.questions if q.strip()),
            )
            for sub in sorted(section.subsections, key=lambda s: s.order)
        )
        sections.append(
            OutlineSectionNode(id=section.id, title=section.title.strip(), order=section.order, leaves=leaves)
        )
    return Outline(sections=tuple(sections))


def leaf_count(outline: Outline) -> int:
    """Total number of leaf subsections."""
    return outline.leaf_count()
