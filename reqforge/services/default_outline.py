"""IEEE 830 SRS skeleton used when a project does not generate its own outline."""

from ..schemas.outline import OutlineSection, OutlineSubsection, OutlineTree


def _section(section_id: str, title: str, subsections: list[tuple[str, str, str]]) -> OutlineSection:
    return OutlineSection(
        id=section_id,
        title=title,
        order=int(section_id),
        subsections=[
            OutlineSubsection(id=sub_id, title=sub_title, order=i, questions=[question])
            for i, (sub_id, sub_title, question) in enumerate(subsections, start=1)
        ],
    )


DEFAULT_SRS_OUTLINE = OutlineTree(
    sections=[
        _section("1", "Introduction", [
            ("1.1", "Purpose", "What is the purpose of the software and who is this document for?"),
            ("1.2", "Scope", "What will the software do, and what is explicitly out of scope?"),
            ("1.3", "Definitions, Acronyms and Abbreviations", "Which terms or acronyms need defining?"),
            ("1.4", "References", "Which documents or standards does this specification rely on?"),
            ("1.5", "Overview", "How is the rest of this document organised?"),
        ]),
        _section("2", "Overall Description", [
            ("2.1", "Product Perspective", "How does the product relate to other systems it works with?"),
            ("2.2", "Product Functions", "What are the major functions the product performs?"),
            ("2.3", "User Characteristics", "Who are the users and what expertise do they have?"),
            ("2.4", "Constraints", "Which regulatory, hardware or policy constraints apply?"),
            ("2.5", "Assumptions and Dependencies", "What assumptions could, if changed, affect the requirements?"),
        ]),
        _section("3", "Specific Requirements", [
            ("3.1", "External Interfaces", "Which user, hardware, software and communication interfaces exist?"),
            ("3.2", "Functions", "What must the system do in response to each input?"),
            ("3.3", "Performance Requirements", "What response times, throughput or capacity are required?"),
            ("3.4", "Logical Database Requirements", "What information must be stored and how is it used?"),
            ("3.5", "Design Constraints", "Which standards or limitations constrain the design?"),
            ("3.6", "Software System Attributes", "What reliability, security and maintainability levels are needed?"),
        ]),
    ]
)
