"""Prompt templates for the generation adapters.

Pure data. Every template asks for a single JSON object so the adapters
can parse replies the same way regardless of provider.
"""

SYSTEM_PROMPT = (
    "You are a requirements engineer helping a user write a Software Requirements "
    "Specification following IEEE Std 830-1998. Be precise, use plain language, and "
    "reply with a single JSON object and nothing else."
)

EDIT_PROMPT = """Rewrite the selected passage of a requirements document according to the instruction.

Instruction:
{instruction}

Selected passage:
<<<
{selected_text}
>>>

Surrounding document (for context only, do not rewrite it):
<<<
{context}
>>>

Reply with JSON:
{{"suggestion_text": "<replacement for the selected passage only>",
  "explanation": "<one sentence on what changed>",
  "confidence": <number between 0 and 1>}}
"""

CODE_NOTE = (
    "\nNote: the passage contains code. Unless the instruction explicitly asks for code "
    "changes, preserve the code structure and only modify comments or prose."
)

SECTION_CONTENT_PROMPT = """Write the "{subsection_title}" subsection of the "{section_title}" section.

Base it only on these answers from the product owner:
{qa_text}

Use formal requirement wording ("The system shall ...") where it fits. Do not repeat the heading.

Reply with JSON:
{{"content": "<subsection text>"}}
"""

OUTLINE_QUESTIONS_PROMPT = """A user wants to write a Software Requirements Specification for this project:

{project_description}

Produce the IEEE 830 outline (sections 1-3 with their standard subsections) and, for each
subsection, 2-4 targeted questions whose answers would let you write that subsection.

Reply with JSON:
{{"sections": [
  {{"id": "1", "title": "Introduction", "order": 1, "subsections": [
    {{"id": "1.1", "title": "Purpose", "order": 1, "questions": ["..."]}}
  ]}}
]}}
"""

# Only this much of the full document is sent along as edit context.
EDIT_CONTEXT_CHARS = 4000
