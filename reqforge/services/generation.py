"""Generation adapters - LiteLLM-backed collaborators.

The engine only consumes the structured outputs of these adapters; it
never sees raw model text. Each adapter:

1. Builds a prompt from ``prompts``.
2. Calls ``litellm.acompletion`` through the per-model circuit breaker.
3. Extracts and validates a JSON object from the reply.
4. Hands a ``GenerationRecord`` to the optional recorder, on a worker
   thread since recorders write to the database.

Any failure along the way surfaces as ``GenerationFailedError``, which
callers may retry. Calls are plain coroutines, so cancelling the awaiting
task abandons the request with no side effects.
"""

import asyncio
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from ..core.circuit_breaker import CircuitBreakerOpen, get_breaker
from ..core.config import settings
from ..exceptions import GenerationFailedError
from ..schemas.outline import OutlineTree
from ..schemas.section import QAPair
from . import prompts

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.5


@dataclass(frozen=True)
class Suggestion:
    suggestion_text: str
    explanation: Optional[str] = None
    confidence: Optional[float] = None


@dataclass(frozen=True)
class GenerationRecord:
    kind: str
    model: str
    prompt: str
    raw_response: str
    parsed: dict = field(default_factory=dict)


Recorder = Callable[[GenerationRecord], None]


# ---------------------------------------------------------------------------
# Reply parsing
# ---------------------------------------------------------------------------

_FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)
_LONE_BACKSLASH = re.compile(r'\\(?!["\\/bfnrtu])')


def extract_json(raw_text: str) -> str:
    """Pull the likely JSON object out of a model reply.

    Handles ```json fences and prose before or after the object.
    """
    if not raw_text:
        return ""
    fenced = _FENCED_JSON.search(raw_text)
    if fenced and fenced.group(1).strip():
        return fenced.group(1).strip()
    first = raw_text.find("{")
    last = raw_text.rfind("}")
    if first != -1 and last > first:
        return raw_text[first:last + 1]
    return raw_text.strip()


def parse_llm_json(raw_text: str) -> dict:
    """Parse a model reply into a dict, with one repair pass for stray backslashes.

    Raises:
        ValueError: the reply holds no JSON object.
    """
    extracted = extract_json(raw_text)
    try:
        parsed = json.loads(extracted)
    except json.JSONDecodeError as original:
        try:
            parsed = json.loads(_LONE_BACKSLASH.sub(r"\\\\", extracted))
        except json.JSONDecodeError:
            raise ValueError(f"Reply is not valid JSON: {original}") from original
    if not isinstance(parsed, dict):
        raise ValueError("Reply JSON is not an object")
    return parsed


_CODE_INDICATORS = [
    re.compile(r"```[\s\S]*```"),
    re.compile(r"^(?: {4}|\t)\S", re.MULTILINE),
    re.compile(r"\bfunction\s*\(|\bclass\s+\w+|^\s*(?:import|export|const|let|var|def)\s", re.MULTILINE),
]


def looks_like_code(text: str) -> bool:
    return any(pattern.search(text) for pattern in _CODE_INDICATORS)


_COMMENTS = re.compile(r"/\*[\s\S]*?\*/|//.*|^[ \t]*#.*", re.MULTILINE)


def code_structure(text: str) -> str:
    """*text* without comments or blank lines, for comparing code before and after an edit."""
    stripped = _COMMENTS.sub("", text)
    return "\n".join(line.rstrip() for line in stripped.splitlines() if line.strip())


def allows_code_changes(instruction: str) -> bool:
    lowered = instruction.lower()
    return "code" in lowered or "implement" in lowered


def normalize_confidence(value: Any) -> float:
    """Confidence in [0, 1]; anything else becomes the default."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_CONFIDENCE
    if not 0.0 <= float(value) <= 1.0:
        return DEFAULT_CONFIDENCE
    return float(value)


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------

async def acompletion(**kwargs: Any) -> Any:
    """``litellm.acompletion``, imported on first use."""
    import litellm

    return await litellm.acompletion(**kwargs)


class LiteLLMAdapter:
    """Shared completion plumbing. Subclasses set ``kind`` and build prompts."""

    kind = "generation"

    def __init__(self, recorder: Optional[Recorder] = None, model: Optional[str] = None):
        self.recorder = recorder
        self.model = model

    def _fail(self, message: str, error: Optional[Exception] = None) -> GenerationFailedError:
        return GenerationFailedError(message, adapter=self.kind, original_error=error)

    async def _complete(self, prompt: str) -> tuple[str, dict]:
        model = self.model or settings.llm_model
        if not model:
            raise self._fail("Generation is not configured. Set LLM_MODEL.")

        chat_kwargs: dict = {
            "model": model,
            "messages": [
                {"role": "system", "content": prompts.SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": settings.llm_max_tokens,
            "temperature": settings.llm_temperature,
            "timeout": settings.llm_timeout_seconds,
        }
        if settings.llm_api_key:
            chat_kwargs["api_key"] = settings.llm_api_key
        if settings.llm_api_base:
            chat_kwargs["api_base"] = settings.llm_api_base

        breaker = get_breaker(model, settings.llm_failure_threshold, settings.llm_cooldown_seconds)
        try:
            response = await breaker.call(lambda: acompletion(**chat_kwargs))
        except CircuitBreakerOpen as e:
            raise self._fail("Generation service temporarily unavailable, please try again shortly", e) from e
        except Exception as e:
            logger.warning("%s completion failed: %s", self.kind, e)
            raise self._fail("Generation service error, please try again", e) from e

        try:
            raw = response.choices[0].message.content or ""
        except (AttributeError, IndexError, TypeError) as e:
            raise self._fail("Generation service returned an unexpected response", e) from e

        try:
            parsed = parse_llm_json(raw)
        except ValueError as e:
            logger.warning("%s reply could not be parsed", self.kind, extra={"raw_length": len(raw)})
            raise self._fail("Generation service returned unparseable output", e) from e

        return raw, parsed

    async def _record(self, prompt: str, raw: str, parsed: dict) -> None:
        if self.recorder is None:
            return
        await asyncio.to_thread(self.recorder, GenerationRecord(
            kind=self.kind,
            model=self.model or settings.llm_model,
            prompt=prompt,
            raw_response=raw,
            parsed=parsed,
        ))


class LiteLLMSuggestionAdapter(LiteLLMAdapter):
    """Content Suggestion Adapter: rewrites a selected span per an instruction."""

    kind = "suggestion"

    async def suggest(self, selected_text: str, instruction: str, full_content: str) -> Suggestion:
        prompt = prompts.EDIT_PROMPT.format(
            instruction=instruction,
            selected_text=selected_text,
            context=full_content[:prompts.EDIT_CONTEXT_CHARS],
        )
        is_code = looks_like_code(selected_text)
        if is_code:
            prompt += prompts.CODE_NOTE

        raw, parsed = await self._complete(prompt)

        text = parsed.get("suggestion_text")
        if not isinstance(text, str) or not text.strip():
            raise self._fail("Invalid or empty suggestion received")
        if is_code and not allows_code_changes(instruction):
            if code_structure(text) != code_structure(selected_text):
                logger.warning("Suggestion rejected: code structure changed", extra={"instruction": instruction})
                raise self._fail("Code structure was modified when it should have been preserved")

        explanation = parsed.get("explanation")
        suggestion = Suggestion(
            suggestion_text=text,
            explanation=explanation if isinstance(explanation, str) else None,
            confidence=normalize_confidence(parsed.get("confidence")),
        )
        await self._record(prompt, raw, {
            "suggestion_text": suggestion.suggestion_text,
            "explanation": suggestion.explanation,
            "confidence": suggestion.confidence,
        })
        return suggestion


class LiteLLMSectionContentAdapter(LiteLLMAdapter):
    """Section Content Generator Adapter: prose for one subsection from its Q&A."""

    kind = "section_content"

    async def generate(self, section_title: str, subsection_title: str, qa_pairs: Sequence[QAPair]) -> str:
        qa_text = "\n\n".join(
            f"Q{i}: {qa.question}\nA{i}: {qa.answer}" for i, qa in enumerate(qa_pairs, start=1)
        )
        prompt = prompts.SECTION_CONTENT_PROMPT.format(
            section_title=section_title,
            subsection_title=subsection_title,
            qa_text=qa_text,
        )
        raw, parsed = await self._complete(prompt)

        content = parsed.get("content")
        if not isinstance(content, str) or not content.strip():
            raise self._fail("No content generated")

        await self._record(prompt, raw, {"content": content})
        return content.strip()


class LiteLLMOutlineAdapter(LiteLLMAdapter):
    """Generates an outline with per-subsection questions from a project description."""

    kind = "outline_questions"

    async def generate(self, project_description: str) -> OutlineTree:
        prompt = prompts.OUTLINE_QUESTIONS_PROMPT.format(project_description=project_description)
        raw, parsed = await self._complete(prompt)

        try:
            tree = OutlineTree.model_validate(parsed)
        except PydanticValidationError as e:
            raise self._fail("Generated outline has an invalid structure", e) from e
        if not tree.sections:
            raise self._fail("Generated outline has no sections")

        await self._record(prompt, raw, tree.model_dump())
        return tree
