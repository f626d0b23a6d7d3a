"""
Validation prompt construction.

Prompts come from the ``prompts`` table when an active default exists for
the requirement, otherwise from the built-in template. The JSON output
instruction is always appended so every provider answers in the same shape.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from modules.validation.core.interfaces import RequestContext, Requirement
from shared.utils.logger import setup_logger
from src.database.connection import SessionFactory
from src.database.repositories.prompt_repository import PromptRepository

logger = setup_logger(__name__)

DEFAULT_SYSTEM_INSTRUCTION = (
    "You are an expert RTO (Registered Training Organisation) assessment validator. "
    "You check assessment documents against the requirements of a unit of competency "
    "and answer only with a single JSON object."
)

DEFAULT_PROMPT_TEMPLATE = """Validate the assessment documents for unit {{unit_code}} {{unit_title}} against one requirement.

Requirement type: {{requirement_type}}
Requirement number: {{requirement_number}}
Requirement: {{requirement_text}}
Element: {{element_text}}
Document type: {{document_type}}

Locate the questions, tasks or instructions in the documents that address this requirement.
Reference the document name and page number of every piece of evidence you use.
If the requirement is not fully addressed, explain what is missing and recommend how to close the gap.
"""

OUTPUT_FORMAT_INSTRUCTION = """
Respond with a JSON object using exactly these keys:
{
  "status": "Met" | "Partially Met" | "Not Met",
  "reasoning": "why the status was assigned",
  "mapped_content": "the questions or tasks that address the requirement, with page numbers",
  "citations": [{"document_name": "...", "page_numbers": [1], "excerpt": "..."}],
  "%(question_key)s": "%(question_hint)s (use \\"N/A\\" when the status is Met)",
  "benchmark_answer": "expected learner response (use \\"N/A\\" when the status is Met)",
  "unmapped_content": "gaps and recommendations, or an empty string"
}
"""

UNIT_CONTENT_HEADER = "Relevant content from the assessment documents:"


@dataclass
class BuiltPrompt:
    """Prompt text and system instruction for one requirement."""
    text: str
    system_instruction: str
    source: str  # "database" or "default"


def render_template(template: str, values: Dict[str, str]) -> str:
    """
    Replace ``{{name}}`` placeholders.

    Args:
        template: Template text
        values: Placeholder values

    Returns:
        Rendered text (unknown placeholders are left as they are)
    """
    rendered = template
    for key, value in values.items():
        rendered = rendered.replace("{{" + key + "}}", value or "")
    return rendered


def output_format_instruction(requirement_type: str) -> str:
    if requirement_type == "knowledge_evidence":
        return OUTPUT_FORMAT_INSTRUCTION % {
            "question_key": "smart_question",
            "question_hint": "a new assessment question covering the whole requirement",
        }
    return OUTPUT_FORMAT_INSTRUCTION % {
        "question_key": "smart_task",
        "question_hint": "a practical workplace task covering the whole requirement",
    }


class PromptBuilder:
    """
    Builds validation prompts, caching database lookups for one run.
    """

    def __init__(self, session_factory: Optional[SessionFactory] = None):
        """
        Args:
            session_factory: Database session factory (None uses the built-in template only)
        """
        self.session_factory = session_factory
        self._cache: Dict[Tuple[str, str], Optional[Tuple[str, Optional[str]]]] = {}

    async def _lookup(self, requirement_type: str, document_type: str) -> Optional[Tuple[str, Optional[str]]]:
        key = (requirement_type, document_type)
        if key in self._cache:
            return self._cache[key]

        found = None
        if self.session_factory is not None:
            async with self.session_factory() as session:
                prompt = await PromptRepository(session).find_validation_prompt(
                    requirement_type, document_type
                )
            if prompt is not None:
                logger.debug(f"Using stored prompt '{prompt.name}' for {requirement_type}/{document_type}")
                found = (prompt.prompt_text, prompt.system_instruction)

        self._cache[key] = found
        return found

    async def build(
        self,
        requirement: Requirement,
        context: RequestContext,
        content: str = "",
    ) -> BuiltPrompt:
        """
        Build the prompt for one requirement.

        Args:
            requirement: Requirement being validated
            context: Validation request context
            content: Selected document content (omitted when empty)

        Returns:
            BuiltPrompt
        """
        stored = await self._lookup(requirement.requirement_type, context.document_type)

        if stored is not None:
            template, system_instruction = stored
            source = "database"
        else:
            template, system_instruction = DEFAULT_PROMPT_TEMPLATE, None
            source = "default"

        text = render_template(
            template,
            {
                "unit_code": context.unit_code,
                "unit_title": context.unit_title or "",
                "document_type": context.document_type,
                "requirement_type": requirement.requirement_type,
                "requirement_number": requirement.number,
                "requirement_text": requirement.text,
                "element_text": requirement.element_text or "",
            },
        )

        if content:
            text = f"{text}\n{UNIT_CONTENT_HEADER}\n{content}\n"

        text += output_format_instruction(requirement.requirement_type)

        return BuiltPrompt(
            text=text,
            system_instruction=system_instruction or DEFAULT_SYSTEM_INSTRUCTION,
            source=source,
        )
