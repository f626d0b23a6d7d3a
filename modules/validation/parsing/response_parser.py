"""
Provider response parsing.

Two paths:

1. Primary: locate the JSON object in the response (markdown fences and
   surrounding prose are tolerated), normalize keys and field aliases, and
   map each entry to a requirement.
2. Fallback: when no usable JSON exists, scan the text for each
   requirement number and verdict keywords. Results produced this way are
   tagged ``ParseMode.FALLBACK`` so callers can tell them apart.
"""

import json
import re
from typing import Any, Dict, List, Optional, Sequence

from modules.validation.core.exceptions import ParseError
from modules.validation.core.interfaces import (
    Citation,
    ParseMode,
    ParseOutcome,
    Requirement,
    RequirementValidation,
    ResultStatus,
    ValidationResponse,
)
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)

# Canonical field -> accepted (normalized) keys, in priority order
FIELD_ALIASES: Dict[str, List[str]] = {
    "status": ["status", "validation_status"],
    "reasoning": ["reasoning", "explanation", "justification"],
    "mapped_content": ["mapped_content", "mapped_questions", "evidence_found"],
    "citations": ["citations", "doc_references"],
    "smart_questions": [
        "smart_question",
        "smart_questions",
        "smart_task",
        "practical_task",
        "practical_workplace_task",
        "suggested_question",
        "tasks",
    ],
    "benchmark_answer": ["benchmark_answer", "model_answer", "expected_behavior"],
    "recommendations": ["unmapped_content", "recommendations", "gaps"],
    "requirement_number": ["requirement_number", "number", "requirement_id"],
}

BATCH_KEYS = ["requirement_validations", "validations", "results"]

FENCE_PATTERN = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)
CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")
INTEGER_PATTERN = re.compile(r"\d+")

COMPLIANT_VALUES = {"met", "pass", "passed", "compliant", "yes", "fully met"}
NON_COMPLIANT_VALUES = {
    "not met", "notmet", "unmet", "fail", "failed",
    "non compliant", "noncompliant", "not compliant", "no",
}

NOT_MET_PATTERNS = [
    re.compile(r"\bnot[\s_]+met\b"),
    re.compile(r"\bnon[\s_-]?compliant\b"),
    re.compile(r"\bnot\s+compliant\b"),
    re.compile(r"\bfail(?:ed|s)?\b"),
]
PARTIAL_PATTERNS = [
    re.compile(r"\bpartial(?:ly)?\b"),
    re.compile(r"\bneeds?[\s_]+review\b"),
]
MET_PATTERNS = [
    re.compile(r"\bmet\b"),
    re.compile(r"\bcompliant\b"),
    re.compile(r"\bpass(?:ed|es)?\b"),
]

FALLBACK_WINDOW_CHARS = 800
FALLBACK_SNIPPET_CHARS = 500
FALLBACK_REASONING = (
    "Automated parsing could not read a structured response; "
    "the status was inferred from the response text and should be reviewed."
)
NOT_APPLICABLE = "N/A"


# ==============================================================================
# NORMALIZATION HELPERS
# ==============================================================================

def normalize_key(key: str) -> str:
    """camelCase / spaced / hyphenated keys -> snake_case."""
    key = CAMEL_BOUNDARY.sub(r"_\1", str(key).strip())
    return re.sub(r"[\s\-]+", "_", key).lower()


def normalize_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    return {normalize_key(k): v for k, v in data.items()}


def normalize_status(value: Any) -> ResultStatus:
    """
    Map a provider verdict onto ResultStatus.

    Unknown or missing values become NEEDS_REVIEW.
    """
    if value is None:
        return ResultStatus.NEEDS_REVIEW

    text = re.sub(r"[\s_\-]+", " ", str(value)).strip().lower()

    if text in COMPLIANT_VALUES:
        return ResultStatus.COMPLIANT
    if text in NON_COMPLIANT_VALUES:
        return ResultStatus.NON_COMPLIANT
    return ResultStatus.NEEDS_REVIEW


def pick(data: Dict[str, Any], field_name: str) -> Any:
    for key in FIELD_ALIASES[field_name]:
        if key in data and data[key] not in (None, ""):
            return data[key]
    return None


def coerce_text(value: Any) -> str:
    """Flatten strings, lists and objects into display text."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, list):
        return "\n".join(t for t in (coerce_text(v) for v in value) if t)
    if isinstance(value, dict):
        normalized = normalize_keys(value)
        for key in ("question", "task", "text", "content", "description"):
            if normalized.get(key):
                return coerce_text(normalized[key])
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def coerce_pages(value: Any) -> List[int]:
    if value is None:
        return []
    if isinstance(value, int):
        return [value]
    if isinstance(value, list):
        pages: List[int] = []
        for item in value:
            pages.extend(coerce_pages(item))
        return pages
    return [int(n) for n in INTEGER_PATTERN.findall(str(value))]


def coerce_citations(value: Any) -> List[Citation]:
    if value is None:
        return []
    items = value if isinstance(value, list) else [value]

    citations = []
    for item in items:
        if isinstance(item, dict):
            data = normalize_keys(item)
            citations.append(
                Citation(
                    document_name=coerce_text(
                        data.get("document_name") or data.get("document") or data.get("source")
                    ),
                    page_numbers=coerce_pages(
                        data.get("page_numbers") or data.get("pages")
                        or data.get("page_number") or data.get("page")
                    ),
                    excerpt=coerce_text(
                        data.get("excerpt") or data.get("quote") or data.get("content") or data.get("text")
                    ),
                )
            )
        elif item not in (None, ""):
            citations.append(Citation(excerpt=coerce_text(item)))
    return citations


def extract_json_object(text: str) -> Any:
    """
    Find and decode the JSON payload of a response.

    Args:
        text: Raw response text

    Returns:
        Decoded JSON (object or array)

    Raises:
        ValueError: If no decodable JSON is present
    """
    candidates = [m.group(1).strip() for m in FENCE_PATTERN.finditer(text)]
    candidates.append(text.strip())

    decoder = json.JSONDecoder()
    for candidate in candidates:
        try:
            whole = json.loads(candidate)
        except json.JSONDecodeError:
            pass
        else:
            if isinstance(whole, (dict, list)):
                return whole

        for index, char in enumerate(candidate):
            if char not in "{[":
                continue
            try:
                value, _ = decoder.raw_decode(candidate, index)
            except json.JSONDecodeError:
                continue
            if isinstance(value, (dict, list)):
                return value

    raise ValueError("No JSON object found in response")


# ==============================================================================
# PARSER
# ==============================================================================

class ResponseParser:
    """Turns raw provider text into a ValidationResponse."""

    def parse(
        self,
        raw_text: str,
        category: str,
        unit_code: str,
        requirements: Sequence[Requirement],
        grounding_citations: Optional[Sequence[Citation]] = None,
    ) -> ParseOutcome:
        """
        Parse one provider response.

        Args:
            raw_text: Provider response text
            category: Validation category of the request
            unit_code: Unit code of the request
            requirements: Requirements the response is about
            grounding_citations: Provider grounding citations, merged into
                results that carry none

        Returns:
            ParseOutcome tagged PRIMARY or FALLBACK

        Raises:
            ParseError: If the text is empty or there is nothing to map it to
        """
        if not raw_text or not raw_text.strip():
            raise ParseError("Provider returned an empty response")
        if not requirements:
            raise ParseError("No requirements to map the response to")

        try:
            results = self._parse_primary(raw_text, requirements)
            mode = ParseMode.PRIMARY
        except ValueError as e:
            logger.warning(f"Primary parse failed ({e}); using text fallback")
            results = self._parse_fallback(raw_text, requirements)
            mode = ParseMode.FALLBACK

        if grounding_citations:
            for result in results:
                if not result.citations:
                    result.citations = list(grounding_citations)

        return ParseOutcome(
            response=ValidationResponse(
                validation_category=category,
                unit_code=unit_code,
                results=results,
            ),
            mode=mode,
        )

    def _parse_primary(
        self, raw_text: str, requirements: Sequence[Requirement]
    ) -> List[RequirementValidation]:
        payload = extract_json_object(raw_text)

        if not isinstance(payload, (dict, list)):
            raise ValueError("JSON payload is not an object or array")

        if isinstance(payload, list):
            entries = payload
        else:
            normalized = normalize_keys(payload)
            batch = next(
                (normalized[k] for k in BATCH_KEYS if isinstance(normalized.get(k), list)),
                None,
            )
            entries = batch if batch is not None else [payload]

        entries = [normalize_keys(e) for e in entries if isinstance(e, dict)]
        if not entries:
            raise ValueError("JSON contains no result entries")

        by_number = {r.number.strip().lower(): r for r in requirements}
        results: List[RequirementValidation] = []
        used = set()

        for position, entry in enumerate(entries):
            if pick(entry, "status") is None:
                continue

            number = coerce_text(pick(entry, "requirement_number")).lower()
            requirement = by_number.get(number)
            if requirement is None and position < len(requirements):
                requirement = requirements[position]
            if requirement is None or requirement.id in used:
                continue

            used.add(requirement.id)
            results.append(self._build_result(requirement, entry))

        if not results:
            raise ValueError("JSON entries carry no status for the requested requirements")

        return results

    def _build_result(self, requirement: Requirement, entry: Dict[str, Any]) -> RequirementValidation:
        status = normalize_status(pick(entry, "status"))

        result = RequirementValidation(
            requirement_id=requirement.id,
            requirement_number=requirement.number,
            requirement_type=requirement.requirement_type,
            requirement_text=requirement.text,
            status=status,
            reasoning=coerce_text(pick(entry, "reasoning")),
            mapped_content=coerce_text(pick(entry, "mapped_content")),
            citations=coerce_citations(pick(entry, "citations")),
            smart_questions=coerce_text(pick(entry, "smart_questions")),
            benchmark_answer=coerce_text(pick(entry, "benchmark_answer")),
            recommendations=coerce_text(pick(entry, "recommendations")),
        )

        if status == ResultStatus.COMPLIANT:
            result.smart_questions = NOT_APPLICABLE
            result.benchmark_answer = NOT_APPLICABLE

        return result

    def _parse_fallback(
        self, raw_text: str, requirements: Sequence[Requirement]
    ) -> List[RequirementValidation]:
        lowered = raw_text.lower()
        results = []

        for requirement in requirements:
            number = (requirement.number or "").strip().lower()
            index = lowered.find(number) if number else -1

            if index >= 0:
                window = raw_text[index: index + FALLBACK_WINDOW_CHARS]
            elif len(requirements) == 1:
                window = raw_text[:FALLBACK_WINDOW_CHARS]
            else:
                window = ""

            status = infer_verdict(window)
            results.append(
                RequirementValidation(
                    requirement_id=requirement.id,
                    requirement_number=requirement.number,
                    requirement_type=requirement.requirement_type,
                    requirement_text=requirement.text,
                    status=status,
                    reasoning=FALLBACK_REASONING,
                    mapped_content=window[:FALLBACK_SNIPPET_CHARS].strip(),
                )
            )

        return results


def infer_verdict(text: str) -> ResultStatus:
    """
    Verdict keywords in free text.

    Negative verdicts are checked before partial ones, partial before
    positive, since "not met" and "partially met" both contain "met".
    """
    lowered = (text or "").lower()
    if not lowered:
        return ResultStatus.NEEDS_REVIEW
    if any(p.search(lowered) for p in NOT_MET_PATTERNS):
        return ResultStatus.NON_COMPLIANT
    if any(p.search(lowered) for p in PARTIAL_PATTERNS):
        return ResultStatus.NEEDS_REVIEW
    if any(p.search(lowered) for p in MET_PATTERNS):
        return ResultStatus.COMPLIANT
    return ResultStatus.NEEDS_REVIEW
