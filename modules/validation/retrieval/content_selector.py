"""
Relevant-content selection for one requirement.

Fragments are matched on the requirement number or on a few distinctive
keywords from the requirement text. When nothing matches, the head of the
combined corpus is used instead. Lexical matching misses paraphrased
evidence; that trade-off is accepted.
"""

import re
from typing import List, Sequence

from modules.validation.core.interfaces import Fragment, Requirement
from modules.validation.extraction.document_extractor import document_header
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)

MIN_KEYWORD_LENGTH = 6
MAX_KEYWORDS = 3
WORD_PATTERN = re.compile(r"[A-Za-z0-9][A-Za-z0-9'\-]*")


def extract_keywords(text: str, limit: int = MAX_KEYWORDS) -> List[str]:
    """
    First distinct words longer than five characters, lowercased.

    Args:
        text: Requirement text
        limit: Maximum number of keywords

    Returns:
        Keywords in order of appearance
    """
    keywords: List[str] = []
    for word in WORD_PATTERN.findall(text or ""):
        word = word.lower().strip("'-")
        if len(word) >= MIN_KEYWORD_LENGTH and word not in keywords:
            keywords.append(word)
        if len(keywords) >= limit:
            break
    return keywords


class ContentSelector:
    """Narrows the corpus to the fragments relevant to one requirement."""

    def __init__(self, max_fragments: int = 30, fallback_chars: int = 30000):
        self.max_fragments = max_fragments
        self.fallback_chars = fallback_chars

    def matching_fragments(
        self, requirement: Requirement, fragments: Sequence[Fragment]
    ) -> List[Fragment]:
        """
        Fragments mentioning the requirement number or a keyword, by page.

        Args:
            requirement: Requirement being validated
            fragments: All fragments of the corpus

        Returns:
            Up to ``max_fragments`` fragments, ordered by page ascending
        """
        number = (requirement.number or "").strip().lower()
        keywords = extract_keywords(requirement.text)

        matches = []
        for fragment in fragments:
            haystack = fragment.text.lower()
            if (number and number in haystack) or any(k in haystack for k in keywords):
                matches.append(fragment)

        # sorted() is stable, so document order is kept within a page
        matches = sorted(
            matches,
            key=lambda f: (f.page_number is None, f.page_number or 0),
        )
        return matches[: self.max_fragments]

    def select(
        self,
        requirement: Requirement,
        fragments: Sequence[Fragment],
        full_corpus_text: str,
    ) -> str:
        """
        Build the content passed to inference for one requirement.

        Args:
            requirement: Requirement being validated
            fragments: All fragments of the corpus
            full_corpus_text: Combined corpus text (fallback source)

        Returns:
            Rendered fragments with page markers, or the corpus head
        """
        matches = self.matching_fragments(requirement, fragments)

        if not matches:
            logger.debug(
                f"No fragments matched requirement {requirement.number}; "
                f"using first {self.fallback_chars} chars of corpus"
            )
            return (full_corpus_text or "")[: self.fallback_chars]

        lines: List[str] = []
        current_document = None
        for fragment in matches:
            if fragment.document_name != current_document:
                current_document = fragment.document_name
                if lines:
                    lines.append("")
                lines.append(document_header(current_document))
            if fragment.page_number is not None:
                lines.append(f"[Page {fragment.page_number}] {fragment.text}")
            else:
                lines.append(fragment.text)

        logger.debug(
            f"Selected {len(matches)} fragments for requirement {requirement.number}"
        )
        return "\n".join(lines)
