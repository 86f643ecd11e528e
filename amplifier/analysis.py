"""
Prompt building and post-processing of chat-completion responses.
"""

import re
from dataclasses import dataclass
from typing import Optional

from amplifier.constants import ANALYSIS_PROMPT_TEMPLATE, USER_PROMPT_SECTION

THINK_TAG_RE = re.compile(r"</?think>")
SCORE_RE = re.compile(r"<SCORE:(\d+)>")
CODE_BLOCK_RE = re.compile(r"```(?:\w+\n)?(.*?)```", re.DOTALL)

MIN_SCORE = 0
MAX_SCORE = 100


@dataclass
class AnalysisOutcome:
    feedback: str
    score: int
    corrected_code: Optional[str] = None

    @property
    def has_corrections(self) -> bool:
        return bool(self.corrected_code)


def build_analysis_prompt(extension: str, content: str, user_prompt: Optional[str] = None) -> str:
    section = USER_PROMPT_SECTION.format(user_prompt=user_prompt) if user_prompt else ""
    return ANALYSIS_PROMPT_TEMPLATE.format(
        extension=extension,
        user_prompt_section=section,
        content=content,
    )


def strip_think_tags(text: str) -> str:
    """Drop <think> and </think> markers, keeping whatever they enclosed."""
    return THINK_TAG_RE.sub("", text)


def extract_score(text: str) -> int:
    """
    Read the first <SCORE:XX> token.

    Returns:
        The score clamped to [0, 100], or 0 when the model gave none.
    """
    match = SCORE_RE.search(text)
    score = int(match.group(1)) if match else 0
    return min(max(score, MIN_SCORE), MAX_SCORE)


def extract_corrected_code(text: str) -> Optional[str]:
    match = CODE_BLOCK_RE.search(text)
    if not match:
        return None
    code = match.group(1).strip()
    return code or None


def strip_code_block(text: str) -> str:
    return CODE_BLOCK_RE.sub("", text, count=1).strip()


def parse_analysis(text: str) -> AnalysisOutcome:
    cleaned = strip_think_tags(text)
    return AnalysisOutcome(
        feedback=strip_code_block(cleaned),
        score=extract_score(cleaned),
        corrected_code=extract_corrected_code(cleaned),
    )
