"""Parser for user mentions in comment text.

Mention syntax: @[Display Name](userId), e.g. @[Bob](u2)
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional

MENTION_PATTERN = re.compile(r"@\[([^\]]+)\]\(([^)]+)\)")


@dataclass(frozen=True)
class MentionResult:
    """Mentioned user ids (distinct, in text order) and display-ready text."""
    user_ids: List[str] = field(default_factory=list)
    display_text: str = ""


def extract_mentions(text: Optional[str], exclude: Optional[str] = None) -> MentionResult:
    """
    Extract mentioned user ids from comment text.

    Args:
        text: Raw comment text
        exclude: User id never reported as mentioned (the comment author)

    Returns:
        MentionResult with de-duplicated ids and the text with each
        mention replaced by its label
    """
    if not text:
        return MentionResult()

    user_ids = dict.fromkeys(
        user_id
        for _, user_id in MENTION_PATTERN.findall(text)
        if user_id != exclude
    )
    return MentionResult(
        user_ids=list(user_ids),
        display_text=MENTION_PATTERN.sub(r"\1", text),
    )
