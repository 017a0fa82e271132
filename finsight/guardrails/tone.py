"""
Tone Validation Module

Checks generated rationale text for shaming, judgmental or fear-based
language before it is shown to a user.
"""

import re
from typing import List, Tuple


# Prohibited language patterns (case-insensitive)
PROHIBITED_PHRASES = [
    # Shaming
    r"you should be ashamed",
    r"you're terrible",
    r"you're bad with money",
    r"you're stupid",
    r"you're lazy",
    r"you're irresponsible",
    r"you're a failure",
    r"you're hopeless",
    r"you're overspending",
    r"you are overspending",
    r"you're wasting money",
    r"bad habits",
    r"irresponsible spending",
    r"reckless spending",

    # Judgmental
    r"you deserve",
    r"you can't",
    r"you'll never",
    r"you should have",
    r"you failed to",
    r"you should know better",

    # Fear-based
    r"you'll go bankrupt",
    r"financial ruin",
    r"financial disaster",
    r"ruin your credit",
    r"lose everything",
]

PROHIBITED_PATTERNS = [re.compile(pattern, re.IGNORECASE) for pattern in PROHIBITED_PHRASES]

EMPOWERING_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"could help",
        r"can help",
        r"consider",
        r"you may want to",
        r"understanding",
    )
]


def validate_tone(text: str) -> Tuple[bool, List[str]]:
    """
    Validate text against prohibited language.

    Args:
        text: Text to validate

    Returns:
        Tuple of (is_valid, violations) where violations holds each distinct
        prohibited phrase found, with its original casing
    """
    violations = []

    for pattern in PROHIBITED_PATTERNS:
        for match in pattern.finditer(text):
            matched = match.group(0)
            if matched not in violations:
                violations.append(matched)

    return len(violations) == 0, violations


def check_empowering_tone(text: str) -> Tuple[bool, List[str]]:
    """Look for supportive phrasing. Returns (has_empowering_tone, patterns_found)."""
    found = [pattern.pattern for pattern in EMPOWERING_PATTERNS if pattern.search(text)]
    return len(found) > 0, found
