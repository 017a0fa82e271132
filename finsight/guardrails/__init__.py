"""
Guardrails Module

Tone checks applied to user-facing generated text.
"""

from .tone import validate_tone, check_empowering_tone, PROHIBITED_PHRASES

__all__ = [
    'validate_tone',
    'check_empowering_tone',
    'PROHIBITED_PHRASES',
]
