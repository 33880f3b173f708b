"""
Generation — grounded answer synthesis over retrieved chunks.

Public API
----------
- :class:`AnswerSynthesizer` — prompt construction + single model call.
- :class:`Answer` — answer text with its provenance.
- :func:`build_answer_prompt` — deterministic prompt builder.
"""

from docqa.generation.prompts import build_answer_prompt
from docqa.generation.synthesizer import Answer, AnswerSynthesizer

__all__ = [
    "Answer",
    "AnswerSynthesizer",
    "build_answer_prompt",
]
