"""Answer synthesis — one grounded model call per question."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from docqa.errors import ModelError, SynthesisError
from docqa.generation.llm import get_llm, invoke_model
from docqa.generation.prompts import build_answer_prompt
from docqa.retrieval.models import Citation, RetrievalResult

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

logger = logging.getLogger(__name__)


class Answer(BaseModel):
    """Synthesized answer and the chunks it was grounded on."""

    text: str
    sources: list[Citation] = Field(default_factory=list)


class AnswerSynthesizer:
    """Builds the grounding prompt and asks the language model once.

    Parameters
    ----------
    llm:
        Chat model to call.  When *None*, :func:`get_llm` is used on
        first use so constructing a synthesizer needs no credentials.
    """

    def __init__(self, llm: BaseChatModel | None = None) -> None:
        self._llm = llm

    @property
    def llm(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = get_llm()
        return self._llm

    def synthesize(self, question: str, context: list[RetrievalResult]) -> Answer:
        """Answer *question* from *context*.

        Raises
        ------
        SynthesisError
            If the model call fails (``retryable`` copied from the
            underlying :class:`ModelError`) or the reply is empty.
        """
        messages = build_answer_prompt(question, context)
        try:
            text = invoke_model(self.llm, messages)
        except ModelError as exc:
            raise SynthesisError(
                f"Language model call failed: {exc.message}", retryable=exc.retryable
            ) from exc

        if not text.strip():
            raise SynthesisError("Language model returned an empty answer")

        logger.info("Synthesized answer from %d context chunk(s)", len(context))
        return Answer(text=text.strip(), sources=[r.citation for r in context])
