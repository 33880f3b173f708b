"""Prompt templates for grounded answer synthesis.

Prompt construction is a pure function of the question and the
retrieved context: the same inputs always produce the same messages.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from langchain_core.messages import HumanMessage, SystemMessage

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage

    from docqa.retrieval.models import RetrievalResult

CONTEXT_SEPARATOR = "\n\n---\n\n"

ANSWER_SYSTEM = """\
Answer the user's question using only the context below, which was \
extracted from the documents they uploaded.

If the context does not contain the information needed to answer, say \
that the uploaded documents do not cover it. Do not guess, and do not \
add facts that are not in the context.

Context:
{context}
"""


def format_context(context: list[RetrievalResult]) -> str:
    """Join chunk texts in retrieval order."""
    return CONTEXT_SEPARATOR.join(r.content for r in context)


def build_answer_prompt(question: str, context: list[RetrievalResult]) -> list[BaseMessage]:
    """Assemble the messages for one grounded answer.

    Parameters
    ----------
    question:
        The user question, passed through verbatim.
    context:
        Retrieved chunks, most similar first.

    Returns
    -------
    list[BaseMessage]
        A list of LangChain message objects ready for ``.invoke()``.
    """
    return [
        SystemMessage(content=ANSWER_SYSTEM.format(context=format_context(context))),
        HumanMessage(content=question),
    ]
