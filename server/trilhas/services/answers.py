from __future__ import annotations

import logging
from typing import Optional, Tuple

from trilhas.exceptions import AnswerValidationError, ContentNotFound
from trilhas.models import ContentAnswer, ContentItem, ContentOption, ContentQuestion
from trilhas.services.graph import find_option, questions_qs

log = logging.getLogger(__name__)


def _clean_text(answer_text) -> Optional[str]:
    if answer_text is None:
        return None
    text = str(answer_text).strip()
    return text or None


def validate_submission(item: ContentItem, question_id, option_id=None,
                        answer_text=None) -> Tuple[ContentQuestion, Optional[ContentOption]]:
    """
    Checks done before anything is written:
    - the question belongs to the item (otherwise not found)
    - the option, when given, belongs to the question
    - a required question gets an option or non-blank text
    """
    question = questions_qs(item.pk).filter(pk=question_id).first()
    if question is None:
        raise ContentNotFound("Pergunta nao encontrada para este conteudo.")

    option = None
    if option_id not in (None, ""):
        option = find_option(question, option_id)
        if option is None:
            raise AnswerValidationError({"option_id": ["Opcao nao pertence a esta pergunta."]})

    if question.required and option is None and not _clean_text(answer_text):
        raise AnswerValidationError(
            {"non_field_errors": ["Pergunta obrigatoria: escolha uma opcao ou escreva uma resposta."]}
        )
    return question, option


def record_answer(user, content_item_id, question_id, option_id=None, answer_text=None) -> ContentAnswer:
    """Appends one row. Earlier answers are never touched."""
    answer = ContentAnswer.objects.create(
        user=user,
        content_item_id=content_item_id,
        question_id=question_id,
        option_id=option_id or None,
        answer_text=_clean_text(answer_text),
    )
    log.info(
        "answer %s recorded user=%s item=%s question=%s option=%s",
        answer.pk, getattr(user, "pk", None), content_item_id, question_id, answer.option_id,
    )
    return answer


def submit_answer(user, item: ContentItem, question_id, option_id=None, answer_text=None):
    """Validate then record. Returns (answer, question, option)."""
    question, option = validate_submission(item, question_id, option_id, answer_text)
    answer = record_answer(
        user,
        item.pk,
        question.pk,
        option.pk if option else None,
        answer_text,
    )
    return answer, question, option


def answers_for(user, content_item_id=None):
    qs = ContentAnswer.objects.filter(user=user)
    if content_item_id:
        qs = qs.filter(content_item_id=content_item_id)
    return qs.order_by("-created_at", "-id")
