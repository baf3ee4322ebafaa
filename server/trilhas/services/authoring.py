import logging
from typing import Iterable

from django.db import transaction

from trilhas.models import ContentItem, ContentOption, ContentQuestion

log = logging.getLogger(__name__)


def replace_questions(item: ContentItem, questions: Iterable[dict]) -> list:
    """
    Replace the whole question set of an item: delete everything, then
    reinsert in the given order. Runs in one transaction; any failure leaves
    the previous set untouched.

    Each question: {prompt, type?, required?, order?, options: [{label, value?, next_content_id?, order?}]}
    Missing `order` falls back to the position in the list.
    """
    created = []
    with transaction.atomic():
        deleted, _ = ContentQuestion.objects.filter(content_item=item).delete()

        for index, raw in enumerate(questions):
            question = ContentQuestion.objects.create(
                content_item=item,
                prompt=raw["prompt"],
                type=raw.get("type") or ContentQuestion.QuestionType.MULTIPLE_CHOICE,
                order=raw["order"] if raw.get("order") is not None else index,
                required=raw["required"] if raw.get("required") is not None else True,
            )
            options = raw.get("options") or []
            if options:
                ContentOption.objects.bulk_create([
                    ContentOption(
                        question=question,
                        label=opt["label"],
                        value=opt.get("value"),
                        next_content_id=opt.get("next_content_id"),
                        order=opt["order"] if opt.get("order") is not None else opt_index,
                    )
                    for opt_index, opt in enumerate(options)
                ])
            created.append(question)

    log.info("item %s question set replaced: removed=%d inserted=%d",
             item.pk, deleted, len(created))
    return created
