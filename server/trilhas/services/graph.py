"""
Next-step resolution over the content graph.

Routing is resolved from the most specific source available:
    chosen option's next_content_id -> item's next_content_id -> None (terminal)

Every reference here is soft. A next/start id that points at a missing or
hidden item resolves to None instead of raising.
"""
from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Prefetch

from trilhas.models import ContentItem, ContentOption, ContentQuestion, Trilha
from trilhas.services.visibility import visible_items

log = logging.getLogger(__name__)


def questions_qs(item_id):
    """Questions of one item with options prefetched, both in presentation order."""
    return (
        ContentQuestion.objects
        .filter(content_item_id=item_id)
        .prefetch_related(
            Prefetch("options", queryset=ContentOption.objects.order_by("order", "id"))
        )
        .order_by("order", "id")
    )


def ordered_questions(item: ContentItem) -> List[ContentQuestion]:
    return list(questions_qs(item.pk))


def find_option(question: ContentQuestion, option_id) -> Optional[ContentOption]:
    if option_id in (None, ""):
        return None
    wanted = str(option_id)
    for opt in question.options.all():
        if str(opt.pk) == wanted:
            return opt
    return None


def option_override(question: Optional[ContentQuestion], chosen_option_id) -> Optional[UUID]:
    """Option-level route only; None when the option is unknown or does not branch."""
    if question is None:
        return None
    opt = find_option(question, chosen_option_id)
    if opt is None:
        return None
    return opt.next_content_id


def resolve_next(item: ContentItem, question: Optional[ContentQuestion] = None,
                 chosen_option_id=None) -> Optional[UUID]:
    override = option_override(question, chosen_option_id)
    if override:
        return override
    return item.next_content_id


def first_published_item(trilha: Trilha, *, include_drafts=False) -> Optional[ContentItem]:
    return (
        visible_items(include_drafts=include_drafts)
        .filter(trilha=trilha)
        .order_by("order", "created_at")
        .first()
    )


def resolve_start(trilha: Trilha, *, include_drafts=False) -> Optional[UUID]:
    """Explicit start_content_id wins; otherwise the first visible item by order."""
    if trilha.start_content_id:
        return trilha.start_content_id
    first = first_published_item(trilha, include_drafts=include_drafts)
    return first.pk if first else None


def visible_start(trilha: Trilha, *, include_drafts=False) -> Optional[UUID]:
    """
    Start id the caller can actually enter. An explicit start that dangles
    or is hidden gives None, it never falls back to the first item.

    Uses the `start_is_visible` / `first_item_id` annotations when the
    trilha was loaded with them (see TrilhaViewSet.get_queryset).
    """
    if trilha.start_content_id:
        if hasattr(trilha, "start_is_visible"):
            visible = trilha.start_is_visible
        else:
            visible = resolve_visible(trilha.start_content_id, include_drafts=include_drafts) is not None
        return trilha.start_content_id if visible else None
    if hasattr(trilha, "first_item_id"):
        return trilha.first_item_id
    return resolve_start(trilha, include_drafts=include_drafts)


def resolve_visible(item_id, *, include_drafts=False) -> Optional[ContentItem]:
    """Load a routed-to item, or None when the link dangles or is hidden."""
    if not item_id:
        return None
    try:
        item = visible_items(include_drafts=include_drafts).filter(pk=item_id).first()
    except (DjangoValidationError, ValueError):
        item = None
    if item is None:
        log.info("route to %s is dangling or hidden; treating as terminal", item_id)
    return item
