"""
Traversal of one trilha by one user.

    NOT_STARTED -> AT_ITEM(item, 0) -> AT_ITEM(item, 1) -> ... -> AT_ITEM(next, 0) -> ... -> COMPLETED
    NOT_STARTED -> NO_CONTENT          (track has no visible items)

While inside an item, every answered question may capture a branch override.
A later question replaces the captured override only when its own chosen
option carries one. Leaving the item uses the override, else the item's
default next id. A missing or hidden target ends the run as COMPLETED.

Only answers are persisted. The walker state itself is a small dict that the
caller may keep anywhere (see run_store.RunStore).
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Callable, List, Optional

from trilhas.exceptions import WalkerStateError
from trilhas.models import ContentItem, ContentQuestion, Trilha
from trilhas.services.answers import submit_answer
from trilhas.services.graph import (
    first_published_item, option_override, ordered_questions, resolve_start, resolve_visible,
)

log = logging.getLogger(__name__)

NOT_STARTED = "not_started"
AT_ITEM = "at_item"
COMPLETED = "completed"
NO_CONTENT = "no_content"

PHASES = (NOT_STARTED, AT_ITEM, COMPLETED, NO_CONTENT)


@dataclass
class WalkerState:
    trilha_id: str
    user_id: Optional[int] = None
    phase: str = NOT_STARTED
    item_id: Optional[str] = None
    question_index: int = 0
    override: Optional[str] = None
    steps: int = 0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "WalkerState":
        state = cls(**data)
        if state.phase not in PHASES:
            raise ValueError(f"unknown walker phase {state.phase!r}")
        return state

    @property
    def is_finished(self) -> bool:
        return self.phase in (COMPLETED, NO_CONTENT)


class SessionWalker:
    def __init__(self, trilha: Trilha, user=None, *, state: Optional[WalkerState] = None,
                 include_drafts: bool = False, submit: Callable = submit_answer):
        self.trilha = trilha
        self.user = user
        self.include_drafts = include_drafts
        self.state = state or WalkerState(
            trilha_id=str(trilha.pk), user_id=getattr(user, "pk", None)
        )
        self._submit = submit
        self._item: Optional[ContentItem] = None
        self._questions: Optional[List[ContentQuestion]] = None

    # ---------- reads ----------
    @property
    def phase(self) -> str:
        return self.state.phase

    def current_item(self) -> Optional[ContentItem]:
        if self.state.phase != AT_ITEM:
            return None
        if self._item is None or str(self._item.pk) != self.state.item_id:
            self._item = resolve_visible(self.state.item_id, include_drafts=self.include_drafts)
            self._questions = None
        return self._item

    def questions(self) -> List[ContentQuestion]:
        item = self.current_item()
        if item is None:
            return []
        if self._questions is None:
            self._questions = ordered_questions(item)
        return self._questions

    def current_question(self) -> Optional[ContentQuestion]:
        qs = self.questions()
        if self.state.question_index < len(qs):
            return qs[self.state.question_index]
        return None

    # ---------- transitions ----------
    def start(self) -> WalkerState:
        if self.state.phase != NOT_STARTED:
            raise WalkerStateError("A trilha ja foi iniciada.")

        if first_published_item(self.trilha, include_drafts=self.include_drafts) is None:
            self.state.phase = NO_CONTENT
            log.info("trilha %s has no visible content", self.trilha.pk)
            return self.state

        start_id = resolve_start(self.trilha, include_drafts=self.include_drafts)
        start = resolve_visible(start_id, include_drafts=self.include_drafts)
        if start is None:
            self._complete()
        else:
            self._enter(start)
        return self.state

    def answer(self, option_id=None, answer_text=None):
        """Record an answer to the pending question and move on."""
        self._require_at_item()
        item = self.current_item()
        if item is None:
            # unpublished or deleted while the run was open
            self._complete()
            return None

        question = self.current_question()
        if question is None:
            raise WalkerStateError("Nao ha pergunta pendente neste conteudo.")

        answer, question, option = self._submit(
            self.user, item, question.pk, option_id, answer_text
        )
        override = option_override(question, option.pk if option else None)
        if override:
            self.state.override = str(override)

        if self.state.question_index + 1 < len(self.questions()):
            self.state.question_index += 1
        else:
            self._leave(item)
        return answer

    def advance(self) -> WalkerState:
        """Leave an item whose questions are all answered (or that has none)."""
        self._require_at_item()
        item = self.current_item()
        if item is None:
            self._complete()
            return self.state
        if self.current_question() is not None:
            raise WalkerStateError("Responda a pergunta pendente antes de continuar.")
        self._leave(item)
        return self.state

    # ---------- internals ----------
    def _require_at_item(self):
        if self.state.phase != AT_ITEM:
            raise WalkerStateError(f"Transicao invalida no estado '{self.state.phase}'.")

    def _enter(self, item: ContentItem):
        self.state.phase = AT_ITEM
        self.state.item_id = str(item.pk)
        self.state.question_index = 0
        self.state.override = None
        self.state.steps += 1
        self._item = item
        self._questions = None

    def _leave(self, item: ContentItem):
        target = self.state.override or item.next_content_id
        nxt = resolve_visible(target, include_drafts=self.include_drafts) if target else None
        if nxt is None:
            self._complete()
        else:
            self._enter(nxt)

    def _complete(self):
        self.state.phase = COMPLETED
        self.state.item_id = None
        self.state.question_index = 0
        self.state.override = None
        self._item = None
        self._questions = None
        log.info("trilha %s completed user=%s steps=%d",
                 self.state.trilha_id, self.state.user_id, self.state.steps)
