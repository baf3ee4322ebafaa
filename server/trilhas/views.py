import logging

from django.db.models import Count, Exists, OuterRef, Prefetch, Q, Subquery
from drf_spectacular.utils import OpenApiExample, extend_schema
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.response import Response

from trilhas.models import ContentItem, ContentOption, ContentQuestion, Trilha
from trilhas.serializers import (
    AdminContentItemSerializer, AdvanceIn, AnswerIn, AnswerOut, ContentAnswerSerializer,
    ContentItemMiniSerializer, ContentItemSerializer, ContentQuestionSerializer, RunStateOut, TrilhaSerializer,
    TrilhaSummarySerializer, item_with_questions,
)
from trilhas.services.answers import answers_for, submit_answer
from trilhas.services.graph import resolve_next, resolve_visible
from trilhas.services.run_store import RunStore
from trilhas.services.visibility import can_see_drafts, visible_items
from trilhas.services.walker import SessionWalker
from utils.permissions import IsContentAdmin

log = logging.getLogger(__name__)


def _questions_prefetch():
    return Prefetch(
        "questions",
        queryset=ContentQuestion.objects.order_by("order", "id").prefetch_related(
            Prefetch("options", queryset=ContentOption.objects.order_by("order", "id"))
        ),
    )


# ============ End-user surface ============
class TrilhaViewSet(mixins.ListModelMixin,
                    mixins.RetrieveModelMixin,
                    viewsets.GenericViewSet):
    """
    list     -> published trilhas with item_count and resolved start; empty ones omitted
    retrieve -> trilha + its published items + resolved start
    runs     -> start a guided run (see TrilhaRunViewSet)
    """
    permission_classes = [permissions.IsAuthenticated]
    serializer_class = TrilhaSummarySerializer
    filterset_fields = ["category"]
    run_store_class = RunStore

    def get_queryset(self):
        visible = visible_items(include_drafts=can_see_drafts(self.request.user))
        qs = Trilha.objects.annotate(
            item_count=Count("items", filter=Q(items__status=ContentItem.Status.PUBLISHED)),
            first_item_id=Subquery(
                visible.filter(trilha=OuterRef("pk")).order_by("order", "created_at").values("pk")[:1]
            ),
            start_is_visible=Exists(visible.filter(pk=OuterRef("start_content_id"))),
        )
        if self.action == "list":
            qs = qs.filter(item_count__gt=0)
        return qs.order_by("order", "name")

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context["include_drafts"] = can_see_drafts(self.request.user)
        return context

    def retrieve(self, request, *args, **kwargs):
        trilha = self.get_object()
        items = (
            visible_items(include_drafts=False)
            .filter(trilha=trilha)
            .order_by("order", "created_at")
        )
        data = self.get_serializer(trilha).data
        return Response({
            "trilha": data,
            "items": ContentItemMiniSerializer(items, many=True).data,
        })

    @extend_schema(request=None, responses={201: RunStateOut})
    @action(detail=True, methods=["post"], url_path="runs")
    def runs(self, request, pk=None):
        trilha = self.get_object()
        walker = SessionWalker(trilha, request.user, include_drafts=can_see_drafts(request.user))
        walker.start()
        store = self.run_store_class()
        run_id = store.create(walker.state)
        log.info("run %s started trilha=%s user=%s phase=%s", run_id, trilha.pk, request.user.pk, walker.phase)
        return Response(_run_payload(run_id, walker), status=status.HTTP_201_CREATED)


class ContentItemViewSet(mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """Hidden (draft) items answer 404 to non-admins, same as missing ones."""
    permission_classes = [permissions.IsAuthenticated]
    serializer_class = ContentItemSerializer

    def get_queryset(self):
        return visible_items(self.request.user).prefetch_related(_questions_prefetch())

    def retrieve(self, request, *args, **kwargs):
        item = self.get_object()
        return Response(item_with_questions(item, list(item.questions.all())))

    @extend_schema(
        request=AnswerIn,
        responses={200: AnswerOut},
        examples=[
            OpenApiExample(
                "Choose an option",
                value={"question_id": 12, "option_id": 31},
                request_only=True,
            ),
        ],
    )
    @action(detail=True, methods=["post"], url_path="answer")
    def answer(self, request, pk=None):
        item = self.get_object()
        ser = AnswerIn(data=request.data)
        ser.is_valid(raise_exception=True)
        v = ser.validated_data

        answer, question, option = submit_answer(
            request.user, item, v["question_id"], v.get("option_id"), v.get("answer_text"),
        )

        include_drafts = can_see_drafts(request.user)
        target = resolve_next(item, question, option.pk if option else None)
        next_item = resolve_visible(target, include_drafts=include_drafts)
        has_next_question = item.questions.filter(
            Q(order__gt=question.order) | Q(order=question.order, id__gt=question.id)
        ).exists()

        return Response({
            "answer": ContentAnswerSerializer(answer).data,
            # dangling or hidden targets read as "no next item"
            "next_content_id": str(next_item.pk) if next_item else None,
            "next_item": item_with_questions(next_item) if next_item else None,
            "has_next_question": has_next_question,
        })


class ContentAnswerViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    permission_classes = [permissions.IsAuthenticated]
    serializer_class = ContentAnswerSerializer
    filterset_fields = ["content_item_id", "question_id"]

    def get_queryset(self):
        return answers_for(self.request.user)


def _run_payload(run_id, walker, answer=None):
    item = walker.current_item()
    question = walker.current_question()
    return {
        "run_id": run_id,
        "trilha_id": walker.state.trilha_id,
        "phase": walker.phase,
        "question_index": walker.state.question_index,
        "item": item_with_questions(item, walker.questions()) if item else None,
        "question": ContentQuestionSerializer(question).data if question else None,
        "answer": ContentAnswerSerializer(answer).data if answer else None,
    }


class TrilhaRunViewSet(viewsets.ViewSet):
    """
    Server-held walker runs. State lives in the cache only; an expired run
    is a 404 and the client starts the trilha again.
    """
    permission_classes = [permissions.IsAuthenticated]
    lookup_value_regex = "[0-9a-f]{32}"
    run_store_class = RunStore

    def _load(self, request, pk):
        store = self.run_store_class()
        state = store.get(pk)
        if state is None or state.user_id != request.user.pk:
            raise NotFound("Sessao da trilha nao encontrada.")
        trilha = Trilha.objects.filter(pk=state.trilha_id).first()
        if trilha is None:
            store.discard(pk)
            raise NotFound("Sessao da trilha nao encontrada.")
        walker = SessionWalker(
            trilha, request.user, state=state, include_drafts=can_see_drafts(request.user)
        )
        return store, walker

    @extend_schema(responses={200: RunStateOut})
    def retrieve(self, request, pk=None):
        _, walker = self._load(request, pk)
        return Response(_run_payload(pk, walker))

    @extend_schema(request=AdvanceIn, responses={200: RunStateOut})
    @action(detail=True, methods=["post"], url_path="advance")
    def advance(self, request, pk=None):
        store, walker = self._load(request, pk)
        ser = AdvanceIn(data=request.data)
        ser.is_valid(raise_exception=True)
        v = ser.validated_data

        answer = None
        if walker.current_question() is not None:
            answer = walker.answer(v.get("option_id"), v.get("answer_text"))
        else:
            walker.advance()
        store.save(pk, walker.state)
        return Response(_run_payload(pk, walker, answer))


# ============ Authoring surface ============
class AdminTrilhaViewSet(viewsets.ModelViewSet):
    permission_classes = [IsContentAdmin]
    serializer_class = TrilhaSerializer
    queryset = Trilha.objects.all().order_by("order", "name")
    filterset_fields = ["category"]

    def perform_destroy(self, instance):
        log.info("trilha %s deleted by user=%s", instance.pk, self.request.user.pk)
        instance.delete()


class AdminContentItemViewSet(viewsets.ModelViewSet):
    permission_classes = [IsContentAdmin]
    serializer_class = AdminContentItemSerializer
    queryset = ContentItem.objects.all().order_by("order", "created_at")
    filterset_fields = ["trilha", "status", "type"]

    def perform_destroy(self, instance):
        log.info("content item %s deleted by user=%s", instance.pk, self.request.user.pk)
        instance.delete()
