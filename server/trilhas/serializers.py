from django.db import transaction
from rest_framework import serializers

from trilhas.models import ContentAnswer, ContentItem, ContentOption, ContentQuestion, Trilha
from trilhas.payloads import PayloadError, parse_payload
from trilhas.services.authoring import replace_questions
from trilhas.services.graph import ordered_questions, visible_start


# ---------- read side ----------
class ContentOptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = ContentOption
        fields = ("id", "label", "value", "next_content_id", "order")
        read_only_fields = fields


class ContentQuestionSerializer(serializers.ModelSerializer):
    options = ContentOptionSerializer(many=True, read_only=True)

    class Meta:
        model = ContentQuestion
        fields = ("id", "prompt", "type", "order", "required", "options")
        read_only_fields = fields


class ContentItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = ContentItem
        fields = (
            "id", "trilha", "title", "description", "type", "status", "payload",
            "next_content_id", "order", "created_at", "updated_at",
        )
        read_only_fields = fields


class ContentItemMiniSerializer(serializers.ModelSerializer):
    class Meta:
        model = ContentItem
        fields = ("id", "title", "type", "order")
        read_only_fields = fields


def item_with_questions(item, questions=None):
    """{"item": ..., "questions": [...]} shape shared by detail, answer and run responses."""
    if questions is None:
        questions = ordered_questions(item)
    return {
        "item": ContentItemSerializer(item).data,
        "questions": ContentQuestionSerializer(questions, many=True).data,
    }


class TrilhaSummarySerializer(serializers.ModelSerializer):
    item_count = serializers.IntegerField(read_only=True)
    start_content_id = serializers.SerializerMethodField()

    class Meta:
        model = Trilha
        fields = (
            "id", "name", "description", "category", "thumbnail_url", "order",
            "item_count", "start_content_id",
        )
        read_only_fields = fields

    def get_start_content_id(self, obj):
        start = visible_start(obj, include_drafts=self.context.get("include_drafts", False))
        return str(start) if start else None


class ContentAnswerSerializer(serializers.ModelSerializer):
    class Meta:
        model = ContentAnswer
        fields = ("id", "content_item_id", "question_id", "option_id", "answer_text", "created_at")
        read_only_fields = fields


# ---------- input ----------
class AnswerIn(serializers.Serializer):
    question_id = serializers.IntegerField(min_value=1)
    option_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    answer_text = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=5000)


class AdvanceIn(serializers.Serializer):
    option_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    answer_text = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=5000)


class AnswerOut(serializers.Serializer):
    answer = ContentAnswerSerializer()
    next_content_id = serializers.UUIDField(allow_null=True)
    next_item = serializers.DictField(allow_null=True)
    has_next_question = serializers.BooleanField()


class RunStateOut(serializers.Serializer):
    run_id = serializers.CharField()
    trilha_id = serializers.UUIDField()
    phase = serializers.ChoiceField(choices=["not_started", "at_item", "completed", "no_content"])
    question_index = serializers.IntegerField()
    item = serializers.DictField(allow_null=True)
    question = serializers.DictField(allow_null=True)
    answer = ContentAnswerSerializer(required=False, allow_null=True)


# ---------- authoring ----------
class TrilhaSerializer(serializers.ModelSerializer):
    class Meta:
        model = Trilha
        fields = (
            "id", "name", "description", "category", "thumbnail_url", "order", "start_content_id",
        )
        read_only_fields = ("id",)

    def validate_name(self, v):
        v = (v or "").strip()
        if not v:
            raise serializers.ValidationError("Nome e obrigatorio.")
        return v

    def validate_category(self, v):
        v = (v or "").strip()
        if not v:
            raise serializers.ValidationError("Categoria e obrigatoria.")
        return v


class OptionIn(serializers.Serializer):
    label = serializers.CharField(max_length=255)
    value = serializers.CharField(max_length=255, required=False, allow_null=True, allow_blank=True)
    next_content_id = serializers.UUIDField(required=False, allow_null=True)
    order = serializers.IntegerField(required=False, allow_null=True)


class QuestionIn(serializers.Serializer):
    prompt = serializers.CharField()
    type = serializers.ChoiceField(
        choices=ContentQuestion.QuestionType.choices, required=False,
        default=ContentQuestion.QuestionType.MULTIPLE_CHOICE,
    )
    required = serializers.BooleanField(required=False, default=True)
    order = serializers.IntegerField(required=False, allow_null=True)
    options = OptionIn(many=True, required=False, default=list)

    def validate(self, attrs):
        if attrs.get("type") == ContentQuestion.QuestionType.MULTIPLE_CHOICE and not attrs.get("options"):
            raise serializers.ValidationError({"options": "Pergunta de multipla escolha precisa de opcoes."})
        return attrs


class AdminContentItemSerializer(serializers.ModelSerializer):
    """Item CRUD; a `questions` list, when sent, replaces the whole question set."""
    questions = QuestionIn(many=True, required=False, write_only=True)

    class Meta:
        model = ContentItem
        fields = (
            "id", "trilha", "title", "description", "type", "status", "payload",
            "next_content_id", "order", "created_at", "updated_at", "questions",
        )
        read_only_fields = ("id", "created_at", "updated_at")

    def validate_title(self, v):
        v = (v or "").strip()
        if not v:
            raise serializers.ValidationError("Titulo e obrigatorio.")
        return v

    def validate(self, attrs):
        instance = self.instance
        content_type = attrs.get("type", getattr(instance, "type", None))
        if "type" in attrs or "payload" in attrs or instance is None:
            raw = attrs.get("payload", getattr(instance, "payload", None))
            try:
                attrs["payload"] = parse_payload(content_type, raw).to_wire()
            except PayloadError as e:
                raise serializers.ValidationError({"payload": str(e)})
        return attrs

    def create(self, validated_data):
        questions = validated_data.pop("questions", None)
        with transaction.atomic():
            item = super().create(validated_data)
            if questions is not None:
                replace_questions(item, questions)
        return item

    def update(self, instance, validated_data):
        questions = validated_data.pop("questions", None)
        with transaction.atomic():
            item = super().update(instance, validated_data)
            if questions is not None:
                replace_questions(item, questions)
        return item

    def to_representation(self, instance):
        data = super().to_representation(instance)
        data["questions"] = ContentQuestionSerializer(ordered_questions(instance), many=True).data
        return data
