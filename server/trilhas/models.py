import uuid

from django.conf import settings
from django.db import models


class Trilha(models.Model):
    """
    Guided track: an ordered, categorized group of content items.

    `start_content_id` is a soft reference. It is not a foreign key and may
    point at a deleted or unpublished item; readers treat that as "no start".
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    category = models.CharField(max_length=100)
    thumbnail_url = models.URLField(max_length=500, blank=True, null=True)
    order = models.IntegerField(default=0)
    start_content_id = models.UUIDField(null=True, blank=True)

    class Meta:
        ordering = ["order", "name"]
        indexes = [models.Index(fields=["category", "order"], name="trilha_category_order_idx")]

    def __str__(self):
        return f"{self.name} [{self.category}]"


class ContentItem(models.Model):
    class ContentType(models.TextChoices):
        VIDEO = "video", "Video"
        TEXT = "text", "Text"
        AUDIO = "audio", "Audio"
        IMAGE = "image", "Image"
        FILE = "file", "File"

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        PUBLISHED = "published", "Published"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    # standalone items (no trilha) stay reachable through direct links
    trilha = models.ForeignKey(
        Trilha, on_delete=models.CASCADE, null=True, blank=True, related_name="items"
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    type = models.CharField(max_length=16, choices=ContentType.choices)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.DRAFT)
    payload = models.JSONField(default=dict, blank=True)
    next_content_id = models.UUIDField(null=True, blank=True)
    order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["order", "created_at"]
        indexes = [
            models.Index(fields=["trilha", "status", "order"], name="item_trilha_status_order_idx"),
            models.Index(fields=["status"], name="item_status_idx"),
        ]

    def __str__(self):
        return f"{self.title} [{self.type}/{self.status}]"

    @property
    def is_published(self):
        return self.status == self.Status.PUBLISHED

    @property
    def content(self):
        """Payload parsed into its typed variant."""
        from trilhas.payloads import parse_payload
        return parse_payload(self.type, self.payload)


class ContentQuestion(models.Model):
    class QuestionType(models.TextChoices):
        MULTIPLE_CHOICE = "multiple_choice", "Multiple choice"
        FREE_TEXT = "free_text", "Free text"

    content_item = models.ForeignKey(ContentItem, on_delete=models.CASCADE, related_name="questions")
    prompt = models.TextField()
    type = models.CharField(max_length=32, choices=QuestionType.choices, default=QuestionType.MULTIPLE_CHOICE)
    order = models.IntegerField(default=0)
    required = models.BooleanField(default=True)

    class Meta:
        # id breaks ties: it grows with insertion
        ordering = ["order", "id"]
        indexes = [models.Index(fields=["content_item", "order"], name="question_item_order_idx")]

    def __str__(self):
        return f"Question({self.id}) for Item({self.content_item_id})"


class ContentOption(models.Model):
    question = models.ForeignKey(ContentQuestion, on_delete=models.CASCADE, related_name="options")
    label = models.CharField(max_length=255)
    value = models.CharField(max_length=255, blank=True, null=True)
    # overrides the owning item's next_content_id when chosen
    next_content_id = models.UUIDField(null=True, blank=True)
    order = models.IntegerField(default=0)

    class Meta:
        ordering = ["order", "id"]
        indexes = [models.Index(fields=["question", "order"], name="option_question_order_idx")]

    def __str__(self):
        return f"Option({self.label[:20]}) for Question({self.question_id})"


class ContentAnswer(models.Model):
    """
    Append-only log of user responses. Item/question/option are plain ids so
    that editing or deleting content never rewrites history.
    """
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="content_answers")
    content_item_id = models.UUIDField()
    question_id = models.BigIntegerField()
    option_id = models.BigIntegerField(null=True, blank=True)
    answer_text = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["user", "created_at"], name="answer_user_created_idx"),
            models.Index(fields=["user", "content_item_id"], name="answer_user_item_idx"),
        ]

    def __str__(self):
        return f"Answer({self.user_id} · {self.content_item_id} · q{self.question_id})"
