from django.contrib import admin

from trilhas.models import ContentAnswer, ContentItem, ContentOption, ContentQuestion, Trilha


class ContentOptionInline(admin.TabularInline):
    model = ContentOption
    extra = 0


@admin.register(Trilha)
class TrilhaAdmin(admin.ModelAdmin):
    list_display = ("name", "category", "order", "start_content_id")
    list_filter = ("category",)
    search_fields = ("name",)


@admin.register(ContentItem)
class ContentItemAdmin(admin.ModelAdmin):
    list_display = ("title", "trilha", "type", "status", "order", "next_content_id")
    list_filter = ("status", "type", "trilha")
    search_fields = ("title",)


@admin.register(ContentQuestion)
class ContentQuestionAdmin(admin.ModelAdmin):
    list_display = ("prompt", "content_item", "type", "order", "required")
    inlines = [ContentOptionInline]


@admin.register(ContentAnswer)
class ContentAnswerAdmin(admin.ModelAdmin):
    list_display = ("user", "content_item_id", "question_id", "option_id", "created_at")
    readonly_fields = ("user", "content_item_id", "question_id", "option_id", "answer_text", "created_at")
