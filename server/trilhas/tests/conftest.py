import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from trilhas.models import ContentItem, ContentOption, ContentQuestion, Trilha

User = get_user_model()


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def user(db):
    return User.objects.create_user(username="ana", password="pw-ana-123", name="Ana")


@pytest.fixture
def other_user(db):
    return User.objects.create_user(username="bia", password="pw-bia-123")


@pytest.fixture
def staff_user(db):
    return User.objects.create_user(username="root", password="pw-root-123", is_staff=True)


@pytest.fixture
def api_client(user):
    c = APIClient()
    c.force_authenticate(user=user)
    return c


@pytest.fixture
def staff_client(staff_user):
    c = APIClient()
    c.force_authenticate(user=staff_user)
    return c


@pytest.fixture
def anon_client():
    return APIClient()


@pytest.fixture
def make_trilha(db):
    def _make(name="Ansiedade", category="bem-estar", **kw):
        return Trilha.objects.create(name=name, category=category, **kw)
    return _make


@pytest.fixture
def make_item(db):
    def _make(trilha=None, title="Item", *, type="text", status="published",
              payload=None, order=0, next_item=None, **kw):
        if payload is None:
            payload = {"content": title} if type == "text" else {"url": "https://cdn.example.com/x"}
        if next_item is not None:
            kw["next_content_id"] = next_item.pk
        return ContentItem.objects.create(
            trilha=trilha,
            title=title,
            type=type,
            status=status,
            payload=payload,
            order=order,
            **kw,
        )
    return _make


@pytest.fixture
def make_question(db):
    def _make(item, prompt="Como voce esta?", *, options=(), order=0, required=True,
              type=ContentQuestion.QuestionType.MULTIPLE_CHOICE):
        """options: iterable of labels or (label, next_item) pairs."""
        question = ContentQuestion.objects.create(
            content_item=item, prompt=prompt, type=type, order=order, required=required,
        )
        for index, opt in enumerate(options):
            label, target = opt if isinstance(opt, tuple) else (opt, None)
            ContentOption.objects.create(
                question=question,
                label=label,
                order=index,
                next_content_id=getattr(target, "pk", target),
            )
        return question
    return _make
