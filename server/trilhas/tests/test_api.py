import uuid

import pytest
from django.db import connection
from django.test.utils import CaptureQueriesContext

from trilhas.models import ContentAnswer, ContentItem, ContentQuestion

pytestmark = pytest.mark.django_db


# ---------- trilhas ----------
def test_list_requires_authentication(anon_client):
    assert anon_client.get("/api/trilhas/").status_code == 401


def test_list_omits_tracks_without_published_items(api_client, make_trilha, make_item):
    full = make_trilha("Sono", "sono", order=1)
    make_item(full, "a")
    make_item(full, "rascunho", status="draft")
    drafts_only = make_trilha("Rascunhos", "sono", order=0)
    make_item(drafts_only, status="draft")
    make_trilha("Vazia", "sono")

    res = api_client.get("/api/trilhas/")
    assert res.status_code == 200
    rows = res.json()
    assert [r["name"] for r in rows] == ["Sono"]
    assert rows[0]["item_count"] == 1


def test_list_filters_by_category(api_client, make_trilha, make_item):
    make_item(make_trilha("Sono", "sono"))
    make_item(make_trilha("Foco", "foco"))
    res = api_client.get("/api/trilhas/", {"category": "foco"})
    assert [r["name"] for r in res.json()] == ["Foco"]


def test_detail_resolves_start_and_lists_published_items(api_client, make_trilha, make_item):
    t = make_trilha()
    a = make_item(t, "A", order=0)
    make_item(t, "escondido", status="draft", order=1)
    b = make_item(t, "B", order=2)

    res = api_client.get(f"/api/trilhas/{t.pk}/")
    assert res.status_code == 200
    body = res.json()
    assert body["trilha"]["start_content_id"] == str(a.pk)
    assert [i["id"] for i in body["items"]] == [str(a.pk), str(b.pk)]


def test_detail_of_unknown_track_is_404(api_client):
    assert api_client.get(f"/api/trilhas/{uuid.uuid4()}/").status_code == 404


def test_draft_start_is_hidden_from_users(api_client, staff_client, make_trilha, make_item):
    t = make_trilha()
    make_item(t, "publicado", order=0)
    draft = make_item(t, "rascunho", status="draft", order=1)
    t.start_content_id = draft.pk
    t.save()

    assert api_client.get("/api/trilhas/").json()[0]["start_content_id"] is None
    assert api_client.get(f"/api/trilhas/{t.pk}/").json()["trilha"]["start_content_id"] is None

    assert staff_client.get("/api/trilhas/").json()[0]["start_content_id"] == str(draft.pk)
    assert staff_client.get(f"/api/trilhas/{t.pk}/").json()["trilha"]["start_content_id"] == str(draft.pk)


def test_dangling_start_reads_as_no_start(api_client, staff_client, make_trilha, make_item):
    t = make_trilha(start_content_id=uuid.uuid4())
    make_item(t)

    for c in (api_client, staff_client):
        assert c.get("/api/trilhas/").json()[0]["start_content_id"] is None
        assert c.get(f"/api/trilhas/{t.pk}/").json()["trilha"]["start_content_id"] is None


def test_list_query_count_does_not_grow_with_tracks(api_client, make_trilha, make_item):
    def list_queries():
        with CaptureQueriesContext(connection) as ctx:
            assert api_client.get("/api/trilhas/").status_code == 200
        return len(ctx.captured_queries)

    make_item(make_trilha("Um", "sono"))
    single = list_queries()

    for n in range(3):
        make_item(make_trilha(f"Trilha {n}", "sono"))
    explicit = make_trilha("Explicita", "sono")
    explicit.start_content_id = make_item(explicit).pk
    explicit.save()

    assert list_queries() == single


# ---------- conteudos ----------
def test_item_detail_returns_ordered_questions(api_client, make_item, make_question):
    item = make_item()
    make_question(item, "segunda", options=["b1"], order=2)
    make_question(item, "primeira", options=["a1", "a2", "a3"], order=1)

    res = api_client.get(f"/api/conteudos/{item.pk}/")
    assert res.status_code == 200
    questions = res.json()["questions"]
    assert [q["prompt"] for q in questions] == ["primeira", "segunda"]
    assert [o["label"] for o in questions[0]["options"]] == ["a1", "a2", "a3"]


def test_draft_item_is_404_for_users_and_visible_to_staff(api_client, staff_client, make_item):
    draft = make_item(status="draft")
    assert api_client.get(f"/api/conteudos/{draft.pk}/").status_code == 404
    assert api_client.get(f"/api/conteudos/{uuid.uuid4()}/").status_code == 404
    assert staff_client.get(f"/api/conteudos/{draft.pk}/").status_code == 200


def test_answer_with_branching_option(api_client, make_item, make_question):
    c = make_item(title="C")
    b = make_item(title="B")
    q = make_question(b, "Q1", options=[("Sim", c), "Nao"])
    sim, nao = list(q.options.all())

    res = api_client.post(f"/api/conteudos/{b.pk}/answer/", {"question_id": q.pk, "option_id": sim.pk}, format="json")
    assert res.status_code == 200
    body = res.json()
    assert body["next_content_id"] == str(c.pk)
    assert body["next_item"]["item"]["title"] == "C"
    assert body["has_next_question"] is False

    res = api_client.post(f"/api/conteudos/{b.pk}/answer/", {"question_id": q.pk, "option_id": nao.pk}, format="json")
    assert res.json()["next_content_id"] is None
    assert res.json()["next_item"] is None
    assert ContentAnswer.objects.count() == 2


def test_answer_routing_to_draft_reports_no_next(api_client, make_item, make_question):
    hidden = make_item(title="C", status="draft")
    b = make_item(title="B")
    q = make_question(b, options=[("Sim", hidden)])

    res = api_client.post(f"/api/conteudos/{b.pk}/answer/", {"question_id": q.pk, "option_id": q.options.first().pk}, format="json")
    assert res.status_code == 200
    assert res.json()["next_content_id"] is None
    assert res.json()["next_item"] is None


def test_answer_reports_pending_question(api_client, make_item, make_question):
    e = make_item(title="E")
    d = make_item(title="D")
    q1 = make_question(d, "Q1", options=["um"], order=0)
    make_question(d, "Q2", options=[("X", e)], order=1)

    res = api_client.post(f"/api/conteudos/{d.pk}/answer/", {"question_id": q1.pk, "option_id": q1.options.first().pk}, format="json")
    assert res.json()["has_next_question"] is True
    assert res.json()["next_content_id"] is None


def test_required_answer_without_content_is_rejected(api_client, make_item, make_question):
    item = make_item()
    q = make_question(item, options=["a"])
    res = api_client.post(f"/api/conteudos/{item.pk}/answer/", {"question_id": q.pk}, format="json")
    assert res.status_code == 400
    assert ContentAnswer.objects.count() == 0


def test_answer_with_foreign_question_is_404(api_client, make_item, make_question):
    item, other = make_item(), make_item()
    q = make_question(other, options=["a"])
    res = api_client.post(f"/api/conteudos/{item.pk}/answer/", {"question_id": q.pk, "option_id": q.options.first().pk}, format="json")
    assert res.status_code == 404


def test_answer_with_malformed_ids_is_400(api_client, make_item):
    item = make_item()
    res = api_client.post(f"/api/conteudos/{item.pk}/answer/", {"question_id": "abc"}, format="json")
    assert res.status_code == 400
    assert "question_id" in res.json()


# ---------- respostas ----------
def test_answer_history_is_per_user_and_newest_first(api_client, other_user, user, make_item, make_question):
    item = make_item()
    q = make_question(item, options=["a", "b"])
    a, b = list(q.options.all())
    ContentAnswer.objects.create(user=user, content_item_id=item.pk, question_id=q.pk, option_id=a.pk)
    ContentAnswer.objects.create(user=user, content_item_id=item.pk, question_id=q.pk, option_id=b.pk)
    ContentAnswer.objects.create(user=other_user, content_item_id=item.pk, question_id=q.pk, option_id=a.pk)
    ContentAnswer.objects.create(user=user, content_item_id=uuid.uuid4(), question_id=q.pk)

    rows = api_client.get("/api/respostas/", {"content_item_id": str(item.pk)}).json()
    assert [r["option_id"] for r in rows] == [b.pk, a.pk]


# ---------- runs ----------
def test_run_walks_to_completion(api_client, make_trilha, make_item, make_question):
    t = make_trilha()
    last = make_item(t, "fim", order=2)
    middle = make_item(t, "meio", order=1, next_item=last)
    first = make_item(t, "inicio", order=0, next_item=middle)
    q = make_question(middle, options=["ok"])

    res = api_client.post(f"/api/trilhas/{t.pk}/runs/")
    assert res.status_code == 201
    run = res.json()
    run_id = run["run_id"]
    assert run["phase"] == "at_item"
    assert run["item"]["item"]["id"] == str(first.pk)
    assert run["question"] is None

    run = api_client.post(f"/api/runs/{run_id}/advance/", {}, format="json").json()
    assert run["item"]["item"]["id"] == str(middle.pk)
    assert run["question"]["id"] == q.pk

    run = api_client.post(f"/api/runs/{run_id}/advance/", {"option_id": q.options.first().pk}, format="json").json()
    assert run["answer"]["question_id"] == q.pk
    assert run["item"]["item"]["id"] == str(last.pk)

    run = api_client.post(f"/api/runs/{run_id}/advance/", {}, format="json").json()
    assert run["phase"] == "completed"
    assert api_client.get(f"/api/runs/{run_id}/").json()["phase"] == "completed"

    res = api_client.post(f"/api/runs/{run_id}/advance/", {}, format="json")
    assert res.status_code == 409


def test_run_for_track_without_content(api_client, make_trilha):
    t = make_trilha()
    res = api_client.post(f"/api/trilhas/{t.pk}/runs/")
    assert res.status_code == 201
    assert res.json()["phase"] == "no_content"


def test_run_belongs_to_its_user(api_client, other_user, make_trilha, make_item):
    from rest_framework.test import APIClient

    t = make_trilha()
    make_item(t)
    run_id = api_client.post(f"/api/trilhas/{t.pk}/runs/").json()["run_id"]

    intruder = APIClient()
    intruder.force_authenticate(user=other_user)
    assert intruder.get(f"/api/runs/{run_id}/").status_code == 404
    assert api_client.get(f"/api/runs/{uuid.uuid4().hex}/").status_code == 404


def test_run_rejects_invalid_answer(api_client, make_trilha, make_item, make_question):
    t = make_trilha()
    item = make_item(t)
    make_question(item, options=["a"])
    run_id = api_client.post(f"/api/trilhas/{t.pk}/runs/").json()["run_id"]

    res = api_client.post(f"/api/runs/{run_id}/advance/", {}, format="json")
    assert res.status_code == 400
    assert api_client.get(f"/api/runs/{run_id}/").json()["question_index"] == 0


# ---------- authoring ----------
def test_admin_endpoints_need_staff(api_client):
    assert api_client.get("/api/admin/trilhas/").status_code == 403
    assert api_client.post("/api/admin/conteudos/", {}, format="json").status_code == 403


def test_admin_creates_track_and_item_with_questions(staff_client):
    res = staff_client.post("/api/admin/trilhas/", {"name": " Respirar ", "category": "ansiedade"}, format="json")
    assert res.status_code == 201
    trilha_id = res.json()["id"]
    assert res.json()["name"] == "Respirar"

    res = staff_client.post("/api/admin/conteudos/", {
        "trilha": trilha_id,
        "title": "Video guiado",
        "type": "video",
        "status": "published",
        "payload": {"url": "https://www.youtube.com/watch?v=abc"},
        "questions": [
            {"prompt": "Gostou?", "options": [{"label": "Sim"}, {"label": "Mais ou menos"}, {"label": "Nao"}]},
        ],
    }, format="json")
    assert res.status_code == 201, res.json()
    body = res.json()
    assert body["payload"] == {"url": "https://www.youtube.com/embed/abc"}
    assert [o["label"] for o in body["questions"][0]["options"]] == ["Sim", "Mais ou menos", "Nao"]
    assert [o["order"] for o in body["questions"][0]["options"]] == [0, 1, 2]


def test_admin_update_replaces_question_set(staff_client, make_item, make_question):
    item = make_item()
    old = make_question(item, options=["a"])

    res = staff_client.patch(f"/api/admin/conteudos/{item.pk}/", {
        "questions": [{"prompt": "Nova", "type": "free_text", "required": False}],
    }, format="json")
    assert res.status_code == 200, res.json()
    assert not ContentQuestion.objects.filter(pk=old.pk).exists()
    assert [q["prompt"] for q in res.json()["questions"]] == ["Nova"]


def test_admin_patch_without_questions_keeps_them(staff_client, make_item, make_question):
    item = make_item()
    q = make_question(item, options=["a"])
    res = staff_client.patch(f"/api/admin/conteudos/{item.pk}/", {"status": "draft"}, format="json")
    assert res.status_code == 200
    assert [x["id"] for x in res.json()["questions"]] == [q.pk]


def test_admin_rejects_mismatched_payload(staff_client):
    res = staff_client.post("/api/admin/conteudos/", {
        "title": "Texto", "type": "text", "payload": {"url": "https://a.b/c"},
    }, format="json")
    assert res.status_code == 400
    assert "payload" in res.json()


def test_admin_rejects_multiple_choice_without_options(staff_client):
    res = staff_client.post("/api/admin/conteudos/", {
        "title": "Texto", "type": "text", "payload": {"content": "oi"},
        "questions": [{"prompt": "Sem opcoes"}],
    }, format="json")
    assert res.status_code == 400


def test_admin_delete_track_cascades(staff_client, make_trilha, make_item):
    t = make_trilha()
    item = make_item(t)
    assert staff_client.delete(f"/api/admin/trilhas/{t.pk}/").status_code == 204
    assert not ContentItem.objects.filter(pk=item.pk).exists()


def test_admin_lists_items_filtered_by_status(staff_client, make_item):
    make_item(title="pub")
    make_item(title="draft", status="draft")
    res = staff_client.get("/api/admin/conteudos/", {"status": "draft"})
    assert [i["title"] for i in res.json()] == ["draft"]
