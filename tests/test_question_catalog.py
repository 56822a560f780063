"""Tests for services/question_catalog.py: event question sets."""

import json

import pytest
from pydantic import ValidationError

from errors.exceptions import EventNotFoundError, QuestionNotFoundError
from services.question_catalog import QuestionCatalog, load_question_catalog
from tests.fakes import make_question


def _write_event(root, event_name, questions):
    event_dir = root / event_name
    event_dir.mkdir(parents=True)
    (event_dir / "questions.json").write_text(json.dumps(questions), encoding="utf-8")


def _question_json(qid="q-1", pointy_words=("trace",)):
    return {
        "id": qid,
        "question": "What?",
        "version": "v1",
        "prompts_v2": {
            "category_prompt": "cat THEIR_ANSWER",
            "response_prompt": "resp CATEGORY",
            "scoring_prompts": [{"prompt": "score THEIR_ANSWER", "maximum_score": 5}],
            "pointy_words": list(pointy_words),
        },
    }


# ── Bundled data ─────────────────────────────────────────────


def test_bundled_catalog_loads():
    catalog = load_question_catalog()

    assert "devopsdays_whenever" in catalog.event_names
    assert catalog.default_event == "devopsdays_whenever"
    questions = catalog.questions_for("devopsdays_whenever")
    assert len(questions) >= 1
    for q in questions:
        assert q.prompts_v2.category_prompt
        assert q.prompts_v2.response_prompt
        assert all(r.maximum_score >= 0 for r in q.prompts_v2.scoring_prompts)


def test_bundled_ids_unique_per_event():
    catalog = load_question_catalog()
    for event_name in catalog.event_names:
        ids = [q.id for q in catalog.questions_for(event_name)]
        assert len(ids) == len(set(ids))


# ── Loading from a directory ─────────────────────────────────


def test_load_from_directory(tmp_path):
    _write_event(tmp_path, "alpha", [_question_json("q-1"), _question_json("q-2")])
    _write_event(tmp_path, "beta", [_question_json("q-9")])

    catalog = load_question_catalog(tmp_path, default_event="alpha")

    assert catalog.event_names == ["alpha", "beta"]
    assert [q.id for q in catalog.questions_for("alpha")] == ["q-1", "q-2"]
    assert catalog.find_question("beta", "q-9").prompts_v2.pointy_words == ("trace",)


def test_invalid_question_file_fails_loudly(tmp_path):
    bad = _question_json()
    del bad["prompts_v2"]["category_prompt"]
    _write_event(tmp_path, "alpha", [bad])

    with pytest.raises(ValidationError):
        load_question_catalog(tmp_path, default_event="alpha")


def test_malformed_json_fails_loudly(tmp_path):
    (tmp_path / "alpha").mkdir()
    (tmp_path / "alpha" / "questions.json").write_text("[{", encoding="utf-8")

    with pytest.raises(json.JSONDecodeError):
        load_question_catalog(tmp_path, default_event="alpha")


# ── Lookups ──────────────────────────────────────────────────


@pytest.fixture
def catalog():
    return QuestionCatalog({"alpha": [make_question()]}, default_event="alpha")


def test_unknown_event(catalog):
    with pytest.raises(EventNotFoundError) as exc_info:
        catalog.questions_for("nope")
    assert exc_info.value.message == "Couldn't find event name nope"


def test_unknown_question(catalog):
    with pytest.raises(QuestionNotFoundError) as exc_info:
        catalog.find_question("alpha", "missing")
    assert exc_info.value.message == "Couldn't find question with that ID"


def test_find_question(catalog):
    assert catalog.find_question("alpha", "q-1").question == "How do you know it works?"


def test_catalog_is_read_only(catalog):
    with pytest.raises(TypeError):
        catalog._events["beta"] = ()
    assert isinstance(catalog.questions_for("alpha"), tuple)


def test_public_view_hides_prompts(catalog):
    view = catalog.find_question("alpha", "q-1").public_view()
    assert view == {"id": "q-1", "question": "How do you know it works?", "version": "v2"}
