from types import SimpleNamespace

import pytest

from synergy import ai_coach


class FakeModel:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    def generate_content(self, content):
        self.calls.append(content)
        if self.error:
            raise self.error
        return SimpleNamespace(text=self.text)


class BlockedResponse:
    @property
    def text(self):
        raise ValueError("response was blocked")


@pytest.fixture
def offline(monkeypatch):
    monkeypatch.setattr(ai_coach, "_model", None)


def use_model(monkeypatch, model):
    monkeypatch.setattr(ai_coach, "_model", model)
    return model


def test_parse_json_variants():
    assert ai_coach._parse_json_from_text('{"a": 1}') == {"a": 1}
    assert ai_coach._parse_json_from_text('```json\n{"a": 2}\n```') == {"a": 2}
    assert ai_coach._parse_json_from_text('Sure! {"a": 3} Hope it helps.') == {"a": 3}
    assert ai_coach._parse_json_from_text("no json here") == {}
    assert ai_coach._parse_json_from_text("") == {}


def test_motivation_offline_falls_back(offline):
    motivation = ai_coach.generate_motivation(streak=10)
    assert motivation.title in {"Legendary", "Arise", "Unbroken"}
    assert motivation.quote


def test_motivation_from_model(monkeypatch):
    use_model(monkeypatch, FakeModel('{"title": "Rise", "quote": "One more day."}'))
    motivation = ai_coach.generate_motivation(streak=2)
    assert motivation == ai_coach.Motivation(title="Rise", quote="One more day.")


def test_motivation_survives_errors(monkeypatch):
    use_model(monkeypatch, FakeModel(error=RuntimeError("quota")))
    assert ai_coach.generate_motivation(streak=0).quote


def test_journal_prompt(monkeypatch, offline):
    assert ai_coach.generate_journal_prompt() == ai_coach.DEFAULT_JOURNAL_PROMPT

    use_model(monkeypatch, FakeModel('"What drained your energy today?"\n'))
    assert ai_coach.generate_journal_prompt() == "What drained your energy today?"


def test_journal_prompt_blocked(monkeypatch):
    model = use_model(monkeypatch, FakeModel())
    model.generate_content = lambda content: BlockedResponse()
    assert ai_coach.generate_journal_prompt() == ai_coach.DEFAULT_JOURNAL_PROMPT


def test_physique_analysis(monkeypatch):
    model = use_model(monkeypatch, FakeModel(
        '```json\n{"overall_physique": "Lean", "muscle_groups": {"Chest": "Developing"},'
        ' "improvement_areas": ["Legs"], "recommendations": "Squat twice a week."}\n```'))

    analysis = ai_coach.analyze_physical_progress(b"now", "image/png", b"before", notes="cutting", body_fat=15)

    assert analysis.overall_physique == "Lean"
    assert analysis.muscle_groups == {"Chest": "Developing"}
    assert analysis.improvement_areas == ["Legs"]
    assert analysis.recommendations == "Squat twice a week."

    content = model.calls[0]
    assert "Compare the current photo" in content[0]
    assert "15%" in content[0]
    assert content[1] == {"mime_type": "image/png", "data": b"now"}
    assert content[2] == {"mime_type": "image/jpeg", "data": b"before"}


def test_physique_analysis_fallback(monkeypatch, offline):
    analysis = ai_coach.analyze_physical_progress(b"now")
    assert analysis.overall_physique.startswith("Analysis is unavailable")
    assert analysis.muscle_groups == {}

    use_model(monkeypatch, FakeModel("I can't help with that."))
    assert ai_coach.analyze_physical_progress(b"now").improvement_areas == []
