"""
Tests for keyword-based intent classification and its fallbacks.
"""

import pytest

from tercih_dialogue.intent_classifier import IntentClassifier
from tercih_dialogue.models import IntentClassification


@pytest.fixture
def classifier():
    return IntentClassifier()


class TestClassify:
    def test_greeting(self, classifier):
        result = classifier.classify("merhaba", {})
        assert result.intent == "greeting"
        assert result.confidence == pytest.approx(0.8)
        assert result.matched_keywords == {"merhaba"}

    def test_net_question(self, classifier):
        result = classifier.classify("Kaç net gerekli?", {})
        assert result.intent == "net_calculation"
        assert result.confidence == pytest.approx(1.0)

    def test_base_score(self, classifier):
        result = classifier.classify("taban puan nedir", {})
        assert result.intent == "base_score"
        assert {"taban puan", "puan"} <= result.matched_keywords

    def test_quota(self, classifier):
        assert classifier.classify("kontenjan kaç kişi", {}).intent == "quota_inquiry"

    def test_department_search(self, classifier):
        assert classifier.classify("hangi bölümler var", {}).intent == "department_search"

    def test_help(self, classifier):
        result = classifier.classify("yardım", {})
        assert result.intent == "help"
        assert result.confidence == pytest.approx(0.7)

    def test_context_bonus_raises_confidence(self, classifier):
        result = classifier.classify("yardım", {"university": "Ege Üniversitesi"})
        assert result.intent == "help"
        assert result.confidence == pytest.approx(0.8)

    def test_confidence_capped_at_one(self, classifier):
        result = classifier.classify(
            "Marmara bilgisayar için kaç net gerekli",
            {"university": "Marmara Üniversitesi", "department": "Bilgisayar Mühendisliği", "scoreType": "SAY"},
        )
        assert result.confidence == 1.0

    def test_tie_goes_to_first_intent_in_table(self):
        classifier = IntentClassifier(
            patterns={
                "first": [{"keywords": ["ortak"], "weight": 1.0}],
                "second": [{"keywords": ["ortak"], "weight": 1.0}],
            },
            inferences=[],
        )
        assert classifier.classify("ortak", {}).intent == "first"


class TestFallback:
    def test_inferred_from_university_and_department(self, classifier):
        result = classifier.classify(
            "bilgi istiyorum",
            {"university": "Marmara Üniversitesi", "department": "Bilgisayar Mühendisliği"},
        )
        assert result.intent == "net_calculation"
        assert result.confidence == pytest.approx(0.6)

    def test_inferred_from_university_only(self, classifier):
        result = classifier.classify("bilgi istiyorum", {"university": "Ege Üniversitesi"})
        assert result.intent == "department_search"
        assert result.confidence == pytest.approx(0.6)

    def test_question_without_keywords(self, classifier):
        result = classifier.classify("nerede?", {})
        assert result.intent == "clarification_needed"
        assert result.confidence == pytest.approx(0.7)

    def test_question_word_without_question_mark(self, classifier):
        result = classifier.classify("nereden", {})
        assert result.intent == "clarification_needed"
        assert result.confidence == pytest.approx(0.7)

    def test_nothing_understood(self, classifier):
        for text in ("hmm", "evet", "", None):
            result = classifier.classify(text, {})
            assert result.intent == "clarification_needed"
            assert result.confidence == pytest.approx(0.5)

    def test_intents_cover_every_emitted_label(self, classifier):
        intents = classifier.intents
        assert intents[0] == "tyt_calculation"
        assert "clarification_needed" in intents
        assert len(intents) == len(set(intents))


class TestSuggestAndValidate:
    def test_suggestions_depend_on_known_anchors(self, classifier):
        both = classifier.suggest_intents({"university": "ODTÜ", "department": "Tıp"})
        only_university = classifier.suggest_intents({"university": "ODTÜ"})
        nothing = classifier.suggest_intents({})
        assert "Bu bölüm için kaç net gerekli?" in both
        assert "Hangi bölümler var?" in only_university
        assert "Hangi üniversiteyi merak ediyorsunuz?" in nothing

    def test_validate_confident_classification(self, classifier):
        result = IntentClassification(intent="net_calculation", confidence=0.6)
        assert classifier.validate(result, {})

    def test_validate_low_confidence_needs_anchors(self, classifier):
        result = IntentClassification(intent="net_calculation", confidence=0.4)
        assert not classifier.validate(result, {"university": "ODTÜ"})
        assert classifier.validate(result, {"university": "ODTÜ", "department": "Tıp"})

    def test_validate_default_threshold(self, classifier):
        result = IntentClassification(intent="greeting", confidence=0.25)
        assert not classifier.validate(result, {})
