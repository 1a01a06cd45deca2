"""
End-to-end tests for a dialogue turn through AgentCore.
"""

import pytest

from tercih_dialogue.agent_core import AgentCore
from tercih_dialogue.conversation_state import ConversationState
from tercih_dialogue.errors import LexiconConfigError
from tercih_dialogue.memory_store import ContextStore


class BrokenStore(ContextStore):
    def add_entry(self, *args, **kwargs):
        raise RuntimeError("store unavailable")


class TestStatelessTurns:
    def test_greeting(self, agent):
        result = agent.process_turn("merhaba", "u1")
        assert result.intent == "greeting"
        assert result.confidence > 0.7
        assert result.entities == {}
        assert result.clarification_needed is False
        assert result.state is None
        assert result.suggestions

    def test_university_and_department_question(self, agent):
        result = agent.process_turn("Marmara Üniversitesi Bilgisayar Mühendisliği için kaç net gerekir?", "u1")
        assert result.intent == "net_calculation"
        assert result.entities["university"] == "Marmara Üniversitesi"
        assert result.entities["department"] == "Bilgisayar Mühendisliği"
        assert result.clarification_needed is True
        assert result.follow_up_questions == [
            "Hangi puan türü için hesaplama yapmalıyım? (SAY, EA, SÖZ, DIL)"
        ]

    def test_no_session_leaves_store_untouched(self, agent, store):
        agent.process_turn("ODTÜ bölümleri", "u1")
        assert len(store) == 0

    def test_empty_and_none_text(self, agent):
        for text in ("", None):
            result = agent.process_turn(text, "u1")
            assert result.intent == "clarification_needed"
            assert result.confidence == pytest.approx(0.5)
            assert result.entities == {}
            assert result.suggestions

    def test_fallback_suggestions_when_nothing_applies(self, agent):
        result = agent.process_turn("kaç net gerekli", "u1")
        assert result.intent == "net_calculation"
        assert result.suggestions == ["Yeni bir soru sorabilirsiniz", "Size nasıl yardımcı olabilirim?"]
        assert len(result.follow_up_questions) == 3

    def test_prior_entities_are_context_not_output_without_session(self, agent, store):
        result = agent.process_turn(
            "bilgi istiyorum",
            "u1",
            prior_entities={"university": "Ege Üniversitesi", "department": "Tıp"},
        )
        assert result.intent == "net_calculation"
        assert result.entities == {}
        assert result.follow_up_questions == [
            "Hangi puan türü için hesaplama yapmalıyım? (SAY, EA, SÖZ, DIL)"
        ]
        assert len(store) == 0

    def test_idempotent_without_session(self, agent):
        text = "İTÜ bil müh SAY taban puan"
        assert agent.process_turn(text, "u1") == agent.process_turn(text, "u1")


class TestSessionTurns:
    def test_entities_accumulate_across_turns(self, agent, store):
        first = agent.process_turn("Marmara Üniversitesi SAY için kaç net gerekli?", "u1", session_id="s1")
        assert first.intent == "net_calculation"
        assert first.clarification_needed is True
        assert first.follow_up_questions == ["Hangi bölüm için net hesaplama yapmak istiyorsunuz?"]
        assert first.state is ConversationState.GATHERING_INFO
        assert not store.has_required_entities("s1", "net_calculation")

        second = agent.process_turn("bilgisayar mühendisliği", "u1", session_id="s1")
        assert second.entities["university"] == "Marmara Üniversitesi"
        assert second.entities["department"] == "Bilgisayar Mühendisliği"
        assert second.entities["scoreType"] == "SAY"
        assert store.has_required_entities("s1", "net_calculation")
        assert second.state is ConversationState.COMPLETED

    def test_score_type_phrase_keeps_accumulated_university(self, agent):
        agent.process_turn("Marmara Üniversitesi bilgisayar mühendisliği kaç net", "u1", session_id="s7")
        result = agent.process_turn("hangi puan türü için", "u1", session_id="s7")
        assert result.entities["university"] == "Marmara Üniversitesi"
        assert result.entities["department"] == "Bilgisayar Mühendisliği"

    def test_prior_entities_seed_session_and_classification(self, agent, store):
        result = agent.process_turn(
            "bilgi istiyorum",
            "u1",
            session_id="s2",
            prior_entities={"university": "Ege Üniversitesi", "department": "Tıp"},
        )
        assert result.intent == "net_calculation"
        assert result.confidence == pytest.approx(0.6)
        assert result.entities == {"university": "Ege Üniversitesi", "department": "Tıp"}
        assert result.follow_up_questions == [
            "Hangi puan türü için hesaplama yapmalıyım? (SAY, EA, SÖZ, DIL)"
        ]

    def test_repeated_question_offers_help(self, agent):
        first = agent.process_turn("taban puan nedir", "u1", session_id="s3")
        assert first.help_offered is False

        second = agent.process_turn("Taban puan nedir?", "u1", session_id="s3")
        assert second.help_offered is True
        assert second.suggestions[0] == "Size nasıl yardımcı olabilirim? İşte yapabileceklerim:"

    def test_confusion_offers_help(self, agent):
        agent.process_turn("anlamadım", "u1", session_id="s4")
        agent.process_turn("bilmiyorum", "u1", session_id="s4")
        result = agent.process_turn("hmm", "u1", session_id="s4")
        assert result.help_offered is True
        assert len(result.suggestions) == 4

    def test_pass_throughs(self, agent, store):
        agent.process_turn("merhaba", "u1", session_id="s5")
        assert agent.record_bot_reply("s5", "Merhaba!") is True
        assert store.get("s5").latest_entry().bot_text == "Merhaba!"
        assert agent.summary("s5") == "Son konuşma: greeting"
        assert agent.stats()["total_sessions"] == 1
        assert agent.clear_session("s5") is True
        assert agent.summary("s5") == "Yeni konuşma başlatıldı."

    def test_sweep_pass_through(self, agent, clock):
        agent.process_turn("merhaba", "u1", session_id="s6")
        clock.advance(minutes=45)
        assert agent.sweep_expired() == 1


class TestFailures:
    def test_store_failure_degrades_to_stateless(self, clock):
        agent = AgentCore(store=BrokenStore(clock=clock))
        result = agent.process_turn("Marmara Üniversitesi taban puan", "u1", session_id="s1")
        assert result.intent == "base_score"
        assert result.entities["university"] == "Marmara Üniversitesi"
        assert result.state is None
        assert result.follow_up_questions == ["Hangi bölümün taban puanını merak ediyorsunuz?"]

    def test_intent_without_required_entity_row(self):
        with pytest.raises(LexiconConfigError):
            AgentCore(store=ContextStore(required_entities={"greeting": []}))
