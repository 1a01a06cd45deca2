"""
Tests for the in-memory conversation context store.
"""

import threading

from tercih_dialogue.conversation_state import ConversationState
from tercih_dialogue.memory_store import ContextStore


class TestLifecycle:
    def test_get_or_create_is_idempotent(self, store):
        first = store.get_or_create("s1", "u1")
        second = store.get_or_create("s1", "someone-else")
        assert first is second
        assert second.user_id == "u1"
        assert len(store) == 1
        assert "s1" in store

    def test_new_session_starts_initial(self, store):
        ctx = store.get_or_create("s1", "u1")
        assert ctx.state is ConversationState.INITIAL
        assert store.get_state("s1") is ConversationState.INITIAL
        assert len(ctx.entries) == 0

    def test_seed_entities_only_apply_on_creation(self, store):
        store.get_or_create("s1", "u1", seed_entities={"scoreType": "SAY", "language": None})
        store.get_or_create("s1", "u1", seed_entities={"scoreType": "EA"})
        assert store.get_accumulated_entities("s1") == {"scoreType": "SAY"}

    def test_get_does_not_create(self, store):
        assert store.get("missing") is None
        assert len(store) == 0

    def test_clear(self, store):
        store.get_or_create("s1", "u1")
        assert store.clear("s1") is True
        assert "s1" not in store
        assert store.clear("s1") is False

    def test_recreated_after_clear_starts_over(self, store):
        store.get_or_create("s1", "u1")
        store.add_entry("s1", "department_search", {"university": "Ege Üniversitesi"}, "ege")
        store.clear("s1")
        ctx = store.get_or_create("s1", "u1")
        assert ctx.state is ConversationState.INITIAL
        assert store.get_accumulated_entities("s1") == {}


class TestEntries:
    def test_accumulates_across_turns(self, store):
        store.get_or_create("s1", "u1")
        store.add_entry(
            "s1", "net_calculation", {"university": "Marmara Üniversitesi", "scoreType": "SAY"}, "marmara say"
        )
        assert not store.has_required_entities("s1", "net_calculation")
        assert store.get_missing_entities("s1", "net_calculation") == ["department"]

        store.add_entry("s1", "net_calculation", {"department": "Bilgisayar Mühendisliği"}, "bilgisayar mühendisliği")
        accumulated = store.get_accumulated_entities("s1")
        assert accumulated["university"] == "Marmara Üniversitesi"
        assert accumulated["department"] == "Bilgisayar Mühendisliği"
        assert store.has_required_entities("s1", "net_calculation")
        assert store.get_state("s1") is ConversationState.COMPLETED

    def test_history_is_bounded(self, store):
        store.get_or_create("s1", "u1")
        for i in range(15):
            store.add_entry("s1", "greeting", {f"k{i}": i}, f"mesaj {i}")

        ctx = store.get("s1")
        assert len(ctx.entries) == 10
        assert ctx.entries[0].user_text == "mesaj 5"
        assert set(store.get_accumulated_entities("s1")) == {f"k{i}" for i in range(15)}

    def test_last_write_wins_and_none_is_ignored(self, store):
        store.get_or_create("s1", "u1")
        store.add_entry("s1", "department_search", {"university": "Ege Üniversitesi"}, "ege")
        store.add_entry("s1", "department_search", {"university": "Gazi Üniversitesi"}, "gazi")
        store.add_entry("s1", "department_search", {"university": None}, "bilmiyorum")
        assert store.get_accumulated_entities("s1") == {"university": "Gazi Üniversitesi"}

    def test_accumulated_entities_are_a_copy(self, store):
        store.get_or_create("s1", "u1")
        store.add_entry("s1", "greeting", {"scoreType": "SAY"}, "say")
        store.get_accumulated_entities("s1")["scoreType"] = "EA"
        assert store.get_accumulated_entities("s1") == {"scoreType": "SAY"}

    def test_state_never_regresses(self, store):
        store.get_or_create("s1", "u1")
        turns = [
            ("greeting", {}),
            ("department_search", {"university": "Ege Üniversitesi"}),
            ("clarification_needed", {}),
            ("net_calculation", {}),
            ("greeting", {}),
        ]
        ranks = []
        for intent, entities in turns:
            state = store.add_entry("s1", intent, entities, intent)
            ranks.append(state.rank)
        assert ranks == sorted(ranks)

    def test_update_latest_bot_text(self, store, clock):
        store.get_or_create("s1", "u1")
        assert store.update_latest_bot_text("s1", "Merhaba!") is False

        store.add_entry("s1", "greeting", {}, "merhaba")
        clock.advance(seconds=5)
        assert store.update_latest_bot_text("s1", "Merhaba! Size nasıl yardımcı olabilirim?") is True

        ctx = store.get("s1")
        assert ctx.latest_entry().bot_text == "Merhaba! Size nasıl yardımcı olabilirim?"
        assert ctx.last_activity == clock.now


class TestUnknownSession:
    def test_reads_return_empty_values(self, store):
        assert store.add_entry("nope", "greeting", {}, "merhaba") is None
        assert store.get_accumulated_entities("nope") == {}
        assert store.has_required_entities("nope", "department_search") is False
        assert store.get_missing_entities("nope", "base_score") == ["university", "department"]
        assert store.recent_user_texts("nope", 3) == []
        assert store.is_repeating("nope", "merhaba") is False
        assert store.get_state("nope") is None
        assert store.snapshot("nope") is None
        assert store.update_latest_bot_text("nope", "x") is False


class TestExpiry:
    def test_idle_session_is_swept(self, store, clock):
        store.get_or_create("s1", "u1")
        store.add_entry("s1", "department_search", {"university": "Ege Üniversitesi"}, "ege")

        clock.advance(minutes=31)
        assert store.sweep_expired() == 1
        assert store.get_accumulated_entities("s1") == {}
        assert "s1" not in store

    def test_recent_activity_keeps_session(self, store, clock):
        store.get_or_create("idle", "u1")
        store.get_or_create("busy", "u2")

        clock.advance(minutes=20)
        store.add_entry("busy", "greeting", {}, "merhaba")
        clock.advance(minutes=15)

        assert store.sweep_expired() == 1
        assert "idle" not in store
        assert "busy" in store

    def test_explicit_now(self, store, clock):
        store.get_or_create("s1", "u1")
        assert store.sweep_expired(clock.now) == 0


class TestRepetition:
    def test_same_normalized_text_repeats(self, store):
        store.get_or_create("s1", "u1")
        assert store.is_repeating("s1", "Kaç net gerekli?") is False

        store.add_entry("s1", "net_calculation", {}, "Kaç net gerekli?")
        assert store.is_repeating("s1", "kaç net gerekli") is True

    def test_only_last_three_turns_count(self, store):
        store.get_or_create("s1", "u1")
        store.add_entry("s1", "net_calculation", {}, "kaç net gerekli")
        for text in ("merhaba", "teşekkürler", "yardım"):
            store.add_entry("s1", "greeting", {}, text)
        assert store.is_repeating("s1", "kaç net gerekli") is False

    def test_empty_text_never_repeats(self, store):
        store.get_or_create("s1", "u1")
        store.add_entry("s1", "clarification_needed", {}, "")
        assert store.is_repeating("s1", "") is False


class TestSummaryAndStats:
    def test_summary_of_new_session(self, store):
        store.get_or_create("s1", "u1")
        assert store.get_summary("s1") == "Yeni konuşma başlatıldı."

    def test_summary_lists_recent_intents(self, store):
        store.get_or_create("s1", "u1")
        store.add_entry("s1", "greeting", {}, "merhaba")
        store.add_entry("s1", "department_search", {"university": "Ege Üniversitesi"}, "ege bölümleri")
        assert store.get_summary("s1") == (
            "Son konuşma: greeting → department_search (university belirtildi)"
        )

    def test_stats(self, store, clock):
        assert store.get_stats() == {"total_sessions": 0, "average_entries": 0.0, "oldest_session": None}

        start = clock.now
        store.get_or_create("s1", "u1")
        clock.advance(minutes=1)
        store.get_or_create("s2", "u2")
        store.add_entry("s2", "greeting", {}, "merhaba")
        store.add_entry("s2", "greeting", {}, "selam")

        stats = store.get_stats()
        assert stats["total_sessions"] == 2
        assert stats["average_entries"] == 1.0
        assert stats["oldest_session"] == start

    def test_snapshot_uses_wire_aliases(self, store):
        store.get_or_create("s1", "u1")
        store.add_entry("s1", "department_search", {"university": "Ege Üniversitesi"}, "ege")
        payload = store.snapshot("s1").model_dump(by_alias=True)
        assert payload["sessionId"] == "s1"
        assert payload["entryCount"] == 1
        assert payload["lastIntent"] == "department_search"
        assert payload["state"] == ConversationState.PROCESSING


class TestConcurrency:
    def test_parallel_turns_on_one_session(self, store):
        store.get_or_create("shared", "u1")

        def worker(n):
            for i in range(20):
                store.add_entry("shared", "greeting", {f"w{n}": i}, f"{n}-{i}")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        ctx = store.get("shared")
        assert len(ctx.entries) == 10
        assert store.get_accumulated_entities("shared") == {f"w{n}": 19 for n in range(8)}

    def test_parallel_sessions_with_sweeps(self, clock):
        store = ContextStore(expiry_minutes=30, clock=clock)
        errors = []

        def worker(n):
            try:
                for i in range(20):
                    session_id = f"s{n}-{i % 3}"
                    store.get_or_create(session_id, f"u{n}")
                    store.add_entry(session_id, "greeting", {}, "merhaba")
                    store.sweep_expired()
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(store) == 18
