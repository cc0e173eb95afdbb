"""
Tests for gemmie_markdown.pagination.

Covers:
  - Deep search payload detection
  - Lazy state creation, only for paginated messages
  - Bounds of next/prev/go_to
  - Change notifications
  - Integration with ChatStore as the message lookup
"""

from gemmie_markdown.pagination import (
    PaginationManager,
    is_deep_search_result,
    parse_deep_search_result,
)
from gemmie_markdown.storage import CHATS_KEY, ChatStore


def lookup_from(messages):
    """MessageLookup over a {(chat_id, index): response} dict."""
    return lambda chat_id, index: messages.get((chat_id, index))


# ========================================================================
# Payload detection
# ========================================================================


class TestDeepSearchDetection:
    def test_search_payload_detected(self, make_search_payload):
        payload = make_search_payload(3)
        assert is_deep_search_result(payload)
        result = parse_deep_search_result(payload)
        assert len(result.results) == 3
        assert result.results[1].title == "Result 1"

    def test_plain_text_is_not_paginated(self):
        assert not is_deep_search_result("Just an answer")
        assert not is_deep_search_result("")
        assert not is_deep_search_result(None)

    def test_json_without_results_is_not_paginated(self):
        assert not is_deep_search_result('{"answer": 42}')
        assert not is_deep_search_result('[1, 2, 3]')
        assert not is_deep_search_result('{"results": "nope"}')


# ========================================================================
# PaginationManager
# ========================================================================


class TestPaginationManager:
    def test_initial_state(self, make_search_payload):
        manager = PaginationManager(lookup_from({("c", 0): make_search_payload(3)}))
        state = manager.get_pagination("c", 0)
        assert (state.current_page, state.total_pages) == (0, 3)

    def test_bounds(self, make_search_payload):
        manager = PaginationManager(lookup_from({("c", 0): make_search_payload(3)}))

        assert not manager.prev_page("c", 0)
        assert manager.next_page("c", 0)
        assert manager.next_page("c", 0)
        assert manager.get_pagination("c", 0).current_page == 2
        assert not manager.next_page("c", 0)
        assert manager.get_pagination("c", 0).current_page == 2
        assert manager.prev_page("c", 0)
        assert manager.get_pagination("c", 0).current_page == 1

    def test_returned_state_is_a_copy(self, make_search_payload):
        manager = PaginationManager(lookup_from({("c", 0): make_search_payload(3)}))
        state = manager.get_pagination("c", 0)
        state.current_page = 2
        assert manager.get_pagination("c", 0).current_page == 0

    def test_non_paginated_message_creates_no_state(self):
        manager = PaginationManager(lookup_from({("c", 0): "plain answer"}))
        state = manager.get_pagination("c", 0)
        assert (state.current_page, state.total_pages) == (0, 0)
        assert not manager.next_page("c", 0)
        assert not manager.prev_page("c", 0)
        assert manager._states == {}

    def test_missing_chat_or_message(self, make_search_payload):
        manager = PaginationManager(lookup_from({("c", 0): make_search_payload(2)}))
        assert manager.get_pagination(None, 0).total_pages == 0
        assert manager.get_pagination("c", 5).total_pages == 0
        assert not manager.next_page(None, 0)

    def test_go_to_page(self, make_search_payload):
        manager = PaginationManager(lookup_from({("c", 0): make_search_payload(3)}))
        assert manager.go_to_page("c", 0, 2)
        assert not manager.go_to_page("c", 0, 2)
        assert not manager.go_to_page("c", 0, 3)
        assert not manager.go_to_page("c", 0, -1)
        assert manager.get_pagination("c", 0).current_page == 2

    def test_states_are_per_message(self, make_search_payload):
        manager = PaginationManager(lookup_from({
            ("c", 0): make_search_payload(3),
            ("c", 1): make_search_payload(2),
        }))
        manager.next_page("c", 0)
        assert manager.get_pagination("c", 1).current_page == 0

    def test_on_change_called_only_on_moves(self, make_search_payload):
        changes = []
        manager = PaginationManager(
            lookup_from({("c", 0): make_search_payload(2)}),
            on_change=lambda chat_id, index: changes.append((chat_id, index)),
        )
        manager.next_page("c", 0)
        manager.next_page("c", 0)
        assert changes == [("c", 0)]

    def test_current_result(self, make_search_payload):
        manager = PaginationManager(lookup_from({("c", 0): make_search_payload(3)}))
        manager.next_page("c", 0)
        assert manager.current_result("c", 0).title == "Result 1"
        assert manager.current_result("c", 9) is None

    def test_discard_chat(self, make_search_payload):
        manager = PaginationManager(lookup_from({("c", 0): make_search_payload(3)}))
        manager.next_page("c", 0)
        manager.discard_chat("c")
        assert manager.get_pagination("c", 0).current_page == 0

    def test_custom_predicate(self, make_search_payload):
        manager = PaginationManager(
            lookup_from({("c", 0): make_search_payload(3)}),
            is_paginated=lambda response: False,
        )
        assert manager.get_pagination("c", 0).total_pages == 0


class TestChatStoreLookup:
    def test_pagination_over_stored_chats(self, store, make_search_payload):
        store.set(CHATS_KEY, [{
            "id": "chat-1",
            "title": "Search",
            "messages": [
                {"prompt": "hi", "response": "hello"},
                {"prompt": "find", "response": make_search_payload(4)},
            ],
        }])
        chats = ChatStore(store)
        manager = PaginationManager(chats.message_response)

        assert manager.get_pagination("chat-1", 0).total_pages == 0
        assert manager.get_pagination("chat-1", 1).total_pages == 4
        assert manager.get_pagination("chat-2", 1).total_pages == 0
