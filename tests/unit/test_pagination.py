"""
Unit tests for the pagination cursor.

Tests the count probe, on-demand page fetching, termination and failure
behaviour against a scripted transport.
"""

import math
from functools import partial

import pytest

from helpers import FakeTransport, mk_stories, mk_story

from pivotal_client.models import Story
from pivotal_client.pagination import Cursor, StaleCountSnapshot, paged_request
from pivotal_client.runtime.codec import decode_entity
from pivotal_client.runtime.errors import APIError, DecodeError, TransportError

PATH = "projects/99/stories"


def make_cursor(transport, page_size, decoder=None, **params):
    return Cursor(transport, paged_request("GET", PATH, **params), page_size, decoder=decoder)


def story_ids(items):
    return [item["id"] for item in items]


@pytest.fixture
def transport():
    fake = FakeTransport()
    fake.collections[PATH] = mk_stories(7)
    return fake


class TestPagedRequest:
    """Tests for the offset/limit request factory."""

    def test_sets_offset_and_limit(self):
        factory = paged_request("GET", PATH, filter="state:started")
        request = factory(20, 10)
        assert request.method == "GET"
        assert request.path == PATH
        assert request.params == {"filter": "state:started", "offset": 20, "limit": 10}

    def test_drops_none_filters(self):
        request = paged_request("GET", PATH, filter=None, sort_order="asc")(0, 5)
        assert "filter" not in request.params
        assert request.params["sort_order"] == "asc"

    def test_factory_is_reinvocable(self):
        factory = paged_request("GET", PATH, filter="x")
        assert factory(0, 5) == factory(0, 5)
        assert factory(0, 5).params is not factory(0, 5).params


class TestCursorProbe:
    """Tests for the count probe issued at creation."""

    def test_probe_is_first_and_only_call(self, transport):
        cursor = make_cursor(transport, 3)
        assert transport.call_count == 1
        assert transport.calls[0].params == {"offset": 0, "limit": 0}
        assert cursor.total == 7

    def test_snapshot_is_recorded(self, transport):
        cursor = make_cursor(transport, 3)
        assert isinstance(cursor.snapshot, StaleCountSnapshot)
        assert cursor.snapshot.total == 7
        assert cursor.snapshot.taken_at is not None

    def test_missing_total_header(self):
        transport = FakeTransport()
        transport.resources[PATH] = []
        with pytest.raises(DecodeError):
            make_cursor(transport, 3)

    def test_probe_failure_raises_from_constructor(self, transport):
        transport.fail_on = {0}
        with pytest.raises(TransportError):
            make_cursor(transport, 3)

    def test_probe_api_error(self):
        transport = FakeTransport()
        with pytest.raises(APIError) as exc_info:
            make_cursor(transport, 3)
        assert exc_info.value.status_code == 404

    def test_negative_page_size(self, transport):
        with pytest.raises(ValueError):
            make_cursor(transport, -1)
        assert transport.call_count == 0


class TestCursorIteration:
    """Tests for item order and page accounting."""

    @pytest.mark.parametrize("count", [0, 1, 5, 13])
    @pytest.mark.parametrize("page_size", [1, 2, 3, 5, 10, 20])
    def test_all_and_next_agree(self, count, page_size):
        transport = FakeTransport()
        transport.collections[PATH] = mk_stories(count)

        drained = make_cursor(transport, page_size).all()

        stepped = []
        cursor = make_cursor(transport, page_size)
        while True:
            try:
                stepped.append(cursor.next())
            except StopIteration:
                break

        assert story_ids(drained) == list(range(1, count + 1))
        assert story_ids(stepped) == story_ids(drained)
        assert cursor.pages_fetched == math.ceil(count / page_size)

    def test_pages_are_fetched_on_demand(self, transport):
        cursor = make_cursor(transport, 3)
        assert cursor.next()["id"] == 1
        assert transport.call_count == 2
        cursor.next()
        cursor.next()
        assert transport.call_count == 2
        assert cursor.next()["id"] == 4
        assert transport.call_count == 3
        assert transport.calls[2].params == {"offset": 3, "limit": 3}

    def test_zero_page_size_fetches_everything_at_once(self, transport):
        items = make_cursor(transport, 0).all()
        assert story_ids(items) == list(range(1, 8))
        assert transport.call_count == 2
        assert transport.calls[1].params == {"offset": 0, "limit": 7}

    def test_zero_page_size_with_empty_collection(self):
        transport = FakeTransport()
        transport.collections[PATH] = []
        assert make_cursor(transport, 0).all() == []
        assert transport.call_count == 1

    def test_server_order_is_kept(self):
        transport = FakeTransport()
        transport.collections[PATH] = [mk_story(5), mk_story(3), mk_story(9), mk_story(1)]
        assert story_ids(make_cursor(transport, 3).all()) == [5, 3, 9, 1]

    def test_filter_is_passed_on_every_request(self, transport):
        make_cursor(transport, 4, filter="label:backend").all()
        assert all(call.params["filter"] == "label:backend" for call in transport.calls)

    def test_iterator_protocol(self, transport):
        cursor = make_cursor(transport, 2)
        assert iter(cursor) is cursor
        assert story_ids(list(cursor)) == list(range(1, 8))

    def test_exhausted_cursor_stays_exhausted(self, transport):
        cursor = make_cursor(transport, 4)
        cursor.all()
        calls = transport.call_count
        with pytest.raises(StopIteration):
            cursor.next()
        with pytest.raises(StopIteration):
            cursor.next()
        assert transport.call_count == calls

    def test_start_offset(self, transport):
        cursor = Cursor(transport, paged_request("GET", PATH), 3, start=4)
        assert transport.calls[0].params == {"offset": 0, "limit": 0}
        assert story_ids(cursor.all()) == [5, 6, 7]
        assert transport.calls[1].params == {"offset": 4, "limit": 3}

    def test_start_past_total(self, transport):
        cursor = Cursor(transport, paged_request("GET", PATH), 3, start=9)
        assert cursor.all() == []
        assert transport.call_count == 1

    def test_negative_start(self, transport):
        with pytest.raises(ValueError):
            Cursor(transport, paged_request("GET", PATH), 3, start=-1)
        assert transport.call_count == 0

    def test_decoder_is_applied(self, transport):
        cursor = make_cursor(transport, 3, decoder=Story.model_validate)
        story = cursor.next()
        assert isinstance(story, Story)
        assert story.id == 1


class TestCursorTermination:
    """Tests for the stale count snapshot and short page streams."""

    def test_fewer_items_than_reported(self):
        transport = FakeTransport()
        transport.collections[PATH] = mk_stories(4)
        transport.reported_totals[PATH] = 10

        items = make_cursor(transport, 3).all()

        assert story_ids(items) == [1, 2, 3, 4]
        # probe, [0:3], [3:6], [6:9] which is empty
        assert transport.call_count == 4

    def test_more_items_than_reported(self):
        transport = FakeTransport()
        transport.collections[PATH] = mk_stories(5)
        transport.reported_totals[PATH] = 2

        items = make_cursor(transport, 2).all()

        assert story_ids(items) == [1, 2]

    def test_snapshot_is_not_refreshed(self, transport):
        cursor = make_cursor(transport, 3)
        transport.collections[PATH] = mk_stories(2)
        assert story_ids(cursor.all()) == [1, 2]
        assert cursor.total == 7


class TestCursorFailures:
    """Tests for transport and decode failures during iteration."""

    def test_page_failure_stops_iteration(self, transport):
        # call 0 is the probe, call 1 the first page
        transport.fail_on = {2}
        cursor = make_cursor(transport, 2)

        assert cursor.next()["id"] == 1
        assert cursor.next()["id"] == 2
        with pytest.raises(TransportError):
            cursor.next()
        with pytest.raises(StopIteration):
            cursor.next()

    def test_non_array_page(self):
        transport = FakeTransport()
        transport.collections[PATH] = mk_stories(3)
        cursor = make_cursor(transport, 2)
        transport.collections.pop(PATH)
        transport.resources[PATH] = {"kind": "story", "id": 1}
        with pytest.raises(DecodeError):
            cursor.next()

    def test_bad_item_does_not_affect_neighbours(self):
        transport = FakeTransport()
        transport.collections[PATH] = [mk_story(1), [1, 2], mk_story(3)]
        cursor = make_cursor(transport, 3, decoder=partial(decode_entity, Story))

        assert cursor.next().id == 1
        with pytest.raises(DecodeError):
            cursor.next()
        assert cursor.next().id == 3
        with pytest.raises(StopIteration):
            cursor.next()
