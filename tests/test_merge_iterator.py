"""Test suite for the round-robin merge iterator."""

import json
import logging

import pytest

from metasearch.common.context import Context
from metasearch.search.merge import MergeIterator
from metasearch.search.token import MultiToken
from tests.test_utils import FakeIterator, drain


def merge(**iterators: FakeIterator) -> MergeIterator:
    """Merge iterator over keyword-named fakes, in argument order."""
    return MergeIterator(list(iterators.values()), list(iterators))


class TestRoundRobin:
    """Test fair interleaving of providers."""

    def test_interleaves_within_a_page(self):
        """Results alternate between providers until the shorter page runs out."""
        it = merge(a=FakeIterator([["a1", "a2"]]), b=FakeIterator([["b1", "b2", "b3"]]))

        assert drain(it) == ["a1", "b1", "a2", "b2", "b3"]
        assert not it.next()
        assert it.err is None

    def test_exhaustive_delivery(self):
        """Every result of every provider is delivered exactly once."""
        pages = {
            "a": [["a1", "a2"], ["a3"], ["a4", "a5"]],
            "b": [["b1"], ["b2", "b3", "b4"]],
            "c": [["c1", "c2", "c3"]],
        }
        it = merge(**{name: FakeIterator(p) for name, p in pages.items()})

        delivered = drain(it)

        expected = sorted(r for p in pages.values() for page in p for r in page)
        assert sorted(delivered) == expected
        assert len(delivered) == len(set(delivered))
        assert it.err is None

    def test_pages_advance_together(self):
        """No provider starts its next page before every page is consumed."""
        it = merge(a=FakeIterator([["a1"], ["a2"]]), b=FakeIterator([["b1", "b2", "b3"], ["b4"]]))

        assert drain(it) == ["a1", "b1", "b2", "b3", "a2", "b4"]

    def test_empty_merge_yields_nothing(self):
        """A merge without providers is simply empty."""
        it = MergeIterator()

        assert not it.next()
        assert it.result() is None
        assert it.token() is None
        assert it.err is None

    def test_provider_with_empty_first_page_is_dropped(self):
        """A provider without results leaves the merge at the first page."""
        it = merge(a=FakeIterator([[]]), b=FakeIterator([["b1"]]))

        assert it.next()
        assert it.result().title == "b1"
        assert it.provider_ids == ["b"]

    def test_iter_results(self):
        """The generator form yields the same order."""
        it = merge(a=FakeIterator([["a1", "a2"]]), b=FakeIterator([["b1"]]))

        assert [r.title for r in it.iter_results()] == ["a1", "b1", "a2"]

    def test_context_reaches_providers(self):
        """The caller's context is passed through to provider calls."""
        a = FakeIterator([["a1"]])
        it = merge(a=a)
        ctx = Context()

        it.next(ctx)

        assert a.contexts
        assert all(c is ctx for c in a.contexts)


class TestFailureIsolation:
    """Test that one failing provider does not stop the others."""

    def test_failing_provider_is_dropped(self):
        """A provider failing mid-page is dropped, the others continue."""
        a = FakeIterator([["a1", "a2"]], fail_at=1)
        b = FakeIterator([["b1", "b2"]])
        it = merge(a=a, b=b)

        assert drain(it) == ["a1", "b1", "b2"]
        assert it.err is None
        assert a.close_calls == 1

    def test_failed_page_fetch_is_dropped(self):
        """A provider failing to fetch a page is dropped without surfacing the error."""
        a = FakeIterator([["a1"], ["a2"]], fail_page=1)
        b = FakeIterator([["b1"], ["b2"]])
        it = merge(a=a, b=b)

        assert drain(it) == ["a1", "b1", "b2"]
        assert it.err is None
        assert it.provider_ids == []

    def test_error_is_logged(self, caplog: pytest.LogCaptureFixture):
        """Provider errors are logged with the provider ID."""
        it = merge(broken=FakeIterator([["x1", "x2"]], fail_at=0), ok=FakeIterator([["o1"]]))

        with caplog.at_level(logging.WARNING, logger="metasearch.search.merge"):
            assert drain(it) == ["o1"]

        assert "broken" in caplog.text

    def test_last_buffered_provider_failing_refills(self):
        """When the only provider with buffered results fails, the next page is fetched."""
        a = FakeIterator([["a1", "a2"]], fail_at=1)
        b = FakeIterator([["b1"], ["b2"]])
        it = merge(a=a, b=b)

        assert drain(it) == ["a1", "b1", "b2"]

    def test_all_providers_failing(self):
        """The merge ends cleanly when every provider fails."""
        it = merge(a=FakeIterator([["a1"]], fail_at=0), b=FakeIterator([["b1"]], fail_at=0))

        assert not it.next()
        assert it.err is None
        assert it.provider_ids == []


class TestPaging:
    """Test page-level operations."""

    def test_buffered_sums_providers(self):
        """Buffered counts every live provider's remaining page."""
        it = merge(a=FakeIterator([["a1", "a2"]]), b=FakeIterator([["b1", "b2", "b3"]]))
        assert it.buffered() == 0

        assert it.next_page()
        assert it.buffered() == 5

        it.next()
        assert it.buffered() == 4

    def test_next_page_drops_exhausted(self):
        """Providers without another page are removed by next_page."""
        it = merge(a=FakeIterator([["a1"]]), b=FakeIterator([["b1"], ["b2"]]))
        assert it.next_page()

        assert it.next_page()
        assert it.provider_ids == ["b"]

        assert not it.next_page()
        assert it.provider_ids == []

    def test_result_before_next(self):
        """There is no current result before the first next."""
        it = merge(a=FakeIterator([["a1"]]))

        assert it.result() is None
        assert it.next()
        assert it.result().title == "a1"


class TestClose:
    """Test resource release."""

    def test_close_closes_each_provider_once(self):
        """Close releases every live provider exactly once."""
        a = FakeIterator([["a1", "a2"]])
        b = FakeIterator([["b1", "b2"]])
        it = merge(a=a, b=b)
        it.next()

        it.close()
        it.close()

        assert a.close_calls == 1
        assert b.close_calls == 1
        assert not it.next()
        assert it.provider_ids == []

    def test_dropped_provider_not_closed_again(self):
        """A provider dropped while streaming is not closed a second time."""
        a = FakeIterator([["a1"]])
        b = FakeIterator([["b1", "b2"]])
        it = merge(a=a, b=b)
        assert drain(it) == ["a1", "b1", "b2"]

        it.close()

        assert a.close_calls == 1
        assert b.close_calls == 1

    def test_context_manager_closes(self):
        """Leaving a with block closes the merge."""
        a = FakeIterator([["a1"]])

        with merge(a=a) as it:
            it.next()

        assert a.close_calls == 1


class TestToken:
    """Test continuation token capture."""

    def test_token_lists_live_providers(self):
        """The token carries one sub-token per provider with results left."""
        it = merge(a=FakeIterator([["a1", "a2"]]), b=FakeIterator([["b1", "b2"]]))
        assert drain(it, 1) == ["a1"]

        token = MultiToken.decode(it.token())

        assert [p.id for p in token.provs] == ["a", "b"]
        assert json.loads(token.provs[0].tok) == {"page": 0, "pos": 1}
        assert token.cur == 1
        assert it.err is None

    def test_token_skips_exhausted_provider(self):
        """A provider with nothing left is absent and the cursor moves to the next entry."""
        it = merge(a=FakeIterator([["a1"]]), b=FakeIterator([["b1", "b2"]]))
        assert drain(it, 1) == ["a1"]

        token = MultiToken.decode(it.token())

        assert [p.id for p in token.provs] == ["b"]
        assert token.cur == 0

    def test_token_before_start(self):
        """A fresh merge resumes from the first provider."""
        it = merge(a=FakeIterator([["a1"]]), b=FakeIterator([["b1"]]))

        token = MultiToken.decode(it.token())

        assert token.cur == 0
        assert len(token.provs) == 2

    def test_token_after_exhaustion_is_none(self):
        """Nothing to resume once the stream is drained."""
        it = merge(a=FakeIterator([["a1"]]))
        drain(it)

        assert it.token() is None
        assert it.err is None

    def test_token_error_sets_err(self):
        """A provider error discovered while collecting sub-tokens becomes the merge error."""
        it = merge(a=FakeIterator([["a1", "a2"]], fail_token=True), b=FakeIterator([["b1", "b2"]]))
        drain(it, 1)

        token, err = it.checkpoint()

        assert token is not None
        assert [p.id for p in MultiToken.decode(token).provs] == ["b"]
        assert isinstance(err, RuntimeError)
        assert it.err is err

    def test_token_error_stops_stream(self):
        """Once reading the token failed, the merge yields nothing more."""
        it = merge(a=FakeIterator([["a1", "a2"]], fail_token=True), b=FakeIterator([["b1", "b2"]]))
        assert drain(it, 1) == ["a1"]

        it.token()

        assert it.err is not None
        assert drain(it) == []

    def test_merge_with_error_yields_nothing(self):
        """A merge created in an error state does not serve its providers."""
        a = FakeIterator([["a1"]])
        it = MergeIterator([a], ["a"], error=RuntimeError("resume failed"))

        assert not it.next()
        assert a.next_calls == 0
