import asyncio

import pytest

from aninegus_app.errors import TransportFailure
from aninegus_app.streams.search_session import SearchSession, SEARCH_FAILED_MESSAGE

from conftest import (
    FakeJikan,
    FakePrimary,
    catalog_item,
    catalog_payload,
    jikan_payload,
    jikan_item,
    make_context,
)


def _paged_primary():
    pages = {
        ("naruto", 1): catalog_payload([catalog_item("a", "Naruto A"), catalog_item("b", "Naruto B")],
                                       has_next=True, current=1),
        ("naruto", 2): catalog_payload([catalog_item("b", "Naruto B (refreshed)"), catalog_item("c", "Naruto C")],
                                       has_next=False, current=2),
    }
    return FakePrimary(pages)


@pytest.mark.asyncio
async def test_keystrokes_are_debounced_into_one_search():
    primary = FakePrimary()
    session = SearchSession(make_context(primary), debounce=0.5)

    session.on_input("n")
    await asyncio.sleep(0.1)
    session.on_input("naruto")
    await asyncio.sleep(0.7)
    await session.settle()

    assert primary.calls == [("naruto", 1)]


@pytest.mark.asyncio
async def test_load_more_accumulates_pages():
    session = SearchSession(make_context(_paged_primary()))

    first = await session.submit("naruto")
    assert first.ids == ("a", "b")
    assert first.has_more is True
    assert first.loading is False

    second = await session.load_more()
    assert second.ids == ("a", "b", "c")
    assert second.items[1].title == "Naruto B (refreshed)"
    assert second.has_more is False

    # Nothing more to load
    assert (await session.load_more()).ids == ("a", "b", "c")


@pytest.mark.asyncio
async def test_new_query_replaces_results():
    primary = _paged_primary()
    primary.payloads[("bleach", 1)] = catalog_payload([catalog_item("x", "Bleach")])
    session = SearchSession(make_context(primary))

    await session.submit("naruto")
    await session.load_more()
    view = await session.submit("bleach")

    assert view.ids == ("x",)


@pytest.mark.asyncio
async def test_empty_query_surfaces_inline_error_without_network_call():
    primary = _paged_primary()
    session = SearchSession(make_context(primary))
    await session.submit("naruto")

    view = await session.submit("   ")

    assert view.error == "Empty search query"
    assert view.ids == ()
    assert primary.calls == [("naruto", 1)]


@pytest.mark.asyncio
async def test_fallback_failure_on_first_page_clears_list():
    primary = _paged_primary()
    session = SearchSession(make_context(primary, FakeJikan(title_error=TransportFailure("down"))))
    await session.submit("naruto")

    primary.error = TransportFailure("HTTP 500", status_code=500)
    view = await session.submit("naruto")

    assert view.error == SEARCH_FAILED_MESSAGE
    assert view.ids == ()


@pytest.mark.asyncio
async def test_fallback_failure_on_later_page_keeps_list():
    primary = _paged_primary()
    session = SearchSession(make_context(primary, FakeJikan(title_error=TransportFailure("down"))))
    await session.submit("naruto")

    primary.error = TransportFailure("HTTP 500", status_code=500)
    view = await session.load_more()

    assert view.error == SEARCH_FAILED_MESSAGE
    assert view.ids == ("a", "b")


@pytest.mark.asyncio
async def test_superseded_search_never_reaches_display():
    def payloads(query, page):
        return catalog_payload([catalog_item(query, query.title())])

    class SlowFirst(FakePrimary):
        async def search(self, query, page=1):
            if query == "slow":
                await asyncio.sleep(0.2)
            return await super().search(query, page)

    session = SearchSession(make_context(SlowFirst(payloads)))

    slow = asyncio.ensure_future(session.submit("slow"))
    await asyncio.sleep(0.01)
    assert session.view.loading is True
    fast_view = await session.submit("fast")
    await slow

    assert fast_view.ids == ("fast",)
    assert session.view.ids == ("fast",)
    assert session.view.error is None
    assert session.view.loading is False


@pytest.mark.asyncio
async def test_genre_filter_reruns_first_page():
    primary = FakePrimary({("mix", 1): catalog_payload([
        catalog_item("r", "Mix Romance", genres=["Romance"]),
        catalog_item("a", "Mix Action", genres=["Action", "Drama"]),
        catalog_item("n", "Mix None"),
    ])})
    session = SearchSession(make_context(primary))
    await session.submit("mix")

    view = await session.toggle_genre("Action")
    assert view.ids == ("a",)
    assert primary.calls == [("mix", 1), ("mix", 1)]

    view = await session.toggle_genre("Action")
    assert view.ids == ("r", "a", "n")


@pytest.mark.asyncio
async def test_fallback_results_displayed():
    primary = FakePrimary(error=TransportFailure("HTTP 500", status_code=500))
    fallback = FakeJikan(title_payloads={("xyz123", 1): jikan_payload([
        jikan_item(1, "Alpha", members=500),
        jikan_item(2, "Beta", members=900),
    ])})
    session = SearchSession(make_context(primary, fallback))

    view = await session.submit("xyz123")

    assert view.ids == ("2", "1")
    assert view.error is None


@pytest.mark.asyncio
async def test_close_cancels_pending_input_and_search():
    primary = FakePrimary(delay=10)
    session = SearchSession(make_context(primary), debounce=0.05)

    in_flight = asyncio.ensure_future(session.submit("naruto"))
    await asyncio.sleep(0.01)
    session.on_input("bleach")
    session.close()
    view = await in_flight
    await asyncio.sleep(0.1)

    assert view.ids == ()
    assert primary.calls == [("naruto", 1)]
    assert session.tracker.current("search") is None
