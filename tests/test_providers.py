import httpx
import pytest

from aninegus_app.config import Settings
from aninegus_app.errors import TransportFailure, UnknownCategory
from aninegus_app.providers.catalog_api import CatalogApiProvider, listing_path
from aninegus_app.providers.jikan import JikanProvider
from aninegus_app.search.smart_search import build_providers


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _provider(cls, handler, **kwargs):
    options = {"rate_limit": 60000, "max_retries": 0, "retry_delay": 0.0}
    options.update(kwargs)
    return cls(client=_client(handler), **options)


@pytest.mark.asyncio
async def test_primary_search_builds_encoded_path():
    seen = []

    def handler(request: httpx.Request):
        seen.append(request.url)
        return httpx.Response(200, json={"results": [], "hasNextPage": False, "currentPage": 2})

    provider = _provider(CatalogApiProvider, handler, base_url="http://catalog.test/")
    payload = await provider.search("fate/stay night", 2)

    assert payload["currentPage"] == 2
    assert seen[0].raw_path == b"/api/search/fate%2Fstay%20night/2"
    assert seen[0].host == "catalog.test"


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [400, 404, 500, 503])
async def test_non_success_status_raises_transport_failure(status):
    provider = _provider(CatalogApiProvider, lambda request: httpx.Response(status))
    with pytest.raises(TransportFailure) as exc_info:
        await provider.search("naruto", 1)
    assert exc_info.value.status_code == status


@pytest.mark.asyncio
async def test_network_error_raises_transport_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    provider = _provider(CatalogApiProvider, handler)
    with pytest.raises(TransportFailure):
        await provider.search("naruto", 1)


@pytest.mark.asyncio
async def test_invalid_json_raises_transport_failure():
    provider = _provider(CatalogApiProvider, lambda request: httpx.Response(200, text="<html>oops</html>"))
    with pytest.raises(TransportFailure):
        await provider.search("naruto", 1)


@pytest.mark.asyncio
async def test_non_object_json_raises_transport_failure():
    provider = _provider(CatalogApiProvider, lambda request: httpx.Response(200, json=[1, 2, 3]))
    with pytest.raises(TransportFailure):
        await provider.search("naruto", 1)


@pytest.mark.asyncio
async def test_server_error_is_retried():
    responses = [httpx.Response(502), httpx.Response(429), httpx.Response(200, json={"data": []})]

    def handler(request):
        return responses.pop(0)

    provider = _provider(JikanProvider, handler, max_retries=2)
    assert await provider.search("bleach", 1) == {"data": []}
    assert responses == []


@pytest.mark.asyncio
async def test_client_error_is_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(404)

    provider = _provider(JikanProvider, handler, max_retries=3)
    with pytest.raises(TransportFailure):
        await provider.search("bleach", 1)
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_jikan_title_search_params():
    seen = []

    def handler(request):
        seen.append(request.url)
        return httpx.Response(200, json={"data": [], "pagination": {"has_next_page": False, "current_page": 1}})

    provider = _provider(JikanProvider, handler, base_url="https://jikan.test/v4")
    await provider.search("one piece", 3)

    assert seen[0].path == "/v4/anime"
    assert seen[0].params["q"] == "one piece"
    assert seen[0].params["page"] == "3"
    assert seen[0].params["limit"] == "20"


@pytest.mark.asyncio
async def test_jikan_genre_search_params():
    seen = []

    def handler(request):
        seen.append(request.url)
        return httpx.Response(200, json={"data": []})

    provider = _provider(JikanProvider, handler)
    await provider.search_by_genre(1)

    assert seen[0].params["genres"] == "1"
    assert seen[0].params["limit"] == "10"


@pytest.mark.asyncio
async def test_jikan_genres_parsed_and_bad_entries_skipped():
    body = {"data": [
        {"mal_id": 1, "name": "Action", "count": 5000},
        {"mal_id": "x", "name": "Broken"},
        {"mal_id": 4},
        "junk",
        {"mal_id": "22", "name": "Romance"},
    ]}
    provider = _provider(JikanProvider, lambda request: httpx.Response(200, json=body))
    genres = await provider.get_genres()
    assert [(g.id, g.name) for g in genres] == [(1, "Action"), (22, "Romance")]


@pytest.mark.asyncio
async def test_listing_uses_category_endpoint():
    seen = []

    def handler(request):
        seen.append(request.url.path)
        return httpx.Response(200, json={"results": [], "hasNextPage": False, "currentPage": 1})

    provider = _provider(CatalogApiProvider, handler)
    await provider.listing("top-airing", 4)
    await provider.listing("genre:slice-of-life", 2)

    assert seen == ["/api/top-airing/4", "/api/genre-search/slice-of-life/2"]


def test_listing_paths():
    assert listing_path("recent-episodes", 1) == "/api/recent-episodes/1/1"
    assert listing_path("movies", 5) == "/api/movies/5"
    assert listing_path("genre:action", 3) == "/api/genre-search/action/3"


@pytest.mark.parametrize("category", ["unknown", "genre:", ""])
def test_unknown_category(category):
    with pytest.raises(UnknownCategory):
        listing_path(category, 1)


@pytest.mark.asyncio
async def test_close_leaves_injected_client_open():
    client = _client(lambda request: httpx.Response(200, json={}))
    provider = CatalogApiProvider(client=client)
    await provider.close()
    assert not client.is_closed
    await client.aclose()


@pytest.mark.asyncio
async def test_primary_makes_a_single_attempt():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(503)

    provider = CatalogApiProvider(client=_client(handler), rate_limit=60000, retry_delay=0.0)
    with pytest.raises(TransportFailure) as exc:
        await provider.search("naruto", 1)
    assert exc.value.status_code == 503
    assert len(calls) == 1


def test_only_fallback_provider_retries():
    settings = Settings(jikan_max_retries=4)
    primary, fallback = build_providers(settings)
    assert primary.max_retries == 0
    assert fallback.max_retries == 4


@pytest.mark.asyncio
async def test_genre_list_skips_unusable_entries():
    payload = {"data": [{"mal_id": 1, "name": "Action"}, {"mal_id": 2, "name": 9}, "x", {"mal_id": "y", "name": "Z"}]}
    provider = _provider(JikanProvider, lambda request: httpx.Response(200, json=payload))
    assert [genre.name for genre in await provider.get_genres()] == ["Action"]

    provider = _provider(JikanProvider, lambda request: httpx.Response(200, json={"data": 3}))
    assert await provider.get_genres() == []
