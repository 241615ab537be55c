import httpx
import pytest

from growth_pilot.services import channel_resolver
from growth_pilot.services.errors import InvalidQueryError, NotFoundError, UpstreamUnavailableError

pytest_plugins = ("pytest_asyncio",)

CHANNEL_ID = "UC" + "A" * 22


class FakeDirectory:
    def __init__(self, channel_id: str = CHANNEL_ID) -> None:
        self.channel_id = channel_id
        self.calls: list[str] = []

    async def resolve_handle(self, handle: str) -> str:
        self.calls.append(handle)
        return self.channel_id


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_resolve_passes_through_raw_id() -> None:
    directory = FakeDirectory()
    resolved = await channel_resolver.resolve(f"  {CHANNEL_ID} ", directory)
    assert resolved == channel_resolver.ResolvedChannel(id=CHANNEL_ID)
    assert directory.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "query",
    [
        f"https://www.youtube.com/channel/{CHANNEL_ID}",
        f"https://www.youtube.com/channel/{CHANNEL_ID}/videos",
        f"youtube.com/channel/{CHANNEL_ID}",
        f"https://www.youtube.com/feeds/videos.xml?channel_id={CHANNEL_ID}",
    ],
)
async def test_resolve_extracts_id_from_urls(query: str) -> None:
    directory = FakeDirectory()
    resolved = await channel_resolver.resolve(query, directory)
    assert resolved.id == CHANNEL_ID
    assert resolved.handle is None
    assert directory.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("query", "handle"),
    [
        ("@examplechannel", "@examplechannel"),
        ("https://www.youtube.com/@examplechannel", "@examplechannel"),
        ("https://m.youtube.com/@examplechannel/videos", "@examplechannel"),
        ("youtube.com/c/examplechannel", "@examplechannel"),
        ("examplechannel", "@examplechannel"),
    ],
)
async def test_resolve_looks_up_handles(query: str, handle: str) -> None:
    directory = FakeDirectory()
    resolved = await channel_resolver.resolve(query, directory)
    assert resolved == channel_resolver.ResolvedChannel(id=CHANNEL_ID, handle=handle)
    assert directory.calls == [handle]


@pytest.mark.asyncio
@pytest.mark.parametrize("query", [None, "", "   "])
async def test_resolve_rejects_empty_query(query: str | None) -> None:
    with pytest.raises(InvalidQueryError, match="Provide a YouTube channel URL, handle, or ID"):
        await channel_resolver.resolve(query, FakeDirectory())


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "query",
    [
        "https://vimeo.com/@someone",
        "https://www.youtube.com/watch?v=abc123",
        "https://www.youtube.com/channel/not-an-id",
        "https://youtu.be/@examplechannel",
        "not a channel!",
    ],
)
async def test_resolve_rejects_malformed_queries(query: str) -> None:
    with pytest.raises(InvalidQueryError):
        await channel_resolver.resolve(query, FakeDirectory())


@pytest.mark.asyncio
async def test_resolve_rejects_directory_returning_garbage() -> None:
    with pytest.raises(NotFoundError):
        await channel_resolver.resolve("@demo", FakeDirectory(channel_id="nope"))


@pytest.mark.asyncio
async def test_directory_resolves_handle_with_api() -> None:
    channel_id = "UC" + "B" * 22

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/youtube/v3/channels"
        assert request.url.params["forHandle"] == "demo"
        assert request.url.params["part"] == "id"
        assert request.url.params["key"] == "dummy-key"
        return httpx.Response(200, json={"items": [{"id": channel_id}]})

    async with _client(handler) as client:
        directory = channel_resolver.YouTubeHandleDirectory(client, api_key="dummy-key")
        assert await directory.resolve_handle("@demo") == channel_id


@pytest.mark.asyncio
async def test_directory_handle_not_found_with_api() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"items": []})

    async with _client(handler) as client:
        directory = channel_resolver.YouTubeHandleDirectory(client, api_key="dummy-key")
        with pytest.raises(NotFoundError, match="@missing"):
            await directory.resolve_handle("@missing")


@pytest.mark.asyncio
async def test_directory_reads_channel_page_without_api_key() -> None:
    channel_id = "UC" + "C" * 22
    page = f'<html><head><link rel="canonical" href="https://www.youtube.com/channel/{channel_id}"></head></html>'

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/@demo"
        return httpx.Response(200, text=page)

    async with _client(handler) as client:
        directory = channel_resolver.YouTubeHandleDirectory(client)
        assert await directory.resolve_handle("@demo") == channel_id


@pytest.mark.asyncio
async def test_directory_page_404_is_not_found() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="not here")

    async with _client(handler) as client:
        directory = channel_resolver.YouTubeHandleDirectory(client)
        with pytest.raises(NotFoundError):
            await directory.resolve_handle("@missing")


@pytest.mark.asyncio
async def test_directory_http_error_is_upstream_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    async with _client(handler) as client:
        directory = channel_resolver.YouTubeHandleDirectory(client, api_key="dummy-key")
        with pytest.raises(UpstreamUnavailableError, match="Unable to contact YouTube"):
            await directory.resolve_handle("@demo")


@pytest.mark.asyncio
async def test_directory_rate_limit_is_upstream_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"error": "quota"})

    async with _client(handler) as client:
        directory = channel_resolver.YouTubeHandleDirectory(client, api_key="dummy-key")
        with pytest.raises(UpstreamUnavailableError):
            await directory.resolve_handle("@demo")


@pytest.mark.asyncio
async def test_resolve_short_links_are_video_links() -> None:
    with pytest.raises(InvalidQueryError, match="video link, not a channel link"):
        await channel_resolver.resolve("youtu.be/dQw4w9WgXcQ", FakeDirectory())
