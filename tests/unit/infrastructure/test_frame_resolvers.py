"""Tests for GenericFrameResolver, NativeTokenResolver and mode selection."""

from __future__ import annotations

import json
from typing import Any

import pytest

from vixresolver.domain.entities import RawCandidate
from vixresolver.domain.exceptions import ExtractionMiss, NetworkError
from vixresolver.infrastructure.config import ResolverConfig
from vixresolver.infrastructure.resolvers import (
    GenericFrameResolver,
    NativeTokenResolver,
    ResolverChain,
    select_mode,
)
from vixresolver.infrastructure.resolvers.base import (
    HOST_TOKEN,
    IN_PAGE_SCAN,
    INNER_FRAME_SCAN,
    NATIVE_TOKEN_SYNTHESIS,
    NESTED_FRAME_SCAN,
)

_BASE = "https://vixsrc.to"
_EMBED = "https://vixsrc.to/movie/786892?lang=it"


class FakeFetcher:
    """Serves canned pages; an Exception value is raised instead."""

    def __init__(self, pages: dict[str, Any]) -> None:
        self._pages = pages
        self.requests: list[tuple[str, dict[str, str]]] = []

    async def fetch_text(self, url: str, headers: dict[str, str] | None = None) -> str:
        self.requests.append((url, dict(headers or {})))
        page = self._pages.get(url)
        if page is None:
            raise NetworkError(url, status=404)
        if isinstance(page, Exception):
            raise page
        return page

    async def fetch_json(self, url: str, headers: dict[str, str] | None = None) -> Any:
        return json.loads(await self.fetch_text(url, headers))

    def headers_for(self, url: str) -> dict[str, str]:
        return next(h for u, h in self.requests if u == url)


class FakeHostToken:
    def __init__(self, result: list[RawCandidate] | Exception) -> None:
        self._result = result
        self.calls: list[str] = []

    async def resolve(self, frame_url: str) -> list[RawCandidate]:
        self.calls.append(frame_url)
        if isinstance(self._result, Exception):
            raise self._result
        return self._result


# ---------------------------------------------------------------------------
# Generic frame chain
# ---------------------------------------------------------------------------


class TestGenericFrameResolver:
    @pytest.mark.asyncio()
    async def test_in_page_candidates(self, resolver_config: ResolverConfig) -> None:
        html = '<script>p("https://cdn.x/1080p/index.m3u8")</script>'
        resolver = GenericFrameResolver(FakeFetcher({}), resolver_config)

        outcomes = await resolver.resolve(_EMBED, html)

        assert [o.strategy for o in outcomes] == [IN_PAGE_SCAN]
        cand = outcomes[0].candidates[0]
        assert cand.url == "https://cdn.x/1080p/index.m3u8"
        assert cand.referer == _EMBED

    @pytest.mark.asyncio()
    async def test_nested_and_inner_frames(
        self, resolver_config: ResolverConfig
    ) -> None:
        frame = "https://player.example/e/1"
        inner = "https://player.example/inner/1"
        fetcher = FakeFetcher(
            {
                frame: '<iframe src="/inner/1"></iframe>"https://cdn.y/720p/a.m3u8"',
                inner: '"https://cdn.y/480p/b.m3u8"',
            }
        )
        embed_html = f'<iframe src="{frame}"></iframe>'

        outcomes = await GenericFrameResolver(fetcher, resolver_config).resolve(
            _EMBED, embed_html
        )

        assert [o.strategy for o in outcomes] == [
            IN_PAGE_SCAN,
            NESTED_FRAME_SCAN,
            INNER_FRAME_SCAN,
        ]
        assert fetcher.headers_for(frame)["Referer"] == _EMBED
        assert fetcher.headers_for(inner)["Referer"] == frame
        assert outcomes[1].candidates[0].referer == frame
        assert outcomes[2].candidates[0].referer == inner

    @pytest.mark.asyncio()
    async def test_traversal_stops_after_inner_frame(
        self, resolver_config: ResolverConfig
    ) -> None:
        frame = "https://player.example/e/1"
        inner = "https://player.example/inner/1"
        deeper = "https://player.example/deeper/1"
        fetcher = FakeFetcher(
            {
                frame: f'<iframe src="{inner}"></iframe>',
                inner: f'<iframe src="{deeper}"></iframe>',
                deeper: '"https://cdn.z/1080p/x.m3u8"',
            }
        )

        await GenericFrameResolver(fetcher, resolver_config).resolve(
            _EMBED, f'<iframe src="{frame}"></iframe>'
        )

        assert deeper not in [u for u, _ in fetcher.requests]

    @pytest.mark.asyncio()
    async def test_frame_failure_keeps_other_candidates(
        self, resolver_config: ResolverConfig
    ) -> None:
        frame = "https://player.example/e/1"
        embed_html = (
            f'<iframe src="{frame}"></iframe>"https://cdn.x/1080p/index.m3u8"'
        )

        outcomes = await GenericFrameResolver(FakeFetcher({}), resolver_config).resolve(
            _EMBED, embed_html
        )

        assert outcomes[0].ok and len(outcomes[0].candidates) == 1
        assert outcomes[1].strategy == NESTED_FRAME_SCAN
        assert not outcomes[1].ok

    @pytest.mark.asyncio()
    async def test_only_first_frame_followed(
        self, resolver_config: ResolverConfig
    ) -> None:
        first = "https://player.example/e/1"
        second = "https://mirror.example/e/2"
        fetcher = FakeFetcher({first: "", second: '"https://cdn.m/720p/m.m3u8"'})
        embed_html = f'<iframe src="{first}"></iframe><iframe src="{second}"></iframe>'

        outcomes = await GenericFrameResolver(fetcher, resolver_config).resolve(
            _EMBED, embed_html
        )

        assert [o.strategy for o in outcomes] == [IN_PAGE_SCAN, NESTED_FRAME_SCAN]
        assert [u for u, _ in fetcher.requests] == [first]

    @pytest.mark.asyncio()
    async def test_unparseable_frame_src_keeps_in_page_candidates(
        self, resolver_config: ResolverConfig
    ) -> None:
        fetcher = FakeFetcher({})
        embed_html = '"https://cdn.example/1080p/index.m3u8" <iframe src="http://[::1/x">'

        outcomes = await GenericFrameResolver(fetcher, resolver_config).resolve(
            _EMBED, embed_html
        )

        assert [o.strategy for o in outcomes] == [IN_PAGE_SCAN]
        assert outcomes[0].candidates[0].url == "https://cdn.example/1080p/index.m3u8"
        assert fetcher.requests == []

    @pytest.mark.asyncio()
    async def test_unparseable_inner_frame_src_ignored(
        self, resolver_config: ResolverConfig
    ) -> None:
        frame = "https://player.example/e/1"
        fetcher = FakeFetcher(
            {frame: '<iframe src="http://[::1/x"></iframe>"https://cdn.y/720p/a.m3u8"'}
        )

        outcomes = await GenericFrameResolver(fetcher, resolver_config).resolve(
            _EMBED, f'<iframe src="{frame}"></iframe>'
        )

        assert [o.strategy for o in outcomes] == [IN_PAGE_SCAN, NESTED_FRAME_SCAN]
        assert outcomes[1].candidates[0].url == "https://cdn.y/720p/a.m3u8"

    @pytest.mark.asyncio()
    async def test_host_token_only_for_hinted_hosts(
        self, resolver_config: ResolverConfig
    ) -> None:
        plain = "https://player.example/e/1"
        host_token = FakeHostToken([])
        resolver = GenericFrameResolver(
            FakeFetcher({plain: ""}), resolver_config, host_token=host_token
        )

        await resolver.resolve(_EMBED, f'<iframe src="{plain}"></iframe>')

        assert host_token.calls == []

    @pytest.mark.asyncio()
    async def test_host_token_candidates_pooled(
        self, resolver_config: ResolverConfig
    ) -> None:
        frame = "https://rabbitstream.net/embed-4/Ab12Cd34"
        token_cand = RawCandidate(
            url="https://cdn.r/720/playlist.m3u8", label="720p", referer=frame
        )
        host_token = FakeHostToken([token_cand])
        resolver = GenericFrameResolver(
            FakeFetcher({frame: "<div></div>"}), resolver_config, host_token=host_token
        )

        outcomes = await resolver.resolve(
            _EMBED, f'<iframe src="{frame}"></iframe>"https://cdn.x/1080p/a.m3u8"'
        )

        assert host_token.calls == [frame]
        assert outcomes[-1].strategy == HOST_TOKEN
        assert outcomes[-1].candidates == (token_cand,)
        assert outcomes[0].candidates[0].url == "https://cdn.x/1080p/a.m3u8"

    @pytest.mark.asyncio()
    async def test_host_token_failure_recorded(
        self, resolver_config: ResolverConfig
    ) -> None:
        frame = "https://rabbitstream.net/embed-4/Ab12Cd34"
        host_token = FakeHostToken(ExtractionMiss("source id", frame))
        resolver = GenericFrameResolver(
            FakeFetcher({frame: ""}), resolver_config, host_token=host_token
        )

        outcomes = await resolver.resolve(_EMBED, f'<iframe src="{frame}"></iframe>')

        assert outcomes[-1].strategy == HOST_TOKEN
        assert isinstance(outcomes[-1].error, ExtractionMiss)


# ---------------------------------------------------------------------------
# Native token synthesis
# ---------------------------------------------------------------------------

_PLAYER = """\
<html><body><script>
window.masterPlaylist = {
    params: {'token': 'tok123', 'expires': '1767225600'},
    url: 'https://vixsrc.to/playlist/12345?b=1',
}
window.canPlayFHD = true
</script></body></html>
"""
_VERSION_PAGE = (
    "<div id=\"app\" data-page='"
    + json.dumps({"component": "RequestTitle", "version": "v42"})
    + "'></div>"
)


class TestNativeTokenResolver:
    @pytest.mark.asyncio()
    async def test_direct_embed(self, resolver_config: ResolverConfig) -> None:
        resolver = NativeTokenResolver(FakeFetcher({}), resolver_config)

        result = await resolver.resolve(_EMBED, _PLAYER)

        assert len(result) == 1
        assert result[0].url == (
            "https://vixsrc.to/playlist/12345?b=1&token=tok123&expires=1767225600&h=1"
        )
        assert result[0].label == "1080p"
        assert result[0].referer == _EMBED

    @pytest.mark.asyncio()
    async def test_frame_wrapper_uses_version_header(
        self, resolver_config: ResolverConfig
    ) -> None:
        wrapper_html = '<iframe src="/embed/12345?token=x"></iframe>'
        frame = "https://vixsrc.to/embed/12345?token=x"
        version_url = "https://vixsrc.to/request-a-title"
        fetcher = FakeFetcher(
            {
                version_url: _VERSION_PAGE,
                _EMBED: wrapper_html,
                frame: _PLAYER.replace("window.canPlayFHD = true", ""),
            }
        )

        result = await NativeTokenResolver(fetcher, resolver_config).resolve(
            _EMBED, wrapper_html
        )

        assert [u for u, _ in fetcher.requests] == [version_url, _EMBED, frame]
        wrapper_headers = fetcher.headers_for(_EMBED)
        assert wrapper_headers["X-Inertia"] == "true"
        assert wrapper_headers["X-Inertia-Version"] == "v42"
        assert fetcher.headers_for(frame)["Referer"] == _EMBED
        assert result[0].label == "Stream"
        assert result[0].referer == frame
        assert "h=1" not in result[0].url

    @pytest.mark.asyncio()
    async def test_missing_version_raises(self, resolver_config: ResolverConfig) -> None:
        fetcher = FakeFetcher({"https://vixsrc.to/request-a-title": "<div></div>"})
        with pytest.raises(ExtractionMiss, match="page version"):
            await NativeTokenResolver(fetcher, resolver_config).fetch_version()

    @pytest.mark.asyncio()
    async def test_missing_params_raises(self, resolver_config: ResolverConfig) -> None:
        resolver = NativeTokenResolver(FakeFetcher({}), resolver_config)
        with pytest.raises(ExtractionMiss):
            await resolver.resolve(_EMBED, "<script>window.canPlayFHD = true</script>")


# ---------------------------------------------------------------------------
# Mode selection and chain
# ---------------------------------------------------------------------------


class TestSelectMode:
    def test_explicit_policy_wins(self) -> None:
        assert select_mode("generic", _EMBED, _PLAYER, _BASE) == "generic"
        assert select_mode("native", _EMBED, "<p></p>", _BASE) == "native"

    def test_auto_player_script(self) -> None:
        assert select_mode("auto", _EMBED, _PLAYER, _BASE) == "native"

    def test_auto_same_host_wrapper(self) -> None:
        html = '<iframe src="/embed/12345"></iframe>'
        assert select_mode("auto", _EMBED, html, _BASE) == "native"

    def test_auto_foreign_frame(self) -> None:
        html = '<iframe src="https://rabbitstream.net/embed-4/x"></iframe>'
        assert select_mode("auto", _EMBED, html, _BASE) == "generic"

    def test_auto_plain_page(self) -> None:
        assert select_mode("auto", _EMBED, '"https://cdn/a.m3u8"', _BASE) == "generic"

    def test_auto_unparseable_frame_is_generic(self) -> None:
        html = '"https://cdn.example/1080p/index.m3u8" <iframe src="http://[::1/x">'
        assert select_mode("auto", _EMBED, html, _BASE) == "generic"


class TestResolverChain:
    @pytest.mark.asyncio()
    async def test_generic_pool(self, resolver_config: ResolverConfig) -> None:
        fetcher = FakeFetcher({_EMBED: '"https://cdn.x/720p/index.m3u8"'})

        result = await ResolverChain(fetcher, resolver_config).resolve(_EMBED)

        assert result.mode == "generic"
        assert [c.url for c in result.candidates] == ["https://cdn.x/720p/index.m3u8"]
        assert fetcher.headers_for(_EMBED) == {}

    @pytest.mark.asyncio()
    async def test_native_failure_is_recorded(
        self, resolver_config: ResolverConfig
    ) -> None:
        fetcher = FakeFetcher({_EMBED: "<script>window.canPlayFHD = true</script>"})

        result = await ResolverChain(fetcher, resolver_config).resolve(_EMBED)

        assert result.mode == "native"
        assert result.outcomes[0].strategy == NATIVE_TOKEN_SYNTHESIS
        assert not result.outcomes[0].ok
        assert result.candidates == []

    @pytest.mark.asyncio()
    async def test_embed_fetch_error_propagates(
        self, resolver_config: ResolverConfig
    ) -> None:
        with pytest.raises(NetworkError):
            await ResolverChain(FakeFetcher({}), resolver_config).resolve(_EMBED)

    @pytest.mark.asyncio()
    async def test_forced_generic_mode(self) -> None:
        config = ResolverConfig(resolution_mode="generic")
        fetcher = FakeFetcher({_EMBED: _PLAYER})

        result = await ResolverChain(fetcher, config).resolve(_EMBED)

        assert result.mode == "generic"
        assert result.outcomes[0].strategy == IN_PAGE_SCAN

    @pytest.mark.asyncio()
    async def test_unparseable_frame_src_resolves_in_page(
        self, resolver_config: ResolverConfig
    ) -> None:
        fetcher = FakeFetcher(
            {_EMBED: '"https://cdn.example/1080p/index.m3u8" <iframe src="http://[::1/x">'}
        )

        result = await ResolverChain(fetcher, resolver_config).resolve(_EMBED)

        assert result.mode == "generic"
        assert [c.url for c in result.candidates] == [
            "https://cdn.example/1080p/index.m3u8"
        ]
