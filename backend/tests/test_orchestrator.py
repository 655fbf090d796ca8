"""
ContentFetchOrchestrator 테스트

실제 네트워크/브라우저 대신 conftest의 FakeStrategy를 사용한다.
"""

import httpx
import pytest

from conftest import FakeStrategy, make_result

from app.services.clipper.errors import (
    ClipErrorCode,
    FetchError,
    FetchTimeoutError,
    ValidationError,
)
from app.services.clipper.orchestrator import ContentFetchOrchestrator
from app.services.clipper.schemas import GuardReason, PlatformTag


def _orchestrator(*strategies: FakeStrategy, **kwargs) -> ContentFetchOrchestrator:
    return ContentFetchOrchestrator(strategies=list(strategies), **kwargs)


class TestPlan:
    def test_render_platforms(self):
        orchestrator = _orchestrator(FakeStrategy("reader"), FakeStrategy("render"))

        for platform in (PlatformTag.THREADS, PlatformTag.INSTAGRAM, PlatformTag.TWITTER):
            assert [s.name for s in orchestrator.plan(platform)] == ["render", "reader"]

    def test_reader_platforms(self):
        orchestrator = _orchestrator(FakeStrategy("reader"), FakeStrategy("render"))

        for platform in (PlatformTag.WEB, PlatformTag.NAVER, PlatformTag.YOUTUBE):
            assert [s.name for s in orchestrator.plan(platform)] == ["reader", "render"]

    def test_plan_is_capped_at_two_attempts(self):
        orchestrator = _orchestrator(
            FakeStrategy("reader"), FakeStrategy("render"), FakeStrategy("archive")
        )

        assert [s.name for s in orchestrator.plan(PlatformTag.WEB)] == ["reader", "render"]


class TestFetch:
    @pytest.mark.asyncio
    async def test_primary_success(self):
        reader = FakeStrategy("reader", result=make_result())
        render = FakeStrategy("render", result=make_result(strategy="render"))

        result = await _orchestrator(reader, render).fetch("https://example.com/a")

        assert result.strategy == "reader"
        assert result.platform == PlatformTag.WEB
        assert len(reader.calls) == 1
        assert render.calls == []

    @pytest.mark.asyncio
    async def test_fallback_runs_exactly_once_then_fetch_error(self):
        reader = FakeStrategy("reader", error=httpx.ConnectError("connection refused"))
        render = FakeStrategy("render", error=RuntimeError("browser crashed"))
        archive = FakeStrategy("archive", result=make_result())

        with pytest.raises(FetchError) as exc_info:
            await _orchestrator(reader, render, archive).fetch("https://example.com/a")

        assert len(reader.calls) == 1
        assert len(render.calls) == 1
        assert archive.calls == []
        assert exc_info.value.code == ClipErrorCode.FETCH_FAILED
        assert exc_info.value.http_status == 502
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_fallback_result_is_used(self):
        render = FakeStrategy("render", error=RuntimeError("browser crashed"))
        reader = FakeStrategy("reader", result=make_result())

        result = await _orchestrator(reader, render).fetch("https://www.threads.net/@user/post/1")

        assert result.strategy == "reader"
        assert result.platform == PlatformTag.THREADS
        assert render.calls[0][1] == PlatformTag.THREADS

    @pytest.mark.asyncio
    async def test_final_url_redetection_overrides_initial_guess(self):
        final_url = "https://www.threads.net/@user/post/1"
        reader = FakeStrategy("reader", result=make_result(final_url=final_url))
        render = FakeStrategy("render")

        result = await _orchestrator(reader, render).fetch("https://bit.ly/x")

        assert reader.calls == [("https://bit.ly/x", PlatformTag.WEB)]
        assert result.fetched_with == PlatformTag.WEB
        assert result.platform == PlatformTag.THREADS
        assert result.final_url == final_url

    @pytest.mark.asyncio
    async def test_hint_selects_strategy_and_platform(self):
        reader = FakeStrategy("reader", result=make_result())
        render = FakeStrategy("render", result=make_result(strategy="render"))

        result = await _orchestrator(reader, render).fetch("https://example.com/a", hint="threads")

        assert result.strategy == "render"
        assert result.platform == PlatformTag.THREADS
        assert reader.calls == []

    @pytest.mark.asyncio
    async def test_empty_result_falls_back_and_prefers_content(self):
        reader = FakeStrategy("reader", result=make_result(text="   "))
        render = FakeStrategy("render", result=make_result(strategy="render"))

        result = await _orchestrator(reader, render).fetch("https://example.com/a")

        assert result.strategy == "render"
        assert len(reader.calls) == 1

    @pytest.mark.asyncio
    async def test_thin_result_is_returned_instead_of_error(self):
        reader = FakeStrategy("reader", result=make_result(text=""))
        render = FakeStrategy("render", error=RuntimeError("browser crashed"))

        result = await _orchestrator(reader, render).fetch("https://example.com/a")

        assert result.strategy == "reader"
        assert result.is_empty

    @pytest.mark.asyncio
    async def test_validation_error_is_not_retried(self):
        reader = FakeStrategy(
            "reader",
            error=ValidationError("http://127.0.0.1/", GuardReason.PRIVATE_ADDRESS),
        )
        render = FakeStrategy("render", result=make_result())

        with pytest.raises(ValidationError):
            await _orchestrator(reader, render).fetch("https://example.com/redirects-inward")

        assert render.calls == []

    @pytest.mark.asyncio
    async def test_invalid_url_makes_no_attempt(self):
        reader = FakeStrategy("reader", result=make_result())
        render = FakeStrategy("render", result=make_result())

        with pytest.raises(ValidationError) as exc_info:
            await _orchestrator(reader, render).fetch("http://169.254.169.254/latest/meta-data/")

        assert exc_info.value.reason == GuardReason.BLOCKED_HOSTNAME
        assert reader.calls == []
        assert render.calls == []


class TestTimeouts:
    @pytest.mark.asyncio
    async def test_slow_primary_times_out_and_falls_back(self):
        reader = FakeStrategy("reader", result=make_result(), delay=1.0)
        render = FakeStrategy("render", result=make_result(strategy="render"))

        result = await _orchestrator(reader, render, attempt_timeout=0.05).fetch(
            "https://example.com/a"
        )

        assert result.strategy == "render"

    @pytest.mark.asyncio
    async def test_both_time_out(self):
        reader = FakeStrategy("reader", result=make_result(), delay=1.0)
        render = FakeStrategy("render", result=make_result(), delay=1.0)

        with pytest.raises(FetchTimeoutError) as exc_info:
            await _orchestrator(reader, render, attempt_timeout=0.05).fetch("https://example.com/a")

        assert exc_info.value.code == ClipErrorCode.TIMEOUT
        assert exc_info.value.http_status == 504
        assert len(reader.calls) == 1
        assert len(render.calls) == 1

    @pytest.mark.asyncio
    async def test_total_budget_bounds_all_attempts(self):
        reader = FakeStrategy("reader", result=make_result(), delay=1.0)
        render = FakeStrategy("render", result=make_result(), delay=1.0)

        with pytest.raises(FetchTimeoutError):
            await _orchestrator(
                reader, render, attempt_timeout=5.0, total_budget=0.05
            ).fetch("https://example.com/a")

        assert len(reader.calls) == 1
