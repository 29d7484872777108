"""Tests for RatingPipeline.

Tests verify:
- Stage sequencing and the audit report
- Concurrent platform refresh bounded by max_concurrent_fetches
- Partial failure: unavailable, timed-out and unsupported platforms keep
  their existing metrics without aborting the evaluation
- Verification refresh from the raw payload
- Scores stay within [0, 100]
- Steady-state repeatability and one snapshot per evaluation
- The incoming figure is never modified

Testing approach uses an in-process capability table with mocked fetchers.
"""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from rating_system.data_management.schemas import (
    Figure,
    PlatformKind,
    PlatformMetrics,
    PlatformPresence,
)
from rating_system.exceptions import DataUnavailableError, PipelineStateError
from rating_system.pipelines import EvaluationReport, PipelineStage, RatingPipeline
from rating_system.platforms import PlatformCapability, PlatformRegistry
from rating_system.platforms.rules import normalize_github, normalize_twitter
from rating_system.scoring import AntiManipulationDetector, TrendAnalyzer
from rating_system.sources import StaticTrendSource

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


# ============================================================
# Fixtures
# ============================================================


def twitter_payload(followers=1000, likes=40, verified=True):
    return {
        "data": {
            "created_at": "2019-06-01T00:00:00Z",
            "verified": verified,
            "public_metrics": {
                "followers_count": followers,
                "retweet_count": 5,
                "reply_count": 5,
                "like_count": likes,
            },
        }
    }


def github_payload(followers=300):
    return {"login": "ada", "followers": followers, "created_at": "2014-06-01T00:00:00Z"}


def make_registry(twitter_fetch=None, github_fetch=None):
    return PlatformRegistry({
        PlatformKind.TWITTER: PlatformCapability(
            normalize=normalize_twitter,
            fetch=twitter_fetch or AsyncMock(return_value=twitter_payload()),
        ),
        PlatformKind.GITHUB: PlatformCapability(
            normalize=normalize_github,
            fetch=github_fetch or AsyncMock(return_value=github_payload()),
        ),
    })


def make_pipeline(registry=None, **kwargs):
    kwargs.setdefault("trend_analyzer", TrendAnalyzer(StaticTrendSource()))
    return RatingPipeline(
        registry=registry or make_registry(),
        clock=lambda: NOW,
        **kwargs,
    )


@pytest.fixture
def figure():
    return Figure(
        id="fig_pipeline",
        name="Ada Lovelace",
        professions={"mathematician"},
        platforms=[
            PlatformPresence(platform=PlatformKind.TWITTER, handle="ada"),
            PlatformPresence(platform=PlatformKind.GITHUB, handle="ada"),
        ],
    )


# ============================================================
# Stage machine
# ============================================================


class TestStages:
    """Tests for stage sequencing."""

    @pytest.mark.asyncio
    async def test_runs_every_stage_in_order(self, figure):
        """A completed evaluation passes through every stage once."""
        result = await make_pipeline().evaluate(figure)

        assert result.report.stages == list(PipelineStage)
        assert result.report.stage == PipelineStage.FINALIZED
        assert result.report.finished_at == NOW

    @pytest.mark.asyncio
    async def test_default_trend_analyzer_shares_clock(self, figure):
        """The built-in trend stage stamps its cache with the pipeline clock."""
        pipeline = RatingPipeline(registry=make_registry(), clock=lambda: NOW)
        result = await pipeline.evaluate(figure)
        assert result.figure.metadata["trend_analysis"]["date"] == NOW.isoformat()

    def test_skipping_a_stage_raises(self):
        """Jumping ahead raises PipelineStateError."""
        report = EvaluationReport(figure_id="fig_x")
        with pytest.raises(PipelineStateError):
            report.advance(PipelineStage.BASE_SCORED)

    def test_repeating_a_stage_raises(self):
        """Re-entering the current stage raises PipelineStateError."""
        report = EvaluationReport(figure_id="fig_x")
        report.advance(PipelineStage.METRICS_FETCHED)
        with pytest.raises(PipelineStateError):
            report.advance(PipelineStage.METRICS_FETCHED)

    def test_no_stage_after_finalized(self):
        """FINALIZED is terminal."""
        report = EvaluationReport(figure_id="fig_x")
        for stage in list(PipelineStage)[1:]:
            report.advance(stage)
        with pytest.raises(PipelineStateError):
            report.advance(PipelineStage.FINALIZED)

    @pytest.mark.asyncio
    async def test_report_to_dict(self, figure):
        """The report summarizes the evaluation."""
        result = await make_pipeline().evaluate(figure)
        summary = result.report.to_dict()

        assert summary["figure_id"] == "fig_pipeline"
        assert summary["stage"] == "finalized"
        assert summary["platforms_updated"] == 2
        assert summary["platforms_failed"] == 0
        assert summary["is_manipulated"] is False


# ============================================================
# Metrics fetch
# ============================================================


class TestMetricsFetch:
    """Tests for the concurrent platform refresh."""

    @pytest.mark.asyncio
    async def test_metrics_and_verification_refreshed(self, figure):
        """Fetched payloads are normalized and verification is refreshed."""
        updated = await make_pipeline().evaluate_figure(figure)

        twitter = updated.get_platform(PlatformKind.TWITTER)
        github = updated.get_platform(PlatformKind.GITHUB)
        assert twitter.metrics.followers == 1000
        assert twitter.metrics.engagement == 5.0
        assert twitter.verified is True
        assert twitter.last_updated == NOW
        assert github.metrics.followers == 300
        assert github.verified is False

    @pytest.mark.asyncio
    async def test_platform_order_preserved(self, figure):
        """Fan-in keeps the original platform order."""
        async def slow_twitter(handle):
            await asyncio.sleep(0.05)
            return twitter_payload()

        pipeline = make_pipeline(make_registry(twitter_fetch=slow_twitter))
        updated = await pipeline.evaluate_figure(figure)

        assert [p.platform for p in updated.platforms] == [PlatformKind.TWITTER, PlatformKind.GITHUB]

    @pytest.mark.asyncio
    async def test_concurrency_bounded(self, figure):
        """No more than max_concurrent_fetches run at once."""
        in_flight = 0
        peak = 0

        async def tracked(handle):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return github_payload()

        registry = PlatformRegistry({
            kind: PlatformCapability(normalize=normalize_github, fetch=tracked)
            for kind in (PlatformKind.GITHUB, PlatformKind.REDDIT, PlatformKind.TWITCH, PlatformKind.KICK)
        })
        many = Figure(
            name="Ada",
            platforms=[PlatformPresence(platform=kind, handle="ada") for kind in registry.supported_kinds],
        )

        await make_pipeline(registry, max_concurrent_fetches=2).evaluate(many)

        assert peak == 2

    @pytest.mark.asyncio
    async def test_unavailable_platform_keeps_stale_metrics(self, figure):
        """A failed fetch keeps the platform's previous metrics."""
        stale = PlatformMetrics(followers=77, engagement=3.0, longevity_days=100)
        figure = figure.model_copy(update={
            "platforms": [
                figure.platforms[0],
                figure.platforms[1].model_copy(update={"metrics": stale}),
            ]
        })
        github_fetch = AsyncMock(side_effect=DataUnavailableError("rate limited", platform="github"))

        result = await make_pipeline(make_registry(github_fetch=github_fetch)).evaluate(figure)

        assert result.figure.get_platform(PlatformKind.GITHUB).metrics == stale
        assert result.figure.get_platform(PlatformKind.TWITTER).metrics.followers == 1000
        statuses = {o.platform: o.status for o in result.report.fetch_outcomes}
        assert statuses == {"twitter": "updated", "github": "unavailable"}

    @pytest.mark.asyncio
    async def test_hung_fetch_times_out(self, figure):
        """A fetch exceeding fetch_timeout counts as unavailable."""
        async def hang(handle):
            await asyncio.sleep(10)

        pipeline = make_pipeline(make_registry(github_fetch=hang), fetch_timeout=0.05)
        result = await pipeline.evaluate(figure)

        statuses = {o.platform: o.status for o in result.report.fetch_outcomes}
        assert statuses["github"] == "timeout"
        assert result.report.stage == PipelineStage.FINALIZED

    @pytest.mark.asyncio
    async def test_unsupported_platform_left_unset(self, figure):
        """Platforms without a capability are skipped."""
        figure = figure.model_copy(update={
            "platforms": [
                *figure.platforms,
                PlatformPresence(platform=PlatformKind.SPOTIFY, handle="ada"),
            ]
        })

        result = await make_pipeline().evaluate(figure)

        spotify = result.figure.get_platform(PlatformKind.SPOTIFY)
        assert spotify.metrics.has_signal() is False
        statuses = {o.platform: o.status for o in result.report.fetch_outcomes}
        assert statuses["spotify"] == "unsupported"

    @pytest.mark.asyncio
    async def test_all_platforms_failing_still_completes(self, figure):
        """Every fetch failing still produces a finalized figure."""
        failing = AsyncMock(side_effect=DataUnavailableError("down"))
        pipeline = make_pipeline(make_registry(twitter_fetch=failing, github_fetch=failing))

        result = await pipeline.evaluate(figure)

        assert result.report.platforms_failed == 2
        assert len(result.figure.score.history) == 1

    @pytest.mark.asyncio
    async def test_unexpected_fetch_error_isolated(self, figure):
        """An arbitrary exception from one fetcher does not abort the run."""
        broken = AsyncMock(side_effect=RuntimeError("bug"))
        result = await make_pipeline(make_registry(twitter_fetch=broken)).evaluate(figure)

        statuses = {o.platform: o.status for o in result.report.fetch_outcomes}
        assert statuses == {"twitter": "unavailable", "github": "updated"}

    @pytest.mark.asyncio
    async def test_millisecond_activity_log_completes(self, figure):
        """Epoch-millisecond activity logs in a payload do not abort the run."""
        payload = twitter_payload()
        payload["activity_timestamps"] = [1717200000000 + i * 60000 for i in range(12)]
        registry = make_registry(twitter_fetch=AsyncMock(return_value=payload))

        result = await make_pipeline(registry).evaluate(figure)

        assert result.report.stage == PipelineStage.FINALIZED
        assert any("Bot-like" in flag for flag in result.report.manipulation.flags)


# ============================================================
# Scores and invariants
# ============================================================


class TestScores:
    """Tests for the scores produced by a full evaluation."""

    @pytest.mark.asyncio
    async def test_dimensions_in_range(self, figure):
        """Extreme inputs still yield scores in [0, 100]."""
        registry = make_registry(
            twitter_fetch=AsyncMock(return_value=twitter_payload(followers=10**9, likes=10**12)),
        )
        source = StaticTrendSource()
        updated = await make_pipeline(registry, trend_analyzer=TrendAnalyzer(source)).evaluate_figure(figure)

        for value in (
            updated.score.credibility,
            updated.score.longevity,
            updated.score.engagement,
            updated.score.overall,
        ):
            assert 0.0 <= value <= 100.0

    @pytest.mark.asyncio
    async def test_overall_is_canonical(self, figure):
        """Final overall is the weighted sum of the final dimensions."""
        updated = await make_pipeline().evaluate_figure(figure)
        score = updated.score
        expected = 0.5 * score.credibility + 0.3 * score.longevity + 0.2 * score.engagement
        assert score.overall == pytest.approx(expected)

    @pytest.mark.asyncio
    async def test_steady_state_repeatable(self, figure):
        """Unchanged upstream data yields identical overall once history is primed."""
        pipeline = make_pipeline()

        first = await pipeline.evaluate_figure(figure)
        second = await pipeline.evaluate_figure(first)
        third = await pipeline.evaluate_figure(second)

        assert [len(f.score.history) for f in (first, second, third)] == [1, 2, 3]
        assert third.score.overall == second.score.overall

    @pytest.mark.asyncio
    async def test_input_figure_untouched(self, figure):
        """The incoming figure keeps its metrics, scores and history."""
        result = await make_pipeline().evaluate(figure)

        assert result.previous is figure
        assert figure.score.history == []
        assert figure.get_platform(PlatformKind.TWITTER).metrics.has_signal() is False
        assert result.figure.updated_at == NOW

    @pytest.mark.asyncio
    async def test_detector_sees_pre_evaluation_figure(self, figure):
        """Manipulation detection compares against the incoming figure."""
        detector = AntiManipulationDetector()
        detector.detect = MagicMock(wraps=detector.detect)

        await make_pipeline(detector=detector).evaluate(figure)

        current, previous = detector.detect.call_args.args
        assert previous is figure
        assert current.get_platform(PlatformKind.TWITTER).metrics.followers == 1000

    @pytest.mark.asyncio
    async def test_manipulated_figure_dampened(self, figure):
        """Follower spike plus bot-like activity dampens scores and records flags."""
        bot_stamps = [
            datetime(2024, 5, 1, tzinfo=timezone.utc).replace(hour=i // 2, minute=30 * (i % 2)).isoformat()
            for i in range(48)
        ]
        spiked_payload = twitter_payload(followers=5000)
        spiked_payload["activity_timestamps"] = bot_stamps

        baseline = await make_pipeline().evaluate_figure(figure)
        control = await make_pipeline(
            make_registry(twitter_fetch=AsyncMock(return_value=twitter_payload(followers=5000)))
        ).evaluate(baseline)
        spiked = await make_pipeline(
            make_registry(twitter_fetch=AsyncMock(return_value=spiked_payload))
        ).evaluate(baseline)

        # growth 25 only
        assert control.report.manipulation.confidence_score == 25
        assert control.report.manipulation.is_manipulated is False
        # growth 25 + repetitive timing 20 + round-the-clock 20
        assert spiked.report.manipulation.confidence_score == 65
        assert spiked.report.manipulation.is_manipulated is True
        assert spiked.figure.metadata["manipulation_score"] == 65
        assert len(spiked.figure.metadata["manipulation_flags"]) == 3
        assert spiked.figure.score.credibility < control.figure.score.credibility
        assert spiked.figure.score.engagement < control.figure.score.engagement
