from models.options import CleaningOptions
from models.recommendation import Recommendation
from pipeline.impact import NO_OPTIMIZATIONS, build_summary, failure_summary, speed_gain
from pipeline.overrides import keys_for, merge_recommendations


def test_keyed_recommendations_enable_options():
    options = CleaningOptions.all_disabled()
    recs = [Recommendation(title="Anything", options=["optimizeCssLoading", "lazyLoadImages", "bogus"])]
    effective, applied = merge_recommendations(options, recs)
    assert applied == ["optimize_css_loading", "lazy_load_images"]
    assert effective.optimize_css_loading and effective.lazy_load_images
    assert not effective.defer_scripts
    assert options.optimize_css_loading is False


def test_legacy_title_keywords_are_the_fallback():
    rec = Recommendation(title="Eliminate render-blocking resources and defer offscreen images")
    assert set(keys_for(rec)) == {"defer_scripts", "lazy_load_images"}


def test_keys_take_precedence_over_title():
    rec = Recommendation(title="Defer offscreen images", options=["addPrefetchHints"])
    assert keys_for(rec) == ["add_prefetch_hints"]


def test_overrides_never_switch_options_off_and_skip_enabled_ones():
    options = CleaningOptions()
    recs = [Recommendation(title="Defer offscreen images"), Recommendation(title="Reduce unused CSS")]
    effective, applied = merge_recommendations(options, recs)
    assert applied == ["optimize_css_loading"]
    assert effective.lazy_load_images is True
    assert effective.strip_comments is True


def test_no_recommendations_returns_the_same_options():
    options = CleaningOptions()
    assert merge_recommendations(options, None) == (options, [])
    assert merge_recommendations(options, []) == (options, [])


def test_summary_clamps_savings_and_never_has_an_empty_log():
    summary = build_summary("<p>a</p>", "<p loading='x'>a</p><b></b>", 1, 2, [])
    assert summary.bytes_saved == 0
    assert summary.nodes_removed == 0
    assert summary.action_log == (NO_OPTIMIZATIONS,)
    assert summary.estimated_speed_gain == "0.00%"


def test_summary_counts_utf8_bytes():
    summary = build_summary("<p>é  é</p>", "<p>é é</p>", 1, 1, ["Collapsed"])
    assert summary.original_bytes == 13
    assert summary.cleaned_bytes == 12
    assert summary.bytes_saved == 1
    assert summary.action_log == ("Collapsed",)
    wire = summary.model_dump(by_alias=True)
    assert set(wire) == {
        "originalBytes", "cleanedBytes", "bytesSaved", "nodesRemoved", "estimatedSpeedGain", "actionLog",
    }


def test_speed_gain_guards_against_empty_input():
    assert speed_gain(0, 0) == "0.00%"
    assert speed_gain(200, 50) == "25.00%"


def test_failure_summary_reports_zero_savings():
    summary = failure_summary("<p>x</p>", "boom")
    assert summary.bytes_saved == 0
    assert summary.original_bytes == summary.cleaned_bytes == 8
    assert summary.action_log == ("boom",)
