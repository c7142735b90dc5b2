from passes.images import (
    add_responsive_srcsets,
    apply_loading_policy,
    build_srcset,
    cdn_profile_for,
    upgrade_image_formats,
    upgrade_srcset,
    upgrade_url,
)
from pipeline.settings import DEFAULT_BREAKPOINTS

THREE_IMAGES = '<img src="a.jpg"><p>text</p><img src="b.jpg"><img src="c.jpg" loading="eager">'


def test_first_image_is_eager_with_high_priority(soup_of):
    soup = soup_of(THREE_IMAGES)
    apply_loading_policy(soup, eager_count=1)
    first, second, third = soup.find_all("img")
    assert first["loading"] == "eager"
    assert first["fetchpriority"] == "high"
    assert not first.has_attr("decoding")
    assert second["loading"] == "lazy"
    assert second["decoding"] == "async"
    # An explicit author choice is kept.
    assert third["loading"] == "eager"


def test_lazy_attribute_on_lcp_candidate_is_replaced(soup_of):
    soup = soup_of('<img src="hero.jpg" loading="lazy"><img src="b.jpg"><img src="c.jpg">')
    apply_loading_policy(soup, eager_count=2)
    first, second, third = soup.find_all("img")
    assert first["loading"] == "eager"
    assert second["loading"] == "eager"
    assert not second.has_attr("fetchpriority")
    assert third["loading"] == "lazy"


def test_dimensions_are_backfilled_from_filename(soup_of):
    soup = soup_of('<img src="https://example.com/uploads/photo-1024x768.jpg">')
    stats = apply_loading_policy(soup, eager_count=1)
    img = soup.find("img")
    assert (img["width"], img["height"]) == ("1024", "768")
    assert stats["dimensions"] == 1


def test_existing_dimensions_are_kept(soup_of):
    soup = soup_of('<img src="photo-1024x768.jpg" width="300">')
    apply_loading_policy(soup, eager_count=1)
    assert soup.find("img")["width"] == "300"
    assert not soup.find("img").has_attr("height")


def test_images_in_noscript_are_ignored(soup_of):
    soup = soup_of('<noscript><img src="a.jpg"></noscript><img src="b.jpg">')
    apply_loading_policy(soup, eager_count=1)
    assert not soup.find("noscript").find("img").has_attr("loading")
    assert soup.find_all("img")[1]["loading"] == "eager"


def test_cdn_profiles():
    assert cdn_profile_for("https://i0.wp.com/example.com/a.jpg").width_param == "w"
    assert cdn_profile_for("https://cdn.shopify.com/s/files/a.jpg").format_param == "format"
    assert cdn_profile_for("https://example.com/a.jpg") is None
    assert cdn_profile_for("data:image/png;base64,AAAA") is None


def test_srcset_ladder_is_capped_at_intrinsic_width(soup_of):
    soup = soup_of('<img src="https://i0.wp.com/example.com/a.jpg" width="800">')
    assert add_responsive_srcsets(soup, DEFAULT_BREAKPOINTS) == 1
    img = soup.find("img")
    entries = [entry.strip() for entry in img["srcset"].split(",")]
    assert entries[0] == "https://i0.wp.com/example.com/a.jpg?w=320 320w"
    assert entries[-1] == "https://i0.wp.com/example.com/a.jpg?w=800 800w"
    assert [e.rsplit(" ", 1)[1] for e in entries] == ["320w", "480w", "640w", "768w", "800w"]
    assert img["sizes"] == "(max-width: 800px) 100vw, 800px"


def test_srcset_uses_filename_width_and_keeps_other_params(soup_of):
    soup = soup_of('<img src="https://x.imgix.net/p-640x480.jpg?auto=compress&w=2000">')
    add_responsive_srcsets(soup, DEFAULT_BREAKPOINTS)
    srcset = soup.find("img")["srcset"]
    assert "https://x.imgix.net/p-640x480.jpg?auto=compress&w=320 320w" in srcset
    assert srcset.endswith("w=640 640w")


def test_srcset_skips_unknown_hosts_and_existing_srcset(soup_of):
    soup = soup_of(
        '<img src="https://example.com/a.jpg" width="900">'
        '<img src="https://i0.wp.com/a.jpg" width="900" srcset="a.jpg 1x">'
        '<img src="https://i0.wp.com/b.jpg">'
    )
    assert add_responsive_srcsets(soup, DEFAULT_BREAKPOINTS) == 0


def test_build_srcset_needs_two_candidates():
    profile = cdn_profile_for("https://i0.wp.com/a.jpg")
    assert build_srcset("https://i0.wp.com/a.jpg", profile, 200, DEFAULT_BREAKPOINTS) is None


def test_format_upgrade_requests_webp_then_avif():
    url = "https://x.imgix.net/a.jpg?w=600"
    assert upgrade_url(url, "webp") == "https://x.imgix.net/a.jpg?w=600&fm=webp"
    assert upgrade_url("https://x.imgix.net/a.jpg?fm=webp", "webp") is None
    assert upgrade_url("https://x.imgix.net/a.jpg?fm=webp", "avif") == "https://x.imgix.net/a.jpg?fm=avif"


def test_format_upgrade_is_a_no_op_for_svg_data_and_unknown_hosts():
    assert upgrade_url("https://x.imgix.net/logo.svg", "webp") is None
    assert upgrade_url("data:image/png;base64,AAAA", "webp") is None
    assert upgrade_url("https://example.com/a.jpg", "webp") is None
    # Photon negotiates formats itself.
    assert upgrade_url("https://i0.wp.com/a.jpg", "webp") is None


def test_upgrade_srcset_rewrites_each_candidate():
    srcset = "https://x.imgix.net/a.jpg?w=320 320w, https://x.imgix.net/a.jpg?w=640 640w"
    assert upgrade_srcset(srcset, "avif") == (
        "https://x.imgix.net/a.jpg?w=320&fm=avif 320w, https://x.imgix.net/a.jpg?w=640&fm=avif 640w"
    )
    assert upgrade_srcset("https://example.com/a.jpg 1x", "webp") is None


def test_upgrade_image_formats_counts_changed_images(soup_of):
    soup = soup_of(
        '<img src="https://cdn.shopify.com/a.jpg?width=400">'
        '<img src="https://example.com/b.jpg">'
    )
    assert upgrade_image_formats(soup, prefer_avif=False) == 1
    assert soup.find("img")["src"] == "https://cdn.shopify.com/a.jpg?width=400&format=webp"
