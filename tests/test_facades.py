import re

from parsing.document import parse_fragment, serialize
from passes.contract import ALL_KINDS, SOCIAL_KINDS, TWEET
from passes.encoding import decode_markup
from passes.facades import (
    defer_background_images,
    generate_embed_facades,
    youtube_id_from_src,
)

YOUTUBE_IFRAME = (
    '<iframe width="640" height="360" src="https://www.youtube.com/embed/abc123XYZ_-?rel=0" '
    'title="Launch video" allowfullscreen></iframe>'
)
TWEET_MARKUP = (
    '<blockquote class="twitter-tweet" data-theme="dark"><p lang="en" dir="ltr">'
    "Hello &lt;world&gt; from the timeline</p>&mdash; Jane Doe (@jane) "
    '<a href="https://twitter.com/jane/status/1">May 1, 2024</a></blockquote>\n'
    '<script async src="https://platform.twitter.com/widgets.js" charset="utf-8"></script>'
)


def _inert(el, placeholder) -> bool:
    """True when el or an ancestor below the placeholder disables pointer events."""
    node = el
    while node is not None and node is not placeholder:
        if "pointer-events:none" in (node.get("style") or "").replace(" ", ""):
            return True
        node = node.parent
    return False


def test_youtube_iframe_becomes_placeholder(soup_of):
    soup = soup_of(f"<p>Watch:</p>{YOUTUBE_IFRAME}")
    assert generate_embed_facades(soup) == {"youtube": 1}
    assert soup.find("iframe") is None
    placeholder = soup.select_one(".lazy-youtube-embed")
    assert placeholder["data-facade"] == "youtube"
    assert placeholder["data-video-id"] == "abc123XYZ_-"
    assert placeholder["data-original-src"] == "https://www.youtube.com/embed/abc123XYZ_-?rel=0"
    assert placeholder["role"] == "button"
    assert placeholder["tabindex"] == "0"
    assert "aspect-ratio:640/360" in placeholder["style"]
    assert "i.ytimg.com/vi/abc123XYZ_-/hqdefault.jpg" in placeholder["style"]
    assert "Launch video" in placeholder["aria-label"]


def test_playlist_iframe_is_left_alone(soup_of):
    soup = soup_of('<iframe src="https://www.youtube.com/embed/videoseries?list=PL1"></iframe>')
    assert generate_embed_facades(soup) == {}
    assert soup.find("iframe") is not None


def test_youtube_id_from_src():
    assert youtube_id_from_src("https://www.youtube.com/embed/abc?autoplay=1") == "abc"
    assert youtube_id_from_src("//www.youtube-nocookie.com/embed/xyz") == "xyz"
    assert youtube_id_from_src("https://www.youtube.com/embed/videoseries?list=1") is None


def test_tweet_payload_round_trips_tag_and_attributes(soup_of):
    soup = soup_of(TWEET_MARKUP)
    original = soup_of(TWEET_MARKUP).find("blockquote")
    assert generate_embed_facades(soup) == {"tweet": 1}
    placeholder = soup.select_one(".lazy-tweet-facade")
    restored = [n for n in parse_fragment(decode_markup(placeholder[TWEET.payload_attr])) if n.name]
    assert len(restored) == 1
    assert restored[0].name == original.name
    assert restored[0].attrs == original.attrs
    assert restored[0].get_text() == original.get_text()


def test_tweet_loader_script_is_removed(soup_of):
    soup = soup_of(TWEET_MARKUP)
    generate_embed_facades(soup)
    assert soup.find("script") is None
    assert soup.find("blockquote") is None


def test_tweet_card_shows_escaped_preview_and_author(soup_of):
    soup = soup_of(TWEET_MARKUP)
    generate_embed_facades(soup)
    placeholder = soup.select_one(".lazy-tweet-facade")
    assert placeholder.find("strong").get_text() == "Jane Doe"
    assert placeholder.find("p").get_text() == "Hello <world> from the timeline"
    assert placeholder.find("world") is None


def test_decorative_children_never_take_pointer_events(soup_of):
    soup = soup_of(
        YOUTUBE_IFRAME
        + TWEET_MARKUP
        + '<blockquote class="instagram-media"><p>Insta</p></blockquote>'
        + '<blockquote class="tiktok-embed"><section>tt</section></blockquote>'
        + '<blockquote class="reddit-embed-bq"><a href="https://reddit.com/r/x">r</a></blockquote>'
        + '<video src="clip.mp4" poster="poster.jpg" controls></video>'
    )
    counts = generate_embed_facades(soup)
    assert set(counts) == {"youtube", "tweet", "instagram", "tiktok", "reddit", "video"}
    for placeholder in soup.select("[data-facade]"):
        for child in placeholder.find_all(True):
            assert _inert(child, placeholder), child


def test_every_social_kind_stores_its_payload_attribute(soup_of):
    soup = soup_of(
        '<blockquote class="twitter-tweet"><p>t</p></blockquote>'
        '<blockquote class="instagram-media"><p>i</p></blockquote>'
        '<blockquote class="tiktok-embed"><p>k</p></blockquote>'
        '<blockquote class="reddit-embed-bq"><p>r</p></blockquote>'
    )
    generate_embed_facades(soup)
    for kind in SOCIAL_KINDS:
        placeholder = soup.select_one(f".{kind.css_class}")
        assert placeholder is not None, kind.name
        assert decode_markup(placeholder[kind.payload_attr]).startswith("<blockquote")


def test_payload_attribute_names_are_unique_per_kind():
    attrs = [kind.payload_attr for kind in ALL_KINDS if kind.payload_attr]
    assert len(attrs) == len(set(attrs))


def test_video_placeholder_uses_poster(soup_of):
    soup = soup_of('<video width="320" height="180" poster="https://cdn.example.com/p.jpg"><source src="a.mp4"></video>')
    assert generate_embed_facades(soup) == {"video": 1}
    placeholder = soup.select_one(".lazy-video-facade")
    assert "https://cdn.example.com/p.jpg" in placeholder["style"]
    assert "<source" in decode_markup(placeholder["data-video-html"])


def test_placeholders_are_not_wrapped_twice(soup_of):
    soup = soup_of(YOUTUBE_IFRAME + TWEET_MARKUP)
    generate_embed_facades(soup)
    first = serialize(soup)
    assert generate_embed_facades(soup) == {}
    assert serialize(soup) == first
    assert len(soup.select("[data-facade]")) == 2


def test_embeds_in_noscript_are_skipped(soup_of):
    soup = soup_of(f"<noscript>{YOUTUBE_IFRAME}</noscript>")
    assert generate_embed_facades(soup) == {}


def test_background_image_moves_to_data_attribute(soup_of):
    soup = soup_of(
        "<div class=\"hero\" style=\"color: red; background-image: url('https://cdn.example.com/bg.jpg'); padding: 4px\">Hi</div>"
    )
    assert defer_background_images(soup) == 1
    div = soup.find("div")
    assert div["data-bg-src"] == "https://cdn.example.com/bg.jpg"
    assert div["data-lazy"] == "background-image"
    assert div["class"] == "hero lazy-background"
    assert "background-image" not in div["style"]
    assert re.search(r"color:\s*red", div["style"])
    assert "padding" in div["style"]
    assert div.get_text() == "Hi"


def test_background_only_style_is_dropped(soup_of):
    soup = soup_of('<section style="background-image:url(/img/bg.png)">x</section>')
    defer_background_images(soup)
    section = soup.find("section")
    assert not section.has_attr("style")
    assert section["data-bg-src"] == "/img/bg.png"


def test_data_uri_backgrounds_are_kept(soup_of):
    source = '<div style="background-image:url(data:image/png;base64,AAAA)">x</div>'
    soup = soup_of(source)
    assert defer_background_images(soup) == 0
    assert serialize(soup) == source
