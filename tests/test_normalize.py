from parsing.document import serialize
from passes.normalize import normalize_embed_blocks, youtube_video_id


def _block(provider: str, url: str) -> str:
    return (
        f'<figure class="wp-block-embed is-provider-{provider} wp-block-embed-{provider}">'
        f'<div class="wp-block-embed__wrapper">\n{url}\n</div>'
        "<figcaption>Caption</figcaption></figure>"
    )


def test_twitter_block_becomes_canonical_blockquote(soup_of):
    soup = soup_of(_block("twitter", "https://twitter.com/jane/status/123"))
    assert normalize_embed_blocks(soup) == {"twitter": 1}
    figure = soup.find("figure")
    assert figure.select_one(".wp-block-embed__wrapper") is None
    quote = figure.find("blockquote")
    assert quote["class"] == "twitter-tweet"
    assert quote.find("a")["href"] == "https://twitter.com/jane/status/123"
    assert figure.find("figcaption").get_text() == "Caption"


def test_youtube_block_becomes_embed_iframe(soup_of):
    soup = soup_of(_block("youtube", "https://youtu.be/dQw4w9WgXcQ"))
    normalize_embed_blocks(soup)
    assert soup.find("iframe")["src"] == "https://www.youtube.com/embed/dQw4w9WgXcQ"


def test_instagram_and_tiktok_blocks(soup_of):
    soup = soup_of(
        _block("instagram", "https://www.instagram.com/p/Cabc123/")
        + _block("tiktok", "https://www.tiktok.com/@user/video/7012345678901234567")
    )
    assert normalize_embed_blocks(soup) == {"instagram": 1, "tiktok": 1}
    assert soup.select_one("blockquote.instagram-media") is not None
    assert soup.select_one("blockquote.tiktok-embed")["data-video-id"] == "7012345678901234567"


def test_reddit_block(soup_of):
    soup = soup_of(_block("reddit", "https://www.reddit.com/r/python/comments/abc/title/"))
    assert normalize_embed_blocks(soup) == {"reddit": 1}
    assert soup.select_one("blockquote.reddit-embed-bq a")["href"].endswith("/title/")


def test_unrecognized_url_leaves_block_untouched(soup_of):
    source = _block("twitter", "https://twitter.com/jane")
    soup = soup_of(source)
    assert normalize_embed_blocks(soup) == {}
    assert serialize(soup) == source


def test_malformed_url_leaves_block_untouched(soup_of):
    source = _block("youtube", "not a url at all")
    soup = soup_of(source)
    assert normalize_embed_blocks(soup) == {}
    assert serialize(soup) == source


def test_wrapper_with_markup_is_not_rewritten(soup_of):
    source = (
        '<figure class="wp-block-embed-twitter"><div class="wp-block-embed__wrapper">'
        '<blockquote class="twitter-tweet"><a href="https://twitter.com/a/status/1"></a></blockquote>'
        "</div></figure>"
    )
    soup = soup_of(source)
    assert normalize_embed_blocks(soup) == {}


def test_second_pass_is_a_no_op(soup_of):
    soup = soup_of(_block("twitter", "https://x.com/jane/status/9"))
    normalize_embed_blocks(soup)
    first = serialize(soup)
    assert normalize_embed_blocks(soup) == {}
    assert serialize(soup) == first


def test_youtube_video_id_variants():
    assert youtube_video_id("https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=10") == "dQw4w9WgXcQ"
    assert youtube_video_id("https://youtube.com/shorts/dQw4w9WgXcQ") == "dQw4w9WgXcQ"
    assert youtube_video_id("https://www.youtube-nocookie.com/embed/dQw4w9WgXcQ") == "dQw4w9WgXcQ"
    assert youtube_video_id("https://example.com/watch?v=dQw4w9WgXcQ") is None
    assert youtube_video_id("youtube.com/watch?v=dQw4w9WgXcQ") is None
