from parsing.document import MarkedSection, parse_fragment, parse_html, serialize
from pipeline.orchestrator import run

CONDITIONAL = '<![if !IE]><p>modern browsers</p><![endif]>'


def test_conditional_comment_markers_round_trip():
    soup = parse_html(CONDITIONAL)
    assert serialize(soup) == CONDITIONAL
    assert [type(node) for node in soup.contents].count(MarkedSection) == 2


def test_conditional_comment_markers_in_fragments():
    nodes = parse_fragment(CONDITIONAL)
    assert "".join(serialize(node) for node in nodes) == CONDITIONAL


def test_conditional_comment_markers_survive_cleaning(only):
    result = run(CONDITIONAL, only("stripComments", "collapseWhitespace", "removeEmptyAttributes"))
    assert result.cleaned_html == CONDITIONAL


def test_attribute_order_and_values_round_trip():
    source = '<p id="x" class="b  a" data-n="">t</p><input disabled value="">'
    assert serialize(parse_html(source)) == source
