from analyst_console.markup import MISSING, display_value, escape_html, linkify, pretty_bytes


def test_escape_replaces_html_significant_characters():
    assert escape_html("<a>&\"'") == "&lt;a&gt;&amp;&quot;&#39;"


def test_escape_leaves_safe_text_unchanged():
    text = "Revenue grew 12% in 2023 (see appendix)."
    assert escape_html(text) == text


def test_linkify_wraps_http_urls_without_double_escaping():
    out = linkify(escape_html("see https://x.com/a?b=1&c=2 now"))
    assert out == (
        'see <a href="https://x.com/a?b=1&amp;c=2" target="_blank" rel="noopener noreferrer">'
        "https://x.com/a?b=1&amp;c=2</a> now"
    )


def test_linkify_prefixes_www_and_stops_at_closing_paren():
    out = linkify("(visit www.example.com) today")
    assert out == (
        '(visit <a href="http://www.example.com" target="_blank" rel="noopener noreferrer">'
        "www.example.com</a>) today"
    )


def test_linkify_handles_several_links():
    out = linkify("http://a.io and https://b.io")
    assert out.count("<a href=") == 2
    assert 'href="http://a.io"' in out
    assert 'href="https://b.io"' in out


def test_display_value_uses_json_text_for_non_strings():
    assert display_value("plain") == "plain"
    assert display_value(None) == "null"
    assert display_value(True) == "true"
    assert display_value(12) == "12"
    assert display_value(1.5) == "1.5"
    assert display_value({"a": 1}) == '{"a": 1}'
    assert display_value([1, "x"]) == '[1, "x"]'
    assert display_value(MISSING) == "undefined"


def test_pretty_bytes():
    assert pretty_bytes(512) == "512 B"
    assert pretty_bytes(1536) == "1.5 KB"
    assert pretty_bytes(3 * 1024 * 1024) == "3.0 MB"
