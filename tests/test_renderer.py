from analyst_console import renderer as renderer_mod
from analyst_console.markup import escape_html, pretty_json
from analyst_console.renderer import Region, detect_facets, render, resolve_image_source


def _render(payload, **kwargs):
    results = Region("results")
    provenance = Region("provenance")
    render(payload, results, provenance, **kwargs)
    return results, provenance


def test_unrecognized_payload_falls_back_to_raw_response():
    payload = {"foo": "bar"}
    results, provenance = _render(payload)
    assert results.titles() == ["Raw Response"]
    assert results.cards[0].body == f"<pre>{escape_html(pretty_json(payload))}</pre>"
    assert len(provenance) == 0


def test_provenance_only_goes_to_provenance_region_and_triggers_fallback():
    results, provenance = _render({"provenance": {"source": "https://example.com/report.pdf"}})
    assert results.titles() == ["Raw Response"]
    assert provenance.titles() == ["Materials"]


def test_answer_and_tables_render_in_priority_order():
    results, _ = _render({"tables": [[[1, 2]]], "answer": "done"})
    assert results.titles() == ["Findings", "Table 1"]


def test_revenue_comparison_response():
    payload = {
        "answer": "2023 revenue grew 12%.",
        "tables": [[["Year", "Rev"], [2022, 100], [2023, 112]]],
    }
    results, provenance = _render(payload)

    assert results.titles() == ["Findings", "Table 1"]
    assert results.cards[0].body == "<div>2023 revenue grew 12%.</div>"
    table_html = results.cards[1].body
    assert "<th>col_1</th><th>col_2</th>" in table_html
    assert "<tr><td>Year</td><td>Rev</td></tr>" in table_html
    assert "<tr><td>2023</td><td>112</td></tr>" in table_html
    assert table_html.count("<tr>") == 4
    assert len(provenance) == 0


def test_narrative_is_escaped_and_linkified():
    results, _ = _render({"summary": "Source: https://x.io/a <b>bold</b>"})
    assert results.cards[0].body == (
        '<div>Source: <a href="https://x.io/a" target="_blank" rel="noopener noreferrer">'
        "https://x.io/a</a> &lt;b&gt;bold&lt;/b&gt;</div>"
    )


def test_narrative_alias_priority():
    results, _ = _render({"explanation": "e", "summary": "s"})
    assert results.cards[0].body == "<div>s</div>"

    results, _ = _render({"answer": "", "explanation": "e"})
    assert results.cards[0].body == "<div>e</div>"


def test_answers_list_renders_second_findings_card():
    results, _ = _render({"answer": "short", "answers": ["a<b", 2]})
    assert results.titles() == ["Findings", "Findings"]
    assert results.cards[1].body == "<ul><li>a&lt;b</li><li>2</li></ul>"


def test_single_table_object_is_treated_as_list():
    results, _ = _render({"table": {"columns": ["x"], "data": [[5], [6]]}})
    assert results.titles() == ["Table 1"]
    assert "<th>x</th>" in results.cards[0].body


def test_unrecognized_table_entry_is_dumped_as_json():
    results, _ = _render({"tables": [42, [[1]]]})
    assert results.titles() == ["Table 1", "Table 2"]
    assert results.cards[0].body == "<pre>42</pre>"
    assert "<table>" in results.cards[1].body


def test_resolve_image_source():
    assert resolve_image_source("iVBORw0==") == "data:image/png;base64,iVBORw0=="
    assert resolve_image_source("https://x/y.png") == "https://x/y.png"
    assert resolve_image_source("data:image/jpeg;base64,AAA") == "data:image/jpeg;base64,AAA"
    assert resolve_image_source({"base64": "AAA"}) == "data:image/png;base64,AAA"
    assert resolve_image_source({"url": "x"}) is None
    assert resolve_image_source(42) is None


def test_images_collapse_into_one_visuals_card():
    results, _ = _render({"plots": ["https://x/y.png", "iVBOR", {"base64": "AAA"}, 42]})
    assert results.titles() == ["Visuals"]
    assert results.cards[0].body.count("<img") == 3


def test_no_resolvable_images_produces_no_card():
    results, _ = _render({"images": [42, {"foo": 1}]})
    assert results.titles() == ["Raw Response"]


def test_code_string_and_structured():
    results, _ = _render({"sql": "SELECT * FROM t WHERE a < 3"})
    assert results.cards[0].title == "Code"
    assert results.cards[0].body == "<pre>SELECT * FROM t WHERE a &lt; 3</pre>"

    results, _ = _render({"codelets": [{"lang": "py"}]})
    assert results.cards[0].body == f"<pre>{escape_html(pretty_json([{'lang': 'py'}]))}</pre>"


def test_execution_error_is_exclusive_by_default():
    payload = {"error": "boom", "stderr": "trace", "answer": "x", "provenance": {"a": 1}}
    results, provenance = _render(payload)
    assert results.titles() == ["Execution Error"]
    assert results.cards[0].body == "<pre>Error: boom\n\nSTDERR:\ntrace</pre>"
    assert len(provenance) == 0


def test_execution_error_inline_policy_keeps_other_facets():
    payload = {"details": "Traceback ...", "stdout": "hi", "answer": "x"}
    results, _ = _render(payload, error_policy="inline")
    assert results.titles() == ["Execution Error", "Findings"]
    assert results.cards[0].body == "<pre>Traceback:\nTraceback ...\n\nSTDOUT:\nhi</pre>"


def test_detect_facets_order():
    payload = {
        "sources": ["s"],
        "code": "x = 1",
        "figures": ["https://a/b.png"],
        "table": [[1]],
        "answers": ["a"],
        "explanation": "e",
    }
    assert [m.facet.name for m in detect_facets(payload)] == [
        "narrative", "answers", "tables", "images", "code", "provenance",
    ]


def test_non_object_payloads_fall_back():
    results, _ = _render([1, 2])
    assert results.titles() == ["Raw Response"]

    results, _ = _render(None)
    assert results.cards[0].body == "<pre>null</pre>"


def test_failing_table_degrades_to_json_dump_with_its_own_title(monkeypatch):
    real_render_table = renderer_mod.render_table

    def flaky(table):
        if table.headers == ["x"]:
            raise RuntimeError("bad table")
        return real_render_table(table)

    monkeypatch.setattr(renderer_mod, "render_table", flaky)
    bad = {"columns": ["x"], "data": [[5]]}
    results, _ = _render({"tables": [[[1, 2]], bad, [[3]]]})
    assert results.titles() == ["Table 1", "Table 2", "Table 3"]
    assert "<table>" in results.cards[0].body
    assert results.cards[1].body == f"<pre>{escape_html(pretty_json(bad))}</pre>"
    assert "<table>" in results.cards[2].body


def test_failing_facet_degrades_to_json_dump(monkeypatch):
    def broken(value):
        raise RuntimeError("bad code")

    monkeypatch.setattr(renderer_mod, "pretty_json", lambda value: "[1]")
    monkeypatch.setattr(renderer_mod, "escape_html", lambda text: text)
    monkeypatch.setattr(renderer_mod, "linkify", broken)
    results, _ = _render({"answer": "x"})
    assert results.titles() == ["Findings"]
    assert results.cards[0].body == "<pre>[1]</pre>"


def test_empty_answers_list_renders_empty_findings_card():
    results, _ = _render({"answers": []})
    assert results.titles() == ["Findings"]
    assert results.cards[0].body == "<ul></ul>"


def test_empty_tables_list_wins_over_table_alias():
    results, _ = _render({"tables": [], "table": [[1]]})
    assert results.titles() == ["Raw Response"]


def test_zero_and_empty_values_are_absent():
    results, _ = _render({"answer": 0, "summary": "", "code": False})
    assert results.titles() == ["Raw Response"]

    results, _ = _render({"answer": 0, "explanation": "e", "stdout": ""})
    assert results.titles() == ["Findings"]
    assert results.cards[0].body == "<div>e</div>"
