import io
import json

from pqrunner.stream.chunks import Artifact
from pqrunner.stream.fold import QueryResult
from pqrunner.ui.presenter import EMPTY_TABLE, NO_FINAL_MESSAGE, TerminalPresenter
from pqrunner.utils.formatting import framed, md_escape, render_grid, table_cells


def test_table_cells_use_first_record_keys():
    headers, body = table_cells([{"a": 1, "b": 2}, {"a": 3}])
    assert headers == ["a", "b"]
    assert body == [["1", "2"], ["3", ""]]


def test_table_cells_keep_falsy_values():
    _, body = table_cells([{"a": 0, "b": None, "c": False}])
    assert body == [["0", "", "False"]]


def test_table_cells_invalid():
    assert table_cells([]) is None
    assert table_cells(None) is None
    assert table_cells("rows") is None
    assert table_cells([{}]) is None
    assert table_cells([1, 2]) is None


def test_render_grid():
    grid = render_grid([{"a": 1, "b": 2}, {"a": 3}])
    lines = grid.splitlines()
    assert lines[0] == "╔═══╤═══╗"
    assert lines[1] == "║ a │ b ║"
    assert lines[2] == "╟───┼───╢"
    assert lines[3] == "║ 1 │ 2 ║"
    assert lines[5] == "║ 3 │   ║"
    assert lines[-1] == "╚═══╧═══╝"


def test_render_grid_widths_follow_content():
    grid = render_grid([{"name": "Alexandria", "n": 12}])
    assert "║ name       │ n  ║" in grid
    assert "║ Alexandria │ 12 ║" in grid


def test_render_grid_truncates():
    rows = [{"i": i} for i in range(5)]
    grid = render_grid(rows, max_rows=2)
    assert grid.endswith("Showing first 2 of 5 rows.")


def test_framed_and_md_escape():
    assert framed("x", width=3) == "---\nx\n---"
    assert md_escape("a|b\nc") == "a\\|b<br>c"


def _presenter():
    out, err = io.StringIO(), io.StringIO()
    return TerminalPresenter(stream=out, err=err, width=10), out, err


def test_text_is_appended():
    p, out, _ = _presenter()
    p.show_text("Hello ")
    p.show_text("world")
    assert out.getvalue() == "Hello world"


def test_table_artifact():
    p, out, _ = _presenter()
    p.show_artifact(Artifact(identifier="t1", title="Sales", artifact_type="table", data=[{"a": 1, "b": 2}, {"a": 3}]))
    text = out.getvalue()
    assert "Artifact: Sales (t1)" in text
    assert "║ a │ b ║" in text
    assert "║ 3 │   ║" in text


def test_empty_table_placeholder():
    p, out, _ = _presenter()
    p.show_artifact(Artifact(identifier="t2", title="Empty", artifact_type="table", data=[]))
    assert EMPTY_TABLE in out.getvalue()


def test_visualization_is_pretty_json():
    p, out, _ = _presenter()
    data = {"spec": {"mark": "bar"}}
    p.show_artifact(Artifact(identifier="v1", title="Chart", artifact_type="visualization", data=data))
    assert json.dumps(data, indent=2) in out.getvalue()


def test_text_artifact_verbatim():
    p, out, _ = _presenter()
    p.show_artifact(Artifact(identifier="x", title="Note", artifact_type="text", data="line1\nline2"))
    assert "line1\nline2\n" in out.getvalue()


def test_working_cleared_before_other_output():
    p, out, _ = _presenter()
    p.show_working("Planning")
    p.show_working("Planning")
    assert p.working == "Planning"
    assert out.getvalue().count("Planning") == 1
    p.show_text("answer")
    assert p.working is None
    assert out.getvalue().endswith("answer")


def test_error_goes_to_stderr():
    p, out, err = _presenter()
    p.show_text("partial")
    p.show_error("boom")
    assert err.getvalue() == "Error: boom\n"
    assert out.getvalue() == "partial\n"


def test_summary_sections():
    p, out, _ = _presenter()
    p.show_summary(QueryResult(question="q", final_message=None, text_between_last_two_artifacts="gap", last_two_sentences="A. B."))
    text = out.getvalue()
    assert NO_FINAL_MESSAGE in text
    assert "Text between last two artifacts:" in text
    assert "----------\ngap\n----------" in text
    assert "Last two sentences:" in text
