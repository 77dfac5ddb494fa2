import json
import logging

import pytest

from prompthive.core.logging import JsonFormatter
from prompthive.services.id_service import technical_id_prefix
from prompthive.utils.collection_utils import build_tree, filter_hidden_collections
from prompthive.utils.colors import TAG_COLORS, generate_color_from_name
from prompthive.utils.import_utils import PROMPTCAT, STANDARD, detect_format, parse_import_text
from prompthive.utils.prompt_utils import (
    extract_unique_variables,
    get_display_name,
    normalize_variable_definitions,
    parse_variable_definitions,
    replace_variables,
)


def test_tag_colors_are_stable():
    assert generate_color_from_name("a") == "#ec4899"
    assert generate_color_from_name("ab") == "#ef4444"
    assert generate_color_from_name("a long tag name with ünïcode") in TAG_COLORS
    assert generate_color_from_name("python") == generate_color_from_name("python")


@pytest.mark.parametrize(
    "name, prefix",
    [
        ("Vibe Coding", "VIBE"),
        ("AI", "AIX"),
        ("x-1", "X1X"),
        ("!!!", "GEN"),
        (None, "GEN"),
        ("Unassigned", "UNAS"),
    ],
)
def test_technical_id_prefix(name, prefix):
    assert technical_id_prefix(name) == prefix


def test_variables_in_both_syntaxes():
    content = "Hi {{ name }}, welcome to [[place]]. Bye {{name}}."
    assert extract_unique_variables(content) == ["name", "place"]
    assert replace_variables(content, {"name": "Ada"}) == "Hi Ada, welcome to [[place]]. Bye Ada."
    assert extract_unique_variables(None) == []


def test_variable_definitions_parsing():
    assert parse_variable_definitions('[{"key": "topic", "description": "what"}]') == [
        {"key": "topic", "description": "what"}
    ]
    assert parse_variable_definitions("not json") == []
    assert parse_variable_definitions('[{"description": "no key"}]') == []


def test_normalize_imported_variable_definitions():
    assert json.loads(normalize_variable_definitions(["a", "b"])) == [
        {"key": "a", "description": ""},
        {"key": "b", "description": ""},
    ]
    assert json.loads(normalize_variable_definitions("{{a}}, b")) == [
        {"key": "a", "description": ""},
        {"key": "b", "description": ""},
    ]
    assert normalize_variable_definitions(None) == "[]"


def test_display_name_drops_upload_timestamp():
    assert get_display_name("/uploads/1700000000000-report.pdf") == "report.pdf"
    assert get_display_name("/uploads/1700000000000-report.pdf", "Report.pdf") == "Report.pdf"


def test_parse_import_text_repairs_concatenated_objects():
    assert parse_import_text('\ufeff{"a": 1}\n{"b": 2}') == [{"a": 1}, {"b": 2}]
    assert parse_import_text('[{"a": 1}]') == [{"a": 1}]
    with pytest.raises(ValueError):
        parse_import_text("nope")


def test_detect_format():
    assert detect_format({"prompts": [], "folders": []}) == PROMPTCAT
    assert detect_format([{"title": "x", "body": "y"}]) == PROMPTCAT
    assert detect_format([{"title": "x", "versions": [], "body": "y"}]) == STANDARD
    assert detect_format([]) == STANDARD


def test_build_tree_counts_and_sorts():
    rows = [
        {"id": 1, "title": "beta", "parent_id": None, "prompt_count": 1},
        {"id": 2, "title": "Alpha", "parent_id": None, "prompt_count": 0},
        {"id": 3, "title": "child", "parent_id": 1, "prompt_count": 2},
        {"id": 4, "title": "grandchild", "parent_id": 3, "prompt_count": 3},
        {"id": 5, "title": "orphan", "parent_id": 99, "prompt_count": 0},
    ]
    tree = build_tree(rows)

    assert [n["title"] for n in tree] == ["Alpha", "beta", "orphan"]
    beta = tree[1]
    assert beta["total_prompts"] == 6
    assert beta["children"][0]["total_prompts"] == 5

    visible = filter_hidden_collections(tree, [3])
    assert visible[1]["children"] == []
    assert filter_hidden_collections(tree, []) is tree


def test_json_log_lines_carry_extra_fields():
    record = logging.makeLogRecord(
        {"name": "prompthive.http", "levelname": "INFO", "msg": "GET %s", "args": ("/health",), "status_code": 200}
    )
    entry = json.loads(JsonFormatter().format(record))

    assert entry["message"] == "GET /health"
    assert entry["status_code"] == 200
    assert entry["time"].endswith("+00:00")
    assert "args" not in entry
