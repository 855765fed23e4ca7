import msgpack
import pytest

from yearning.query import (
    BLOB_LIMIT,
    BLOB_PLACEHOLDER,
    MASKED_PLACEHOLDER,
    QueryRef,
    QueryResult,
    QueryResults,
    QueryType,
    build_fields,
    build_result,
    format_row,
    format_value,
    remove_duplicate_element,
)


def test_query_type_values():
    assert QueryType(3) is QueryType.PING
    assert QueryType.OPEN == 2


def test_query_ref_round_trip():
    frame = msgpack.packb({"type": 3, "sql": "select 1", "schema": "db", "source_id": "src"})
    ref = QueryRef.from_msgpack(frame)
    assert ref == QueryRef(type=3, sql="select 1", schema="db", source_id="src")


def test_query_ref_missing_keys_default():
    ref = QueryRef.from_msgpack(msgpack.packb({"sql": "select 1"}))
    assert ref.type == QueryType.NONE
    assert ref.schema == ""


def test_query_ref_rejects_garbage():
    with pytest.raises(ValueError):
        QueryRef.from_msgpack(b"\xc1")


def test_query_ref_rejects_non_map():
    with pytest.raises(ValueError):
        QueryRef.from_msgpack(msgpack.packb([1, 2]))


def test_results_to_msgpack_round_trip():
    result = build_result(["id"], [{"id": b"7"}], set())
    reply = QueryResults(export=True, results=[result], query_time=12)
    decoded = msgpack.unpackb(reply.to_msgpack(), raw=False)
    assert decoded["export"] is True
    assert decoded["query_time"] == 12
    assert decoded["results"][0]["data"] == [{"id": "7"}]
    assert decoded["results"][0]["field"][0]["title"] == "id"


def test_empty_results_encode_as_nil():
    decoded = msgpack.unpackb(QueryResults(heartbeat=1, is_only=True).to_msgpack(), raw=False)
    assert decoded["results"] is None
    assert decoded["heartbeat"] == 1
    assert decoded["is_only"] is True


def test_remove_duplicate_element():
    assert remove_duplicate_element(["a", "b", "a", "b"]) == ["a", "b", "a(1)", "b(2)"]


def test_remove_duplicate_element_keeps_unique():
    cols = ["x", "y", "z"]
    assert remove_duplicate_element(cols) == cols


def test_format_value_booleans():
    assert format_value("c", b"\x01", set()) == "true"
    assert format_value("c", b"\x00", set()) == "false"


def test_format_value_text():
    assert format_value("c", b"hello", set()) == "hello"


def test_format_value_masks_case_insensitively():
    assert format_value("Phone", b"555", {"phone"}) == MASKED_PLACEHOLDER


def test_format_value_leaves_non_bytes():
    assert format_value("phone", 42, {"phone"}) == 42


def test_format_value_blob():
    big = b"x" * (BLOB_LIMIT + 1)
    assert format_value("phone", big, {"phone"}) == BLOB_PLACEHOLDER
    assert format_value("c", b"x" * BLOB_LIMIT, set()) == "x" * BLOB_LIMIT


def test_format_row():
    row = format_row({"name": b"bob", "secret_col": b"v", "n": 3}, ["secret_col"])
    assert row == {"name": "bob", "secret_col": MASKED_PLACEHOLDER, "n": 3}


def test_build_fields_pins_first():
    fields = build_fields(["a", "b"])
    assert fields[0]["fixed"] == "left"
    assert "fixed" not in fields[1]
    assert all(f["width"] == 200 and f["resizable"] and f["ellipsis"] for f in fields)
    assert [f["dataIndex"] for f in fields] == ["a", "b"]


def test_build_fields_requires_columns():
    with pytest.raises(ValueError):
        build_fields([])


def test_build_result_shape():
    result = build_result(["a", "a"], [{"a": b"1"}, {"a": b"\x00"}], set())
    assert isinstance(result, QueryResult)
    assert len(result.fields) == 2
    assert result.data == [{"a": "1"}, {"a": "false"}]