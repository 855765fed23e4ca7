"""Formatting of ad-hoc query results sent back over the query socket."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import msgpack

BLOB_LIMIT = (1 << 20) - 1
BLOB_PLACEHOLDER = "blob字段无法显示"
MASKED_PLACEHOLDER = "****脱敏字段"
COLUMN_WIDTH = 200

ORDER_POST_SUCCESS = "工单已提交,请等待审核人审核！"
ER_DB_CONNECT = "数据库实例连接失败！请检查相关配置是否正确！"
ER_SQL_EMPTY = "无查询语句！"
ER_RPC = "rpc调用失败"


class QueryType(IntEnum):
    """Kind of frame a client sends on the query socket."""

    NONE = 0
    CLOSE = 1
    OPEN = 2
    PING = 3


@dataclass
class QueryRef:
    """A client request on the query socket."""

    type: int = QueryType.NONE
    sql: str = ""
    schema: str = ""
    source_id: str = ""

    @classmethod
    def from_msgpack(cls, payload: bytes) -> QueryRef:
        """Decode a MessagePack frame; raises ValueError on malformed input."""
        try:
            data = msgpack.unpackb(payload, raw=False)
        except (msgpack.ExtraData, msgpack.FormatError, msgpack.StackError,
                ValueError, TypeError) as exc:
            raise ValueError(f"malformed query frame: {exc}") from exc
        if not isinstance(data, Mapping):
            raise ValueError("query frame is not a map")
        try:
            return cls(
                type=int(data.get("type") or 0),
                sql=str(data.get("sql") or ""),
                schema=str(data.get("schema") or ""),
                source_id=str(data.get("source_id") or ""),
            )
        except (TypeError, ValueError) as exc:
            raise ValueError(f"malformed query frame: {exc}") from exc


@dataclass
class QueryResult:
    """Column descriptions and rows of one executed statement."""

    fields: list[dict[str, Any]] = field(default_factory=list)
    data: list[dict[str, Any]] = field(default_factory=list)

    def _wire(self) -> dict[str, Any]:
        return {"field": self.fields or None, "data": self.data or None}


@dataclass
class QueryResults:
    """Reply frame sent to the client."""

    export: bool = False
    error: str = ""
    results: list[QueryResult] = field(default_factory=list)
    query_time: int = 0
    status: bool = False
    heartbeat: int = 0
    is_only: bool = False

    def to_msgpack(self) -> bytes:
        """Encode the reply as MessagePack."""
        return msgpack.packb(
            {
                "export": self.export,
                "error": self.error,
                "results": [r._wire() for r in self.results] or None,
                "query_time": self.query_time,
                "status": self.status,
                "heartbeat": self.heartbeat,
                "is_only": self.is_only,
            },
            use_bin_type=True,
        )


def remove_duplicate_element(columns: Iterable[str]) -> list[str]:
    """Give repeated column names a running ``(n)`` suffix."""
    seen: set[str] = set()
    result: list[str] = []
    counter = 0
    for name in columns:
        if name not in seen:
            seen.add(name)
            result.append(name)
        else:
            counter += 1
            result.append(f"{name}({counter})")
    return result


def format_value(field: str, value: Any, insulate_words: Iterable[str]) -> Any:
    """Render a raw column value for display, masking sensitive fields."""
    if not isinstance(value, (bytes, bytearray, memoryview)):
        return value
    raw = bytes(value)
    if len(raw) > BLOB_LIMIT:
        return BLOB_PLACEHOLDER
    if raw == b"\x01":
        rendered = "true"
    elif raw == b"\x00":
        rendered = "false"
    else:
        rendered = raw.decode("utf-8", errors="replace")
    if field.lower() in set(insulate_words):
        return MASKED_PLACEHOLDER
    return rendered


def format_row(row: Mapping[str, Any], insulate_words: Iterable[str]) -> dict[str, Any]:
    """Render every value of a row."""
    words = set(insulate_words)
    return {key: format_value(key, value, words) for key, value in row.items()}


def build_fields(columns: Sequence[str]) -> list[dict[str, Any]]:
    """Column descriptions for the result grid; the first column is pinned left."""
    names = remove_duplicate_element(columns)
    if not names:
        raise ValueError("query returned no columns")
    fields = [
        {
            "title": name,
            "dataIndex": name,
            "width": COLUMN_WIDTH,
            "resizable": True,
            "ellipsis": True,
        }
        for name in names
    ]
    fields[0]["fixed"] = "left"
    return fields


def build_result(
    columns: Sequence[str],
    rows: Iterable[Mapping[str, Any]],
    insulate_words: Iterable[str],
) -> QueryResult:
    """Assemble the displayable result of one statement."""
    words = set(insulate_words)
    data = [format_row(row, words) for row in rows]
    return QueryResult(fields=build_fields(columns), data=data)