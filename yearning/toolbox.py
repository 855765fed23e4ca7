"""Small helpers shared by the request handlers."""

from __future__ import annotations

import json
import random
from collections import Counter
from collections.abc import Iterable
from dataclasses import asdict, is_dataclass
from datetime import datetime
from enum import IntEnum
from typing import Any

import msgpack

from yearning.models import JsonValue, PermissionList

_WORKID_FORMAT = "%Y%m%d%H%M%S"
_APPROVAL_FORMAT = "%Y-%m-%d %H:%M"


class Kind(IntEnum):
    """Kind of access a data source grants."""

    DDL = 0
    DML = 1
    QUERY = 2


def research_del(items: Iterable[str], value: str) -> list[str]:
    """Return the items with every occurrence of ``value`` removed."""
    return [item for item in items if item != value]


def paging(page: Any, total: int) -> tuple[int, int]:
    """Offset and limit for a one-based page number given as int or text."""
    if isinstance(page, bool):
        number = 0
    elif isinstance(page, int):
        number = page
    elif isinstance(page, str):
        try:
            number = int(page)
        except ValueError:
            number = 0
    else:
        number = 0
    return number * total - total, total


def gen_workid(now: datetime | None = None) -> str:
    """Work order id: a timestamp followed by a random number below 1000."""
    moment = now or datetime.now()
    return moment.strftime(_WORKID_FORMAT) + str(random.randrange(1000))


def intersect(old: Iterable[str], new: Iterable[str]) -> list[str]:
    """Items of ``new`` that were already seen in ``old`` (or earlier in ``new``)."""
    seen = Counter(old)
    result = []
    for item in new:
        seen[item] += 1
        if seen[item] > 1:
            result.append(item)
    return result


def non_intersect(old: Iterable[str], new: Iterable[str]) -> list[str]:
    """Items of ``new`` seen for the first time."""
    seen = Counter(old)
    result = []
    for item in new:
        seen[item] += 1
        if seen[item] == 1:
            result.append(item)
    return result


def time_difference(approval_time: str, ex_query_time: int, now: datetime | None = None) -> bool:
    """Whether an approval given at ``approval_time`` has outlived its minutes.

    An approval time that cannot be read counts as long expired; a limit of
    zero or less never expires.
    """
    if not approval_time:
        return False
    try:
        approved = datetime.strptime(approval_time.strip(), _APPROVAL_FORMAT)
    except ValueError:
        approved = datetime.min
    moment = now or datetime.now()
    minutes = abs((moment - approved).total_seconds()) / 60
    return ex_query_time > 0 and minutes > ex_query_time


def _json_default(value: Any) -> Any:
    if isinstance(value, JsonValue):
        return None if value.raw is None else json.loads(value.raw)
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"cannot encode {type(value).__name__} as JSON")


def json_stringify(value: Any) -> bytes:
    """Compact JSON encoding; a raw JSON value is passed through unchanged."""
    if isinstance(value, JsonValue):
        return value.raw if value.raw is not None else b"null"
    return json.dumps(
        value, default=_json_default, ensure_ascii=False, separators=(",", ":")
    ).encode("utf-8")


def to_json(value: Any) -> str:
    """Compact JSON text of ``value``."""
    return json_stringify(value).decode("utf-8")


def merge_permissions(permission_lists: Iterable[PermissionList]) -> PermissionList:
    """Union of several permission lists, without duplicates."""
    ddl: dict[str, None] = {}
    dml: dict[str, None] = {}
    query: dict[str, None] = {}
    for permissions in permission_lists:
        ddl.update(dict.fromkeys(permissions.ddl_source))
        dml.update(dict.fromkeys(permissions.dml_source))
        query.update(dict.fromkeys(permissions.query_source))
    return PermissionList(ddl_source=list(ddl), dml_source=list(dml), query_source=list(query))


def empty_group() -> bytes:
    """JSON for an empty group list."""
    return b"[]"


def map_on(items: Iterable[str]) -> set[str]:
    """Set of the given items, for membership tests."""
    return set(items)


def to_msg(value: Any) -> bytes:
    """MessagePack encoding of ``value``."""
    return msgpack.packb(value, default=_json_default, use_bin_type=True)


def source_allowed(permissions: PermissionList, kind: Kind, source_id: str) -> bool:
    """Whether the permissions grant ``kind`` access to the data source."""
    granted = {
        Kind.DDL: permissions.ddl_source,
        Kind.DML: permissions.dml_source,
        Kind.QUERY: permissions.query_source,
    }.get(kind)
    return granted is not None and source_id in granted


def _encode(document: Any) -> bytes:
    return json.dumps(
        document, ensure_ascii=False, separators=(",", ":"), sort_keys=True
    ).encode("utf-8")


def array_remove(source: bytes | str, flag: str) -> bytes:
    """Remove every ``flag`` from a JSON array; raises ValueError on bad input."""
    document = json.loads(source)
    if not isinstance(document, list):
        raise ValueError("expected a JSON array")
    return _encode([item for item in document if item != flag])


def multi_array_remove(source: bytes | str, keys: Iterable[str], flag: str) -> bytes:
    """Remove every ``flag`` from the arrays held under the given keys of a JSON object."""
    document = json.loads(source)
    if not isinstance(document, dict):
        raise ValueError("expected a JSON object")
    for key in keys:
        items = document.get(key)
        if isinstance(items, list):
            document[key] = [item for item in items if item != flag]
    return _encode(document)