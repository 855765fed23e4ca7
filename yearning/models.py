"""Database records and the JSON settings documents stored inside them."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class JsonValue:
    """Raw JSON text held in a JSON column; ``None`` stands for SQL NULL."""

    raw: bytes | None = None

    def decode(self) -> Any:
        """Parse the held JSON text; empty or NULL content is a decode error."""
        return json.loads(self.raw or b"")

    def to_db(self) -> str | None:
        """Value written to the database: NULL when empty, text otherwise."""
        if not self.raw:
            return None
        return self.raw.decode("utf-8")

    @classmethod
    def from_db(cls, value: Any) -> JsonValue:
        """Build from a value read from the database (bytes or NULL)."""
        if value is None:
            return cls(None)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls(bytes(value))
        raise TypeError("invalid scan source")


@dataclass
class CoreAccount:
    id: int = 0
    username: str = ""
    password: str = ""
    department: str = ""
    real_name: str = ""
    email: str = ""
    is_recorder: int = 2


@dataclass
class CoreSqlOrder:
    id: int = 0
    work_id: str = ""
    username: str = ""
    status: int = 0
    type: int = 0  # 1 dml, 0 ddl
    backup: int = 0
    idc: str = ""
    source: str = ""
    source_id: str = ""
    data_base: str = ""
    table: str = ""
    date: str = ""
    sql: str = ""
    text: str = ""
    assigned: str = ""
    delay: str = "none"
    real_name: str = ""
    execute_time: str = ""
    time: str = ""
    current_step: int = 1
    relevant: JsonValue = field(default_factory=JsonValue)
    osc_info: str = ""
    file: str = ""


@dataclass
class CoreQueryOrder:
    id: int = 0
    work_id: str = ""
    username: str = ""
    date: str = ""
    approval_time: str = ""
    text: str = ""
    assigned: str = ""
    real_name: str = ""
    export: int = 0
    source_id: str = ""
    status: int = 0


@dataclass
class CoreQueryRecord:
    id: int = 0
    work_id: str = ""
    sql: str = ""
    ex_time: int = 0
    time: str = ""
    source: str = ""
    schema: str = ""


@dataclass
class CoreDataSource:
    id: int = 0
    idc: str = ""
    source: str = ""
    ip: str = ""
    port: int = 0
    username: str = ""
    password: str = ""
    is_query: int = 0  # 0 write, 1 read, 2 read/write
    flow_id: int = 0
    source_id: str = ""
    exclude_db_list: str = ""
    insulate_word_list: str = ""
    principal: str = ""


@dataclass
class CoreGrained:
    id: int = 0
    username: str = ""
    group: JsonValue = field(default_factory=JsonValue)


@dataclass
class CoreRoleGroup:
    id: int = 0
    name: str = ""
    permissions: JsonValue = field(default_factory=JsonValue)
    group_id: str = ""


@dataclass
class CoreWorkflowTpl:
    id: int = 0
    source: str = ""
    steps: JsonValue = field(default_factory=JsonValue)


@dataclass
class CoreWorkflowDetail:
    id: int = 0
    work_id: str = ""
    username: str = ""
    time: str = ""
    action: str = ""


@dataclass
class CoreOrderComment:
    id: int = 0
    work_id: str = ""
    username: str = ""
    content: str = ""
    time: str = ""


@dataclass
class Other:
    limit: int = 0
    idc: list[str] = field(default_factory=list)
    query: bool = False
    register: bool = False
    export: bool = False
    ex_query_time: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Other:
        return cls(
            limit=int(data.get("limit", 0)),
            idc=list(data.get("idc") or []),
            query=bool(data.get("query", False)),
            register=bool(data.get("register", False)),
            export=bool(data.get("export", False)),
            ex_query_time=int(data.get("ex_query_time", 0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "limit": self.limit,
            "idc": list(self.idc),
            "query": self.query,
            "register": self.register,
            "export": self.export,
            "ex_query_time": self.ex_query_time,
        }


@dataclass
class Message:
    web_hook: str = ""
    host: str = ""
    port: int = 0
    user: str = ""
    password: str = ""
    to_user: str = ""
    mail: bool = False
    ding: bool = False
    ssl: bool = False
    push_type: bool = False
    key: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        return cls(
            web_hook=str(data.get("web_hook", "")),
            host=str(data.get("host", "")),
            port=int(data.get("port", 0)),
            user=str(data.get("user", "")),
            password=str(data.get("password", "")),
            to_user=str(data.get("to_user", "")),
            mail=bool(data.get("mail", False)),
            ding=bool(data.get("ding", False)),
            ssl=bool(data.get("ssl", False)),
            push_type=bool(data.get("push_type", False)),
            key=str(data.get("key", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "web_hook": self.web_hook,
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "to_user": self.to_user,
            "mail": self.mail,
            "ding": self.ding,
            "ssl": self.ssl,
            "push_type": self.push_type,
            "key": self.key,
        }


@dataclass
class Ldap:
    url: str = ""
    user: str = ""
    password: str = ""
    type: str = ""
    sc: str = ""
    ldaps: bool = False
    map: str = ""
    test_user: str = ""
    test_password: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Ldap:
        return cls(
            url=str(data.get("url", "")),
            user=str(data.get("user", "")),
            password=str(data.get("password", "")),
            type=str(data.get("type", "")),
            sc=str(data.get("sc", "")),
            ldaps=bool(data.get("ldaps", False)),
            map=str(data.get("map", "")),
            test_user=str(data.get("test_user", "")),
            test_password=str(data.get("test_password", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "user": self.user,
            "password": self.password,
            "type": self.type,
            "sc": self.sc,
            "ldaps": self.ldaps,
            "map": self.map,
            "test_user": self.test_user,
            "test_password": self.test_password,
        }


@dataclass
class PermissionList:
    ddl_source: list[str] = field(default_factory=list)
    dml_source: list[str] = field(default_factory=list)
    query_source: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PermissionList:
        return cls(
            ddl_source=list(data.get("ddl_source") or []),
            dml_source=list(data.get("dml_source") or []),
            query_source=list(data.get("query_source") or []),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "ddl_source": list(self.ddl_source),
            "dml_source": list(self.dml_source),
            "query_source": list(self.query_source),
        }