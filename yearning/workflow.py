"""Approval steps of SQL work orders."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from yearning.models import JsonValue

ORDER_AGREE_MESSAGE = "审核通过,并已转交至 %s"
ORDER_REJECT_MESSAGE = "已驳回"
ORDER_AGREE_STATE = "工单已转交！"
ORDER_REJECT_STATE = "工单已驳回！"
ORDER_KILL_STATE = "延时工单已终止！"
ORDER_EXECUTE_STATE = "审核通过并执行！"
ORDER_DELAY_KILL_DETAIL = "kill指令已发送!将在到达执行时间时自动取消，状态已更改为执行失败！"
ORDER_NOT_SEARCH = "该阶段已有人操作通过/你不是该阶段审核人！操作不符合幂等性"


@dataclass
class Step:
    """One stage of an approval workflow."""

    auditor: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Step:
        if not isinstance(data, Mapping):
            raise ValueError("workflow step must be an object")
        auditor: Any = None
        for key, value in data.items():
            if key.lower() == "auditor":
                auditor = value
        if auditor is None:
            return cls()
        if not isinstance(auditor, list):
            raise ValueError("auditor must be a list")
        return cls(auditor=[str(a) for a in auditor])


@dataclass
class Confirm:
    """An auditor's action on a work order."""

    work_id: str = ""
    page: int = 0
    flag: int = 0
    text: str = ""
    tp: str = ""
    source_id: str = ""


@dataclass(frozen=True)
class AuditDecision:
    """Who takes the order next, and whether it is to be executed now."""

    assigned: list[str]
    is_execute: bool


def parse_steps(raw: bytes | str | JsonValue) -> list[Step]:
    """Parse a stored workflow template; raises ValueError on malformed JSON."""
    document = raw.decode() if isinstance(raw, JsonValue) else json.loads(raw)
    if not isinstance(document, list):
        raise ValueError("workflow template must be a JSON array")
    return [Step.from_dict(item) for item in document]


def next_auditors(steps: Sequence[Step], flag: int, user: str) -> AuditDecision:
    """Decide the outcome of ``user`` approving stage ``flag``.

    Raises ValueError when the stage does not exist or the user is not one
    of its auditors.
    """
    if not 0 <= flag < len(steps):
        raise ValueError(ORDER_NOT_SEARCH)
    current = steps[flag].auditor
    if user not in ",".join(current):
        raise ValueError(ORDER_NOT_SEARCH)
    if flag + 1 == len(steps):
        return AuditDecision(assigned=list(current), is_execute=True)
    return AuditDecision(assigned=list(steps[flag + 1].auditor), is_execute=False)


def agree_message(assigned: Sequence[str]) -> str:
    """Workflow log line for an approval handed on to ``assigned``."""
    return ORDER_AGREE_MESSAGE % " ".join(assigned)


def reject_comment(text: str) -> str:
    """Comment recorded when an order is rejected."""
    return f"驳回理由: {text}"


def time_add(hours: str | float, now: datetime | None = None) -> str:
    """Date ``hours`` away from now; unreadable offsets count as zero."""
    try:
        offset = float(hours)
    except (TypeError, ValueError):
        offset = 0.0
    if offset != offset:
        offset = 0.0
    moment = now or datetime.now()
    return (moment + timedelta(hours=offset)).strftime("%Y-%m-%d")