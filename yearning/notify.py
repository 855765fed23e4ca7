"""Notification of work order events by e-mail and chat webhook."""

from __future__ import annotations

import logging
import smtplib
import ssl
import time
import urllib.request
from collections.abc import Iterable
from dataclasses import dataclass
from email.message import EmailMessage
from enum import IntEnum

from yearning.crypto import hmac_sha256
from yearning.models import CoreAccount, CoreQueryOrder, CoreSqlOrder, Message

log = logging.getLogger(__name__)

MAIL_SUBJECT = "Yearning消息推送!"
_TIMEOUT = 30

TEST_MAIL = """
<html>
<body>
	<div style="text-align:center;">
		<h1>Yearning 2.0</h1>
		<h2>此邮件是测试邮件！</h2>
	</div>
</body>
</html>
"""

REJECT_MAIL = """
<html>
<body>
<h1>Yearning 工单驳回通知</h1>
<br><p>工单号: %s</p>
<br><p>发起人: %s</p>
<br><p>地址: <a href="%s">%s</a></p>
<br><p>状态: 驳回</p>
<br><p>驳回说明: %s</p>
</body>
</html>
"""

ORDER_MAIL = """
<html>
<body>
<h1>Yearning 工单%s通知</h1>
<br><p>工单号: %s</p>
<br><p>发起人: %s</p>
<br><p>地址: <a href="%s">%s</a></p>
<br><p>状态: %s</p>
</body>
</html>
"""

TRANSFER_MAIL = """
<html>
<body>
<h1>Yearning 工单%s通知</h1>
<br><p>工单号: %s</p>
<br><p>发起人: %s</p>
<br><p>下一步操作人: %s <p>
<br><p>地址: <a href="%s">%s</a></p>
<br><p>状态: %s</p>
</body>
</html>
"""

TEST_DING = "# Yearning 测试！"

REFER_DING = r"# Yearning工单提交通知 #  \n \n  **工单编号:**  %s \n \n **数据源:** %s \n \n **提交人员:**  <font color=\"#78beea\">%s</font> \n \n **下一步操作人:** <font color=\"#fe8696\">%s</font> \n \n **平台地址:** %s \n \n **工单说明:**  %s \n \n **状态:** <font color=\"#1abefa\">已提交</font> \n \n "
REJECT_DING = r"# Yearning工单驳回通知 #  \n \n  **工单编号:**  %s \n \n **数据源:** %s \n \n **提交人员:**  <font color=\"#78beea\">%s</font> \n \n **下一步操作人:** <font color=\"#fe8696\">%s</font> \n \n **平台地址:** %s \n \n **工单说明:**  %s \n \n **状态:** <font color=\"#df117e\">驳回</font>  \n \n **驳回说明:**  %s "
SUCCESS_DING = r"# Yearning工单执行通知 #  \n \n  **工单编号:**  %s \n \n **数据源:** %s \n \n **提交人员:**  <font color=\"#78beea\">%s</font> \n \n **执行人:** <font color=\"#fe8696\">%s</font> \n \n **平台地址:** %s \n \n **工单说明:**  %s \n \n **状态:** <font color=\"#3fd2bd\">执行成功</font>"
FAILED_DING = r"# Yearning工单执行通知 #  \n \n  **工单编号:**  %s \n \n **数据源:** %s \n \n **提交人员:**  <font color=\"#78beea\">%s</font> \n \n **执行人:** <font color=\"#fe8696\">%s</font> \n \n **平台地址:** %s \n \n **工单说明:**  %s \n \n **状态:** <font color=\"#ea2426\">执行失败</font>"
PERFORM_DING = r"# Yearning工单转交通知 #  \n \n  **工单编号:**  %s \n \n **数据源:** %s \n \n **提交人员:**  <font color=\"#78beea\">%s</font> \n \n **下一步操作人:** <font color=\"#fe8696\">%s</font> \n \n **平台地址:** %s \n \n **工单说明:**  %s \n \n **状态:** <font color=\"#de4943\">已转交至下一操作人</font>"
BACK_DING = r"# Yearning工单执行通知 #  \n \n  **工单编号:**  %s \n \n **数据源:** %s  \n \n **提交人员:**  <font color=\"#78beea\">%s</font> \n \n **下一步操作人:** <font color=\"#fe8696\">%s</font> \n \n **平台地址:** %s \n \n **工单说明:**  %s \n \n **状态:** <font color=\"#ea2426\">已撤回</font>"

QUERY_REFER_DING = r"# Yearning查询申请通知 #  \n \n  **工单编号:**  %s \n \n **提交人员:**  <font color=\"#78beea\">%s</font> \n \n **审核人员:** <font color=\"#fe8696\">%s</font> \n \n **平台地址:** %s \n \n **工单说明:**  %s \n \n **状态:** <font color=\"#1abefa\">已提交</font>"
QUERY_SUCCESS_DING = r"# Yearning查询申请通知 #  \n \n  **工单编号:**  %s \n \n **提交人员:**  <font color=\"#78beea\">%s</font> \n \n **审核人员:** <font color=\"#fe8696\">%s</font> \n \n **平台地址:** %s \n \n **状态:** <font color=\"#3fd2bd\">同意</font>"
QUERY_REJECT_DING = r"# Yearning查询申请通知 #  \n \n  **工单编号:**  %s \n \n **提交人员:**  <font color=\"#78beea\">%s</font> \n \n **审核人员:** <font color=\"#fe8696\">%s</font> \n \n **平台地址:** %s \n \n **状态:** <font color=\"#df117e\">已驳回</font>"

_DING_ENVELOPE = '{"msgtype": "markdown", "markdown": {"title": "Yearning sql审计平台", "text": "%s"}}'


class NotifyKind(IntEnum):
    """Work order event that triggers a notification."""

    REJECT = 0
    SUCCESS = 1
    REFER = 2
    FAILED = 4
    PERFORM = 5
    UNDO = 6
    QUERY_REFER = 7
    QUERY_AGREE = 8
    QUERY_REJECT = 9


@dataclass(frozen=True)
class Notification:
    """Rendered texts of one event.

    ``to_assigned`` tells that the assigned auditors, not the submitter,
    are the mail recipients.
    """

    ding: str
    mail: str
    to_assigned: bool = False


def sign(secret: str, hook: str, timestamp: int | None = None) -> str:
    """Append the signed timestamp parameters to a webhook URL."""
    ts = time.time_ns() // 1_000_000 if timestamp is None else timestamp
    signature = hmac_sha256(f"{ts}\n{secret}", secret)
    return f"{hook}&timestamp={ts}&sign={signature}"


def ding_payload(text: str) -> str:
    """Markdown message body for the chat webhook."""
    return _DING_ENVELOPE % text


def _insecure_context() -> ssl.SSLContext:
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


def send_ding_msg(message: Message, text: str) -> bool:
    """Post a markdown message to the webhook; failures are logged."""
    hook = sign(message.key, message.web_hook) if message.key else message.web_hook
    request = urllib.request.Request(
        hook,
        data=ding_payload(text).encode("utf-8"),
        method="POST",
        headers={"Content-Type": "application/json; charset=utf-8"},
    )
    try:
        with urllib.request.urlopen(request, context=_insecure_context(), timeout=_TIMEOUT) as response:
            response.read()
    except (OSError, ValueError) as exc:
        log.error("webhook request failed: %s", exc)
        return False
    return True


def build_mail(addr: str, message: Message, body: str) -> EmailMessage:
    """HTML mail from the configured sender to ``addr``."""
    mail = EmailMessage()
    mail["From"] = message.user
    mail["To"] = addr
    mail["Subject"] = MAIL_SUBJECT
    mail.set_content(body, subtype="html")
    return mail


def _login(smtp: smtplib.SMTP, message: Message) -> None:
    if message.user and smtp.has_extn("auth"):
        smtp.login(message.user, message.password)


def send_mail(addr: str, message: Message, body: str) -> bool:
    """Send an HTML mail through the configured server; failures are logged."""
    mail = build_mail(addr, message, body)
    try:
        if message.ssl:
            with smtplib.SMTP_SSL(
                message.host, message.port, context=_insecure_context(), timeout=_TIMEOUT
            ) as smtp:
                _login(smtp, message)
                smtp.send_message(mail)
        else:
            with smtplib.SMTP(message.host, message.port, timeout=_TIMEOUT) as smtp:
                smtp.ehlo()
                if smtp.has_extn("starttls"):
                    smtp.starttls(context=ssl.create_default_context())
                    smtp.ehlo()
                _login(smtp, message)
                smtp.send_message(mail)
    except (OSError, smtplib.SMTPException) as exc:
        log.error("send mail failed: %s", exc)
        return False
    return True


def render_sql_order(
    kind: NotifyKind, order: CoreSqlOrder, host: str, reject: str = ""
) -> Notification:
    """Texts for an event on a SQL work order."""
    o = order
    common = (o.work_id, o.source, o.username, o.assigned, host, o.text)
    match NotifyKind(kind):
        case NotifyKind.REJECT:
            return Notification(
                REJECT_DING % (*common, reject),
                REJECT_MAIL % (o.work_id, o.username, host, host, reject),
            )
        case NotifyKind.SUCCESS:
            return Notification(
                SUCCESS_DING % common,
                ORDER_MAIL % ("执行", o.work_id, o.username, host, host, "执行成功"),
            )
        case NotifyKind.REFER:
            return Notification(
                REFER_DING % common,
                ORDER_MAIL % ("提交", o.work_id, o.username, host, host, "已提交"),
                to_assigned=True,
            )
        case NotifyKind.FAILED:
            return Notification(
                FAILED_DING % common,
                ORDER_MAIL % ("执行", o.work_id, o.username, host, host, "执行失败"),
            )
        case NotifyKind.PERFORM:
            return Notification(
                PERFORM_DING % common,
                TRANSFER_MAIL
                % ("转交", o.work_id, o.username, o.assigned, host, host, "已转交至下一操作人"),
                to_assigned=True,
            )
        case NotifyKind.UNDO:
            return Notification(
                BACK_DING % common,
                ORDER_MAIL % ("提交", o.work_id, o.username, host, host, "已撤销"),
            )
    raise ValueError(f"{kind!r} is not a SQL order event")


def render_query_order(kind: NotifyKind, order: CoreQueryOrder, host: str) -> Notification:
    """Texts for an event on a query request."""
    o = order
    match NotifyKind(kind):
        case NotifyKind.QUERY_REFER:
            return Notification(
                QUERY_REFER_DING % (o.work_id, o.username, o.assigned, host, o.text),
                ORDER_MAIL % ("查询申请", o.work_id, o.username, host, host, "已提交"),
                to_assigned=True,
            )
        case NotifyKind.QUERY_AGREE:
            return Notification(
                QUERY_SUCCESS_DING % (o.work_id, o.username, o.assigned, host),
                ORDER_MAIL % ("查询申请", o.work_id, o.username, host, host, "已同意"),
            )
        case NotifyKind.QUERY_REJECT:
            return Notification(
                QUERY_REJECT_DING % (o.work_id, o.username, o.assigned, host),
                ORDER_MAIL % ("查询申请", o.work_id, o.username, host, host, "已驳回"),
            )
    raise ValueError(f"{kind!r} is not a query order event")


def push(
    message: Message, recipients: Iterable[CoreAccount], notification: Notification
) -> tuple[list[str], bool]:
    """Deliver a notification through the enabled channels.

    Returns the addresses mailed successfully and whether the webhook post
    succeeded.
    """
    mailed: list[str] = []
    if message.mail:
        for account in recipients:
            if account.email and send_mail(account.email, message, notification.mail):
                mailed.append(account.email)
    ding_sent = False
    if message.ding and message.web_hook:
        ding_sent = send_ding_msg(message, notification.ding)
    return mailed, ding_sent