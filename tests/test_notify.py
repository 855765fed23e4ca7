import json
import urllib.error
from unittest import mock
from urllib.parse import parse_qs, urlsplit

import pytest

from yearning.crypto import hmac_sha256
from yearning.models import CoreAccount, CoreQueryOrder, CoreSqlOrder, Message
from yearning.notify import (
    MAIL_SUBJECT,
    TEST_DING,
    Notification,
    NotifyKind,
    build_mail,
    ding_payload,
    push,
    render_query_order,
    render_sql_order,
    send_ding_msg,
    send_mail,
    sign,
)

HOOK = "https://hook.example.com/robot/send?access_token=token"
HOST = "https://yearning.example.com"


def _order():
    return CoreSqlOrder(
        work_id="20240102030405123",
        username="alice",
        source="main-db",
        assigned="bob,carol",
        text="add index",
    )


def test_sign_appends_timestamp_and_signature():
    url = sign("secret", HOOK, 1700000000000)
    assert url.startswith(HOOK + "&timestamp=1700000000000&sign=")
    signature = url.split("&sign=", 1)[1]
    assert signature == hmac_sha256("1700000000000\nsecret", "secret")


def test_sign_default_timestamp_is_current_milliseconds():
    url = sign("secret", HOOK)
    query = parse_qs(urlsplit(url).query)
    assert len(query["timestamp"][0]) == 13


def test_ding_payload_is_markdown_json():
    payload = json.loads(ding_payload(TEST_DING))
    assert payload["msgtype"] == "markdown"
    assert payload["markdown"]["text"] == TEST_DING


def test_rendered_ding_is_valid_json_text():
    note = render_sql_order(NotifyKind.REJECT, _order(), HOST, "bad sql")
    text = json.loads(ding_payload(note.ding))["markdown"]["text"]
    assert "20240102030405123" in text
    assert "bad sql" in text
    assert "\n" in text


def test_render_sql_order_recipients():
    assert render_sql_order(NotifyKind.REFER, _order(), HOST).to_assigned
    assert render_sql_order(NotifyKind.PERFORM, _order(), HOST).to_assigned
    assert not render_sql_order(NotifyKind.SUCCESS, _order(), HOST).to_assigned


def test_render_sql_order_mail_texts():
    undo = render_sql_order(NotifyKind.UNDO, _order(), HOST)
    assert "已撤销" in undo.mail and "20240102030405123" in undo.mail
    perform = render_sql_order(NotifyKind.PERFORM, _order(), HOST)
    assert "bob,carol" in perform.mail
    assert HOST in perform.mail


def test_render_sql_order_rejects_query_events():
    with pytest.raises(ValueError):
        render_sql_order(NotifyKind.QUERY_AGREE, _order(), HOST)


def test_render_query_order():
    order = CoreQueryOrder(work_id="q1", username="alice", assigned="bob", text="need data")
    refer = render_query_order(NotifyKind.QUERY_REFER, order, HOST)
    assert refer.to_assigned and "need data" in refer.ding
    assert "已驳回" in render_query_order(NotifyKind.QUERY_REJECT, order, HOST).mail
    with pytest.raises(ValueError):
        render_query_order(NotifyKind.REFER, order, HOST)


def test_build_mail_headers():
    mail = build_mail("to@example.com", Message(user="from@example.com"), "<p>hi</p>")
    assert mail["To"] == "to@example.com"
    assert mail["From"] == "from@example.com"
    assert mail["Subject"] == MAIL_SUBJECT
    assert "<p>hi</p>" in mail.get_content()


def test_send_ding_msg_posts_payload():
    with mock.patch("urllib.request.urlopen") as urlopen:
        assert send_ding_msg(Message(web_hook=HOOK), "hello") is True
    request = urlopen.call_args.args[0]
    assert request.full_url == HOOK
    assert json.loads(request.data)["markdown"]["text"] == "hello"


def test_send_ding_msg_signs_when_key_set():
    with mock.patch("urllib.request.urlopen") as urlopen:
        assert send_ding_msg(Message(web_hook=HOOK, key="secret"), "hello") is True
    full_url = urlopen.call_args.args[0].full_url
    assert full_url.startswith(HOOK + "&timestamp=")
    assert "&sign=" in full_url


def test_send_ding_msg_failure_returns_false():
    with mock.patch("urllib.request.urlopen", side_effect=urllib.error.URLError("down")):
        assert send_ding_msg(Message(web_hook=HOOK), "hello") is False


def test_send_mail_uses_smtp():
    password = "password"
    message = Message(host="smtp.example.com", port=25, user="from@example.com", password=password)
    with mock.patch("smtplib.SMTP") as smtp_cls:
        assert send_mail("to@example.com", message, "<p>x</p>") is True
    smtp = smtp_cls.return_value.__enter__.return_value
    smtp.login.assert_called_once_with("from@example.com", "password")
    sent = smtp.send_message.call_args.args[0]
    assert sent["To"] == "to@example.com"


def test_send_mail_failure_returns_false():
    with mock.patch("smtplib.SMTP", side_effect=OSError("refused")):
        assert send_mail("to@example.com", Message(host="smtp.example.com"), "x") is False


def test_push_sends_through_enabled_channels():
    message = Message(mail=True, ding=True, web_hook=HOOK, host="smtp.example.com")
    recipients = [CoreAccount(email="a@example.com"), CoreAccount(email="")]
    note = Notification(ding="d", mail="m")
    with mock.patch("smtplib.SMTP"), mock.patch("urllib.request.urlopen") as urlopen:
        assert push(message, recipients, note) == (["a@example.com"], True)
    assert urlopen.call_count == 1


def test_push_with_channels_disabled_sends_nothing():
    recipients = [CoreAccount(email="a@example.com")]
    with mock.patch("smtplib.SMTP") as smtp_cls, mock.patch("urllib.request.urlopen") as urlopen:
        assert push(Message(web_hook=HOOK), recipients, Notification("d", "m")) == ([], False)
    assert smtp_cls.call_count == 0 and urlopen.call_count == 0