# yearning

Building blocks for a SQL audit platform: work order and data source
records, settings loading, password hashing and secret encryption, session
tokens, notification rendering and delivery, query result formatting and
approval workflow rules.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

### `yearning.models`

Dataclass records: `CoreAccount`, `CoreSqlOrder`, `CoreQueryOrder`,
`CoreQueryRecord`, `CoreDataSource`, `CoreGrained`, `CoreRoleGroup`,
`CoreWorkflowTpl`, `CoreWorkflowDetail` and `CoreOrderComment`.

`JsonValue` holds the raw text of a JSON column: `decode()` parses it,
`to_db()` gives `None` for empty content and text otherwise, and
`JsonValue.from_db(value)` accepts bytes or `None` (anything else raises
`TypeError`).

The settings documents `Other`, `Message`, `Ldap` and `PermissionList` each
have `from_dict(data)` and `to_dict()`.

### `yearning.config`

- `load_config(path, environ=None)` reads a TOML file with `general`,
  `mysql` and `oidc` tables into a `Config` (`GeneralConfig`,
  `MysqlConfig`, `OidcConfig`). Key names are matched ignoring case and
  underscores. If the file cannot be read or parsed, the error is raised,
  unless `MYSQL_USER` is set in the environment, in which case an empty
  `Config` is returned.
- `Config.dsn()` builds the MySQL connection string from the `mysql` table.
- `resolve_settings(config, environ=None)` returns `(secret, dsn)`. When
  `MYSQL_USER` is set, both come from `SECRET_KEY`, `MYSQL_USER`,
  `MYSQL_PASSWORD`, `MYSQL_ADDR` and `MYSQL_DB`. Otherwise they come from
  the configuration.

### `yearning.crypto`

- `django_encrypt(password, salt)` produces a
  `pbkdf2_sha256$120000$<salt>$<hash>` string.
- `django_check_password(stored, password)` checks a password against such
  a string.
- `encrypt(plain, key)` and `decrypt(cipher_text, key)` apply AES-CBC with a
  16-byte key, which also serves as the IV, and base64. `encrypt` returns `""`
  when the key is not 16 bytes. `decrypt` returns `""` when the data cannot
  be decrypted.
- `pkcs7_pad`, `pkcs7_unpad`, `hmac_sha256` (base64 output) and
  `get_random()` (a 12-character alphanumeric salt).

### `yearning.auth`

- `jwt_auth(token, secret)` signs an HS256 token that is valid for eight
  hours, from a `Token(username, real_name, is_record)`.
- `ws_token_parse(token, secret)` verifies a token and returns its claims. It
  raises `jwt.InvalidTokenError` on failure.
- `ws_token_is_valid(token, secret)` returns a bool.
- `Token.from_claims(claims)` reads the identity back from the claims.

### `yearning.toolbox`

List helpers:

- `research_del`, `intersect`, `non_intersect` and `map_on`.
- `paging(page, total)` returns `(offset, limit)` for a one-based page given
  as an int or a string.
- `gen_workid(now=None)` builds a work order id.
- `time_difference(approval_time, ex_query_time, now=None)` tells whether a
  query approval has expired.

Encoding:

- `json_stringify`, `to_json`, `to_msg` (MessagePack) and `empty_group`.

Permissions:

- `merge_permissions` and `source_allowed(permissions, kind, source_id)`,
  where `kind` is a `Kind` (`DDL`, `DML`, `QUERY`).

JSON arrays:

- `array_remove(source, flag)` and `multi_array_remove(source, keys, flag)`.

### `yearning.notify`

Rendering:

- `NotifyKind` names the order events.
- `render_sql_order(kind, order, host, reject="")` and
  `render_query_order(kind, order, host)` return a `Notification` that holds
  the webhook markdown text and the HTML mail body.
- `to_assigned` tells whether the assigned auditors, rather than the
  submitter, should receive the mail.

Webhook delivery:

- `sign(secret, hook, timestamp=None)` appends signed timestamp parameters to
  a webhook URL.
- `ding_payload(text)` wraps the markdown text in the JSON message body.
- `send_ding_msg(message, text)` posts the body to the webhook. It does not
  verify TLS certificates.

Mail delivery:

- `build_mail(addr, message, body)` builds the HTML mail.
- `send_mail(addr, message, body)` sends it over SMTP, or SMTPS when
  `message.ssl` is set.

Delivery functions log failures and return `False` instead of raising.

`push(message, recipients, notification)` sends through the channels enabled
in `Message`. It returns the list of addresses mailed and whether the webhook
post succeeded.

### `yearning.query`

- `QueryType` lists the socket frame kinds.
- `QueryRef.from_msgpack(payload)` decodes a client frame. It raises
  `ValueError` on malformed input.
- `QueryResults.to_msgpack()` encodes the reply frame.
- `build_result(columns, rows, insulate_words)` turns raw rows into a
  `QueryResult`. It does the following:
  - gives repeated column names a `(n)` suffix;
  - pins the first column left;
  - renders `b"\x01"` and `b"\x00"` as `"true"` and `"false"`;
  - replaces byte values over 1 MiB with a placeholder;
  - masks the byte values of columns whose lower-cased name is in
    `insulate_words`.
- `format_value`, `format_row`, `build_fields` and
  `remove_duplicate_element` are also available on their own.

### `yearning.workflow`

- `parse_steps(raw)` reads a workflow template into `Step` objects.
- `next_auditors(steps, flag, user)` returns an `AuditDecision`: either the
  next stage's auditors, or `is_execute=True` at the last stage. It raises
  `ValueError` when the stage does not exist or the user is not one of its
  auditors.
- `agree_message`, `reject_comment` and `time_add(hours, now=None)` support
  these decisions.
- `Confirm` holds an auditor's request.

## Example

```python
from yearning.crypto import django_encrypt, django_check_password
from yearning.auth import Token, jwt_auth, ws_token_parse

stored = django_encrypt("password", "saltsaltsalt")
assert django_check_password(stored, "password")

signed = jwt_auth(Token(username="admin", real_name="Admin", is_record=True), "secret")
claims = ws_token_parse(signed, "secret")
assert claims["name"] == "admin"
```

## What this package does not do

This package is a library. It has no:

- command;
- web server or HTTP routes;
- websocket endpoint;
- database connection or storage layer.

It does not run queries against MySQL or call a SQL execution engine. The
records in `yearning.models` are plain dataclasses, and the caller loads and
saves them.