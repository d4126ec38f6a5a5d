from stylus1155.config import settings
from stylus1155.logging_config import REDACTED, redact_secrets

PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"


def test_secret_named_fields_are_masked():
    event = redact_secrets(None, "info", {"event": "deploy", "privateKey": "anything"})

    assert event == {"event": "deploy", "privateKey": REDACTED}


def test_configured_key_is_masked_in_messages(monkeypatch):
    monkeypatch.setattr(settings, "private_key", PRIVATE_KEY)

    event = redact_secrets(None, "warning", {
        "event": f"payload {PRIVATE_KEY} and {PRIVATE_KEY[2:]}",
        "status": 500,
    })

    assert PRIVATE_KEY[2:] not in event["event"]
    assert event["event"] == f"payload {REDACTED} and {REDACTED}"
    assert event["status"] == 500


def test_no_key_configured_leaves_text(monkeypatch):
    monkeypatch.setattr(settings, "private_key", "")

    assert redact_secrets(None, "info", {"event": "hello"}) == {"event": "hello"}
