import logging

from app.utils.logging_redaction import RedactingFilter, install_redaction_filter, redact_message


def test_redacts_query_string_credentials():
    message = "GET https://query1.finance.yahoo.com/v8/finance/chart/^GSPC?range=5y&crumb=abc123&apikey=xyz"
    redacted = redact_message(message)

    assert "abc123" not in redacted
    assert "xyz" not in redacted
    assert "range=5y" in redacted


def test_redacts_bearer_tokens_and_key_values():
    assert redact_message("Authorization: Bearer eyJhbGciOi.x-y") == "Authorization: Bearer [REDACTED]"
    assert "s3cret" not in redact_message("api_key: s3cret")


def test_filter_rewrites_formatted_record():
    record = logging.LogRecord(
        "test", logging.INFO, __file__, 1, "fetching %s", ("/chart?token=abc",), None
    )

    assert RedactingFilter().filter(record) is True
    assert record.getMessage() == "fetching /chart?token=[REDACTED]"


def test_install_is_idempotent():
    root = logging.getLogger()
    install_redaction_filter()
    install_redaction_filter()

    assert sum(isinstance(f, RedactingFilter) for f in root.filters) == 1
