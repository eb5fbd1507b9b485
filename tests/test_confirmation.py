from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

from services.confirmation import (
    CODE_MAX,
    CODE_MIN,
    credential_expiry,
    issue_code,
    issue_credential_hash,
)


def test_issue_code_is_always_six_digits_in_range():
    for _ in range(10_000):
        code = issue_code()
        assert len(code) == 6
        assert code.isdigit()
        assert CODE_MIN <= int(code) <= CODE_MAX


def test_credential_hash_is_sha256_hex():
    token = issue_credential_hash(1, "maria@example.com")
    assert re.fullmatch(r"[0-9a-f]{64}", token)


def test_credential_hash_differs_for_same_inputs_and_instant():
    now = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
    first = issue_credential_hash(7, "maria@example.com", now=now)
    second = issue_credential_hash(7, "maria@example.com", now=now)
    assert first != second


def test_credential_hashes_are_unique_across_records():
    hashes = {issue_credential_hash(i, f"user{i}@example.com") for i in range(5_000)}
    assert len(hashes) == 5_000


def test_credential_expiry_is_fifteen_minutes_after_issue():
    issued_at = datetime(2025, 3, 1, 23, 50, tzinfo=timezone.utc)
    assert credential_expiry(issued_at) - issued_at == timedelta(minutes=15)
    assert credential_expiry(issued_at).day == 2
