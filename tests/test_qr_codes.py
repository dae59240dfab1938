"""Tests for QR code identifiers."""

import re

import pytest

from smartshelf.utils.qr_codes import generate_qr_code_id, to_base36

QR_PATTERN = re.compile(r"^[0-9a-z]+_[0-9a-z]{6}$")


@pytest.mark.parametrize(
    "value, expected",
    [(0, "0"), (35, "z"), (36, "10"), (1295, "zz"), (1296, "100")],
)
def test_to_base36(value: int, expected: str) -> None:
    assert to_base36(value) == expected


def test_identifier_shape() -> None:
    qr_code_id: str = generate_qr_code_id(now_ms=36)

    assert qr_code_id.startswith("10_")
    assert QR_PATTERN.match(qr_code_id)


def test_identifiers_differ_within_the_same_millisecond() -> None:
    ids = {generate_qr_code_id(now_ms=1_700_000_000_000) for _ in range(50)}

    assert len(ids) == 50
