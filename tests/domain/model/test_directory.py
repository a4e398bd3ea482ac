from __future__ import annotations

import pytest

from legacylink.domain.model import Equipment, parse_ooi_id


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("401", 401),
        (" 502 ", 502),
        ("0", None),
        ("", None),
        ("   ", None),
        ("abc", None),
        ("-5", None),
        ("12.5", None),
        (None, None),
    ],
)
def test_parse_ooi_id(raw: str | None, expected: int | None) -> None:
    assert parse_ooi_id(raw) == expected


def test_equipment_legacy_properties() -> None:
    linkable = Equipment(id=1, name="Scanner", legacy_source_id="401")
    blank = Equipment(id=2, name="Monitor", legacy_source_id="  ")
    text = Equipment(id=3, name="Printer", legacy_source_id="abc")

    assert linkable.has_legacy_source_id
    assert linkable.legacy_ooi_id == 401
    assert not blank.has_legacy_source_id
    assert text.has_legacy_source_id
    assert text.legacy_ooi_id is None
