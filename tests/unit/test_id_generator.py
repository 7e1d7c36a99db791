"""Tests for mk_common.id_generator and mk_common.datetime_utils."""

from datetime import UTC, datetime, timedelta

import pytest

from src.mk_common.datetime_utils import hours_from_now, utc_now
from src.mk_common.id_generator import SnowflakeIdGenerator, generate_order_number, to_base36


class TestSnowflakeIdGenerator:
    def test_returns_str(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=1)
        result = gen.next_id()
        assert isinstance(result, str)

    def test_unique_ids(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=1)
        ids = {gen.next_id() for _ in range(1000)}
        assert len(ids) == 1000

    def test_monotonically_increasing(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=1)
        prev = int(gen.next_id())
        for _ in range(100):
            current = int(gen.next_id())
            assert current > prev
            prev = current

    def test_machine_id_range(self) -> None:
        with pytest.raises(ValueError):
            SnowflakeIdGenerator(machine_id=1024)


class TestOrderNumber:
    def test_prefix_and_alphabet(self) -> None:
        number = generate_order_number()
        assert number.startswith("ORD-")
        assert number[4:].isalnum()
        assert number[4:].upper() == number[4:]

    def test_unique(self) -> None:
        assert len({generate_order_number() for _ in range(500)}) == 500

    def test_base36(self) -> None:
        assert to_base36(0) == "0"
        assert to_base36(35) == "Z"
        assert to_base36(36) == "10"


class TestUtcNow:
    def test_returns_aware_datetime(self) -> None:
        now = utc_now()
        assert isinstance(now, datetime)
        assert now.tzinfo is not None

    def test_is_utc(self) -> None:
        now = utc_now()
        assert now.utcoffset() == timedelta(0)
        assert now.tzinfo == UTC

    def test_hours_from_now(self) -> None:
        delta = hours_from_now(24) - utc_now()
        assert timedelta(hours=23, minutes=59) < delta <= timedelta(hours=24)
