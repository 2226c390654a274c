"""Tests for index set config validation."""

import pytest

from indexsets.db.models import IndexSetConfig
from indexsets.index.validator import IndexSetValidator


@pytest.fixture
def validator(db_ops):
    return IndexSetValidator(db_ops)


class TestIndexSetValidator:
    @pytest.mark.asyncio
    async def test_valid_config(self, validator, seeded):
        config = IndexSetConfig(title="Firewall", index_prefix="firewall")
        assert await validator.validate(config) == (True, None, None)

    @pytest.mark.asyncio
    async def test_refresh_interval_too_small(self, validator):
        config = IndexSetConfig(title="Fast", index_prefix="fast", field_type_refresh_interval=999)
        valid, field, _ = await validator.validate(config)
        assert not valid
        assert field == "field_type_refresh_interval"

    @pytest.mark.asyncio
    async def test_strategy_requires_class(self, validator):
        config = IndexSetConfig(title="Rotating", index_prefix="rotating", rotation_strategy={"max_docs": 20000000})
        valid, field, _ = await validator.validate(config)
        assert not valid
        assert field == "rotation_strategy_class"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("prefix", ["messages", "messages-archive", "mess"])
    async def test_overlapping_prefixes(self, validator, seeded, prefix):
        config = IndexSetConfig(title="Overlap", index_prefix=prefix)
        valid, field, message = await validator.validate(config)
        assert not valid
        assert field == "index_prefix"
        assert "<messages>" in message

    @pytest.mark.asyncio
    async def test_own_prefix_is_not_a_conflict(self, validator, seeded):
        config = IndexSetConfig(id="audit-set", title="Audit", index_prefix="audit")
        assert (await validator.validate(config))[0] is True
