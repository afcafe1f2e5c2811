import pytest

from evolvechain.config import (
    DEFAULT_MAX_TXPOOL_BYTES,
    DEFAULT_MAX_TXPOOL_GAS,
    EvolveConfig,
    current_block_gas_limit,
    set_current_block_gas_limit,
)


@pytest.fixture
def restore_gas_limit():
    saved = current_block_gas_limit()
    yield
    set_current_block_gas_limit(saved)


def test_default_config_serialises_documented_values():
    assert EvolveConfig().to_dict() == {
        "max_txpool_bytes": 1_939_865,
        "max_txpool_gas": 30_000_000,
    }


def test_default_config_uses_defaults():
    config = EvolveConfig()
    assert config.max_txpool_bytes == DEFAULT_MAX_TXPOOL_BYTES
    assert config.max_txpool_gas == DEFAULT_MAX_TXPOOL_GAS


def test_config_with_bytes_only_keeps_default_gas():
    config = EvolveConfig(max_txpool_bytes=4096)
    assert config.max_txpool_bytes == 4096
    assert config.max_txpool_gas == DEFAULT_MAX_TXPOOL_GAS


def test_config_with_bytes_and_gas():
    config = EvolveConfig(max_txpool_bytes=4096, max_txpool_gas=21_000)
    assert (config.max_txpool_bytes, config.max_txpool_gas) == (4096, 21_000)


def test_config_dict_round_trip():
    config = EvolveConfig(max_txpool_bytes=123, max_txpool_gas=456)
    assert EvolveConfig.from_dict(config.to_dict()) == config


def test_config_from_dict_missing_field():
    with pytest.raises(ValueError, match="max_txpool_gas"):
        EvolveConfig.from_dict({"max_txpool_bytes": 1})


@pytest.mark.parametrize("value", [-1, 2**64])
def test_config_rejects_out_of_range(value):
    with pytest.raises(ValueError):
        EvolveConfig(max_txpool_bytes=value)


def test_config_rejects_non_integer():
    with pytest.raises(TypeError):
        EvolveConfig(max_txpool_gas="many")


def test_initial_gas_limit_is_txpool_cap(restore_gas_limit):
    assert current_block_gas_limit() == DEFAULT_MAX_TXPOOL_GAS


def test_gas_limit_round_trip(restore_gas_limit):
    set_current_block_gas_limit(15_000_000)
    assert current_block_gas_limit() == 15_000_000
    set_current_block_gas_limit(0)
    assert current_block_gas_limit() == 0


def test_gas_limit_rejects_negative(restore_gas_limit):
    before = current_block_gas_limit()
    with pytest.raises(ValueError):
        set_current_block_gas_limit(-5)
    assert current_block_gas_limit() == before