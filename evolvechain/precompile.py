"""The ANDE token duality precompile and its error types.

The precompile lets the ANDE native token be moved as if it were an ERC-20
token. It lives at address ``0x00..fd`` and takes ``abi.encode(from, to, value)``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

ADDRESS_LENGTH = 20
ZERO_ADDRESS = bytes(ADDRESS_LENGTH)

ANDE_PRECOMPILE_ADDRESS = bytes(19) + b"\xfd"
"""Address of the ANDE token duality precompile."""

ANDE_TOKEN_ADDRESS = ZERO_ADDRESS
"""Address of the token contract allowed to call the precompile; set at genesis."""

ANDE_PRECOMPILE_BASE_GAS = 3000
ANDE_PRECOMPILE_PER_WORD_GAS = 100
INPUT_LENGTH = 96
SUCCESS_OUTPUT = b"\x01"


def _format_address(address: bytes) -> str:
    return "0x" + bytes(address).hex()


class PrecompileError(Exception):
    """A precompile call failed."""


class OutOfGasError(PrecompileError):
    """The gas limit does not cover the precompile's cost."""

    def __init__(self) -> None:
        super().__init__("out of gas")


class AndePrecompileError(Exception):
    """Base class of the ANDE precompile's domain errors."""


class UnauthorizedCaller(AndePrecompileError):
    """The caller is not the authorised token contract."""

    def __init__(self, caller: bytes) -> None:
        self.caller = bytes(caller)
        super().__init__(f"Unauthorized caller: {_format_address(self.caller)}")


class InvalidInputLength(AndePrecompileError):
    """The input is not exactly 96 bytes long."""

    def __init__(self, length: int) -> None:
        self.length = length
        super().__init__(f"Invalid input length: {length} (expected {INPUT_LENGTH})")


class TransferToZeroAddress(AndePrecompileError):
    """A transfer names the zero address as recipient."""

    def __init__(self) -> None:
        super().__init__("Transfer to zero address")


class InsufficientBalance(AndePrecompileError):
    """An account holds less than a transfer requires."""

    def __init__(self, account: bytes, required: int, available: int) -> None:
        self.account = bytes(account)
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient balance for {_format_address(self.account)}: "
            f"required {required}, available {available}"
        )


@dataclass(frozen=True)
class PrecompileOutput:
    """Successful result of a precompile call."""

    gas_used: int
    output: bytes
    reverted: bool = False


@dataclass(frozen=True)
class Precompile:
    """A named precompile bound to an address."""

    name: str
    address: bytes
    function: Callable[[bytes, int], PrecompileOutput]

    def __call__(self, input: bytes, gas_limit: int) -> PrecompileOutput:
        return self.function(bytes(input), gas_limit)


def ande_token_duality_run(input: bytes, gas_limit: int) -> PrecompileOutput:
    """Validate an ANDE transfer request and charge its gas.

    The input is three 32-byte words: ``from`` and ``to`` (addresses in the
    last 20 bytes) and ``value``. Balances are not touched here; the
    context-aware provider performs the actual transfer.
    """
    data = bytes(input)
    words = -(-len(data) // 32)
    gas_cost = ANDE_PRECOMPILE_BASE_GAS + ANDE_PRECOMPILE_PER_WORD_GAS * words
    if gas_limit < gas_cost:
        raise OutOfGasError()

    if len(data) != INPUT_LENGTH:
        raise PrecompileError(f"Invalid input length: {len(data)} (expected {INPUT_LENGTH})")

    recipient = data[44:64]
    if recipient == ZERO_ADDRESS:
        raise PrecompileError("Transfer to zero address")

    # Zero-value and non-zero transfers both succeed here; the value only
    # matters once a balance transfer is performed by the provider.
    return PrecompileOutput(gas_cost, SUCCESS_OUTPUT)


def ande_token_duality_precompile() -> Precompile:
    """Return the ANDE token duality precompile."""
    return Precompile("ANDE", ANDE_PRECOMPILE_ADDRESS, ande_token_duality_run)