"""Context-aware precompile provider that performs native ANDE transfers.

ANDE is the chain's native currency, held in account balances. The provider
answers calls to the ANDE precompile address by moving balances through a
journal, and delegates every other address to a set of standard precompiles
chosen by hardfork.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, Mapping, Optional, Protocol

from evolvechain.precompile import (
    ADDRESS_LENGTH,
    ANDE_PRECOMPILE_ADDRESS,
    INPUT_LENGTH,
    SUCCESS_OUTPUT,
    ZERO_ADDRESS,
    AndePrecompileError,
    InsufficientBalance,
    OutOfGasError,
    Precompile,
    PrecompileError,
)

_log = logging.getLogger(__name__)

_BASE_GAS = 3000
_PER_WORD_GAS = 100
_U256_MAX = 2**256 - 1


class SpecId(enum.IntEnum):
    """Ethereum hardforks, in activation order."""

    FRONTIER = 0
    FRONTIER_THAWING = 1
    HOMESTEAD = 2
    DAO_FORK = 3
    TANGERINE = 4
    SPURIOUS_DRAGON = 5
    BYZANTIUM = 6
    CONSTANTINOPLE = 7
    PETERSBURG = 8
    ISTANBUL = 9
    MUIR_GLACIER = 10
    BERLIN = 11
    LONDON = 12
    ARROW_GLACIER = 13
    GRAY_GLACIER = 14
    MERGE = 15
    SHANGHAI = 16
    CANCUN = 17
    PRAGUE = 18
    OSAKA = 19


@dataclass
class Gas:
    """Gas accounting for one call."""

    limit: int
    remaining: int = field(init=False)

    def __post_init__(self) -> None:
        self.remaining = self.limit

    @property
    def spent(self) -> int:
        return self.limit - self.remaining

    def _record_cost(self, cost: int) -> bool:
        if cost > self.remaining:
            return False
        self.remaining -= cost
        return True


@dataclass
class InterpreterResult:
    """Outcome of a precompile call.

    ``result`` is one of ``"Return"``, ``"Revert"``, ``"PrecompileOOG"`` or
    ``"PrecompileError"``.
    """

    result: str
    gas: Gas
    output: bytes = b""


@dataclass(frozen=True)
class CallInputs:
    """Inputs of a call that reaches a precompile."""

    input: bytes
    caller_address: bytes = ZERO_ADDRESS
    target_address: bytes = ZERO_ADDRESS
    call_value: int = 0


class Journal(Protocol):
    def transfer(self, sender: bytes, recipient: bytes, value: int) -> None: ...


def _address(value: bytes) -> bytes:
    address = bytes(value)
    if len(address) != ADDRESS_LENGTH:
        raise ValueError(f"address must be {ADDRESS_LENGTH} bytes, got {len(address)}")
    return address


def _u256(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"amount must be an integer, got {type(value).__name__}")
    if not 0 <= value <= _U256_MAX:
        raise ValueError(f"amount out of 256-bit range: {value}")
    return value


class InMemoryJournal:
    """Account balances kept in memory, with journal-style transfers."""

    def __init__(self, balances: Optional[Mapping[bytes, int]] = None) -> None:
        self._balances: dict[bytes, int] = {
            _address(account): _u256(amount) for account, amount in (balances or {}).items()
        }

    def balance(self, address: bytes) -> int:
        """Return the balance of ``address``; unknown accounts hold zero."""
        return self._balances.get(_address(address), 0)

    def transfer(self, sender: bytes, recipient: bytes, value: int) -> None:
        """Move ``value`` from ``sender`` to ``recipient``.

        Raises InsufficientBalance when the sender holds too little and
        OverflowError when the recipient's balance would exceed 256 bits.
        """
        sender = _address(sender)
        recipient = _address(recipient)
        value = _u256(value)
        available = self.balance(sender)
        if available < value:
            raise InsufficientBalance(sender, value, available)
        if sender == recipient:
            return
        credited = self.balance(recipient) + value
        if credited > _U256_MAX:
            raise OverflowError(f"balance overflow for 0x{recipient.hex()}")
        self._balances[sender] = available - value
        self._balances[recipient] = credited


StandardPrecompiles = Callable[[SpecId], Iterable[Precompile]]


def _no_standard_precompiles(spec: SpecId) -> Iterable[Precompile]:
    return ()


class AndePrecompileProvider:
    """Precompile provider with the ANDE native-transfer precompile."""

    def __init__(
        self,
        spec: SpecId = SpecId.CANCUN,
        standard_precompiles: Optional[StandardPrecompiles] = None,
    ) -> None:
        self._factory = standard_precompiles or _no_standard_precompiles
        self._spec = SpecId(spec)
        self._precompiles = self._load(self._spec)

    def _load(self, spec: SpecId) -> dict[bytes, Precompile]:
        return {_address(p.address): p for p in self._factory(spec)}

    @property
    def spec(self) -> SpecId:
        return self._spec

    def set_spec(self, spec: SpecId) -> bool:
        """Switch to another hardfork; return False if it is already active."""
        spec = SpecId(spec)
        if spec == self._spec:
            return False
        self._precompiles = self._load(spec)
        self._spec = spec
        return True

    def run(
        self,
        journal: Journal,
        address: bytes,
        inputs: CallInputs,
        is_static: bool,
        gas_limit: int,
    ) -> Optional[InterpreterResult]:
        """Run the precompile at ``address``, or return None if there is none.

        Fatal failures of the ANDE precompile raise PrecompileError.
        """
        address = bytes(address)
        if address == ANDE_PRECOMPILE_ADDRESS:
            return self._run_ande(journal, inputs, is_static, gas_limit)
        precompile = self._precompiles.get(address)
        if precompile is None:
            return None
        return self._run_standard(precompile, inputs, gas_limit)

    def _run_ande(
        self, journal: Journal, inputs: CallInputs, is_static: bool, gas_limit: int
    ) -> InterpreterResult:
        if is_static:
            raise PrecompileError("Cannot modify state in static call")

        data = bytes(inputs.input)
        if len(data) != INPUT_LENGTH:
            raise PrecompileError(
                f"Invalid input: expected {INPUT_LENGTH} bytes, got {len(data)}"
            )

        sender = data[12:32]
        recipient = data[44:64]
        value = int.from_bytes(data[64:96], "big")

        gas_cost = _BASE_GAS + _PER_WORD_GAS * 3
        if gas_limit < gas_cost:
            raise PrecompileError("Insufficient gas")

        if recipient == ZERO_ADDRESS:
            raise PrecompileError("Cannot transfer to zero address")

        if value:
            _log.debug(
                "ANDE native transfer from=0x%s to=0x%s value=%d caller=0x%s",
                sender.hex(),
                recipient.hex(),
                value,
                bytes(inputs.caller_address).hex(),
            )
            try:
                journal.transfer(sender, recipient, value)
            except (AndePrecompileError, OverflowError) as err:
                raise PrecompileError(f"Transfer failed: {err}") from err

        result = InterpreterResult("Return", Gas(gas_limit), SUCCESS_OUTPUT)
        result.gas._record_cost(gas_cost)
        return result

    @staticmethod
    def _run_standard(
        precompile: Precompile, inputs: CallInputs, gas_limit: int
    ) -> InterpreterResult:
        gas = Gas(gas_limit)
        try:
            output = precompile(inputs.input, gas_limit)
        except OutOfGasError:
            return InterpreterResult("PrecompileOOG", gas)
        except PrecompileError:
            return InterpreterResult("PrecompileError", gas)
        if not gas._record_cost(output.gas_used):
            return InterpreterResult("PrecompileOOG", gas)
        outcome = "Revert" if output.reverted else "Return"
        return InterpreterResult(outcome, gas, output.output)

    def warm_addresses(self) -> Iterator[bytes]:
        """Yield the ANDE address, then every standard precompile address."""
        yield ANDE_PRECOMPILE_ADDRESS
        yield from self._precompiles

    def contains(self, address: bytes) -> bool:
        """Tell whether ``address`` holds a precompile."""
        address = bytes(address)
        return address == ANDE_PRECOMPILE_ADDRESS or address in self._precompiles


def create_ande_precompile_provider(spec_id: SpecId) -> AndePrecompileProvider:
    """Create a provider for the given hardfork."""
    return AndePrecompileProvider(spec_id)


def ande_precompile_address() -> bytes:
    """Return the ANDE precompile address."""
    return ANDE_PRECOMPILE_ADDRESS