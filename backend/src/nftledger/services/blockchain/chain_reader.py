"""Read-only ERC-721 contract calls with revert-as-value semantics."""

from dataclasses import dataclass
from typing import Any

import structlog
from web3 import Web3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError

from nftledger.abi import get_contract_abi
from nftledger.services.exceptions import BlockchainConnectionError

logger = structlog.get_logger()


@dataclass(frozen=True)
class CallResult:
    """Outcome of a contract call: a value, or a revert."""

    value: Any = None
    reverted: bool = False

    @classmethod
    def ok(cls, value: Any) -> "CallResult":
        return cls(value=value)

    @classmethod
    def revert(cls) -> "CallResult":
        return cls(reverted=True)


class ChainReader:
    """Calls view functions on ERC-721 contracts through web3.

    Reverts (and calls to functions the contract does not implement) are
    returned as CallResult.revert(); any other RPC failure raises
    BlockchainConnectionError.
    """

    def __init__(self, w3: Web3, abi_name: str = "ERC721"):
        """Initialize reader with a web3 connection.

        Args:
            w3: Web3 instance for RPC calls
            abi_name: ABI file to bind contracts with (default: "ERC721")
        """
        self.w3 = w3
        self.abi = get_contract_abi(abi_name)
        self._contracts: dict[str, Any] = {}

    def _contract(self, address: str):
        checksummed = Web3.to_checksum_address(address)
        if checksummed not in self._contracts:
            self._contracts[checksummed] = self.w3.eth.contract(address=checksummed, abi=self.abi)
        return self._contracts[checksummed]

    def try_call(self, address: str, method: str, *args: Any) -> CallResult:
        """Call a view function, modelling a revert as a result instead of an error.

        Args:
            address: Contract address
            method: ABI function name (e.g. "name", "tokenURI")
            *args: Function arguments

        Returns:
            CallResult with the decoded return value, or reverted=True

        Raises:
            BlockchainConnectionError: If the RPC call fails for any other reason
        """
        contract = self._contract(address)
        try:
            value = getattr(contract.functions, method)(*args).call()
        except (ContractLogicError, BadFunctionCallOutput) as e:
            logger.debug(
                "chain_reader.call_reverted",
                address=address,
                method=method,
                error=str(e),
            )
            return CallResult.revert()
        except Exception as e:
            logger.warning(
                "chain_reader.call_failed",
                address=address,
                method=method,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise BlockchainConnectionError(f"{method}() call on {address} failed: {e}") from e

        return CallResult.ok(value)
