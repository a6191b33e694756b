"""ContractUtility: Web3 initialization and contract ABI loading."""

import json
import os
from pathlib import Path

from web3 import Web3
from web3.contract import Contract

from .sources.base import SourceConfigError

# Public RPC endpoints per network name.
NETWORKS: dict[str, str] = {
    "ethereum": "https://ethereum-rpc.publicnode.com",
    "sepolia": "https://ethereum-sepolia-rpc.publicnode.com",
    "localnet": "http://localhost:8545",
}

ABI_DIR = Path(__file__).parent.parent / "abi"


class ContractUtility:
    """Utility for Web3 connection and read-only contract handles.

    :ivar network: Network RPC URL.
    :ivar w3: Configured Web3 instance.
    """

    def __init__(self, network_name: str, w3: Web3 | None = None) -> None:
        """Initialize the contract utility.

        :param network_name: Name of the network to connect to, or an RPC URL.
        :param w3: Optional pre-built Web3 instance (skips provider setup).
        """
        # RPC_URL env var overrides the default for the network
        self.network = os.environ.get("RPC_URL") or NETWORKS.get(network_name, network_name)
        if w3 is None:
            if not self.network.startswith(("http://", "https://")):
                raise SourceConfigError(
                    f"Unknown network '{network_name}'. "
                    f"Available: {', '.join(NETWORKS)} or an http(s) RPC URL"
                )
            w3 = Web3(Web3.HTTPProvider(self.network))
        self.w3 = w3

    @staticmethod
    def get_abi(contract_name: str) -> list:
        """Load the ABI of a contract shipped in the ``abi`` folder.

        :param contract_name: Name of the contract (e.g., "AggregatorV3Interface").
        :returns: ABI as a list of entries.
        """
        abi_path = (ABI_DIR / f"{contract_name}.json").resolve()

        with open(abi_path, "r") as file:
            return json.load(file)

    def contract(self, address: str | None, contract_name: str) -> Contract:
        """Build a contract handle for a deployed contract.

        :param address: Contract address (hex string).
        :param contract_name: ABI name to bind.
        :returns: web3 Contract instance.
        :raises SourceConfigError: If the address is missing or malformed.
        """
        if not address:
            raise SourceConfigError(f"No address configured for {contract_name}")
        if not Web3.is_address(address):
            raise SourceConfigError(f"Invalid {contract_name} address: {address}")

        return self.w3.eth.contract(
            address=Web3.to_checksum_address(address),
            abi=self.get_abi(contract_name),
        )
