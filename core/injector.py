"""
Transfer injection for the finality benchmark.
Builds, signs locally and broadcasts a single native-value transfer.
"""
from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.exceptions import Web3Exception
from web3.types import TxParams

from .errors import ConnectivityError, SubmissionError
from .models import TransferSpec
from .network import TRANSPORT_ERRORS, rpc_call

TRANSFER_GAS: int = 21_000


class TransferInjector:
    """
    Handles raw transaction submission for the run's sender.

    Nonce and gas price are read from the node right before signing; only
    the broadcast itself can raise SubmissionError.
    """

    def __init__(self, account: LocalAccount, chain_id: int) -> None:
        """
        Args:
            account: Signing account bound to the sender address.
            chain_id: EIP-155 chain id the signature is bound to.
        """
        self.account = account
        self.chain_id = chain_id

    def build_transfer(self, web3: Web3, spec: TransferSpec) -> TxParams:
        with rpc_call("Fetching nonce and gas price"):
            nonce = web3.eth.get_transaction_count(self.account.address, "pending")
            gas_price = web3.eth.gas_price
        return {
            "from": self.account.address,
            "to": Web3.to_checksum_address(spec.recipient),
            "value": spec.value,
            "gas": TRANSFER_GAS,
            "gasPrice": gas_price,
            "nonce": nonce,
            "chainId": self.chain_id,
        }

    def send_transfer(self, web3: Web3, spec: TransferSpec) -> str:
        """
        Submit the transfer described by `spec`.

        Returns:
            Transaction hash as a 0x-prefixed hex string.
        """
        tx_params = self.build_transfer(web3, spec)
        signed = self.account.sign_transaction(tx_params)
        try:
            tx_hash = web3.eth.send_raw_transaction(signed.raw_transaction)
        except TRANSPORT_ERRORS as e:
            raise ConnectivityError(f"Broadcast failed: endpoint unreachable ({e})") from e
        except (Web3Exception, ValueError) as e:
            # Node said no: insufficient funds, nonce too low, underpriced...
            raise SubmissionError(f"Transfer rejected by node: {e}") from e
        return Web3.to_hex(tx_hash)
