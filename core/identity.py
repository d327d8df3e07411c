"""
Sender identity for the finality benchmark.
Resolves the configured credential into a signing account.
"""
import typing as t

from eth_account import Account
from eth_account.signers.local import LocalAccount

from .errors import InvalidConfigurationError

Account.enable_unaudited_hdwallet_features()


class UserManager:
    """
    Holds the one signing account a run sends from.

    Either a raw private key or a mnemonic plus BIP-44 index is accepted.
    """

    def __init__(self, account: LocalAccount) -> None:
        self._account = account

    @classmethod
    def from_private_key(cls, private_key: str) -> "UserManager":
        try:
            account = Account.from_key(private_key)
        except (ValueError, TypeError) as e:
            raise InvalidConfigurationError(f"PRIVATE_KEY is not a valid key: {e}") from e
        return cls(account)

    @classmethod
    def from_mnemonic(cls, mnemonic: str, index: int = 0) -> "UserManager":
        """
        Derive the account at m/44'/60'/0'/0/{index}.
        """
        path = f"m/44'/60'/0'/0/{index}"
        try:
            account = Account.from_mnemonic(mnemonic, account_path=path)
        except (ValueError, TypeError) as e:
            raise InvalidConfigurationError(f"MNEMONIC could not be derived: {e}") from e
        return cls(account)

    @classmethod
    def from_credential(
        cls,
        private_key: t.Optional[str] = None,
        mnemonic: t.Optional[str] = None,
        index: int = 0,
    ) -> "UserManager":
        if private_key:
            return cls.from_private_key(private_key)
        if mnemonic:
            return cls.from_mnemonic(mnemonic, index)
        raise InvalidConfigurationError("Either PRIVATE_KEY or MNEMONIC must be set")

    def get_sender(self) -> LocalAccount:
        return self._account

    @property
    def address(self) -> str:
        return self._account.address
