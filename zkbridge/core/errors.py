from typing import Optional

from eth_typing import HexStr


class BridgeError(RuntimeError):
    """Base exception for bridge operations."""

    pass


class AccountNotFoundError(BridgeError):
    """Raised when an operation has to sign but the client has no account."""

    def __init__(self, chain: str = "L1"):
        self.chain = chain
        super().__init__(f"No account configured on the {chain} client")


class ChainNotConfiguredError(BridgeError):
    """Raised when the L2 client cannot report a chain id."""

    def __init__(self):
        super().__init__("The L2 client is not configured with a chain")


class InvalidRequestError(BridgeError, ValueError):
    """Raised when a request is malformed before anything is sent."""

    pass


class BaseCostExceedsValueError(BridgeError):
    def __init__(self, base_cost: int, value: int):
        self.base_cost = base_cost
        self.value = value
        super().__init__(
            "The base cost of performing the priority operation is higher than"
            " the provided value parameter for the transaction:"
            f" base_cost: {base_cost}, provided value: {value}"
        )


class TxHashNotFoundInLogsError(BridgeError):
    """Raised when an L1 receipt carries no priority request of the expected contract."""

    def __init__(self, contract_address: Optional[str] = None):
        self.contract_address = contract_address
        super().__init__(
            f"Transaction hash not found in logs of {contract_address}"
            if contract_address
            else "Transaction hash not found in logs"
        )


class MessageLogNotFoundError(BridgeError):
    def __init__(self, tx_hash: HexStr, index: int = 0):
        self.tx_hash = tx_hash
        self.index = index
        super().__init__(self._message())

    def _message(self) -> str:
        return f"Message log with hash {self.tx_hash} at index {self.index} not found"


class WithdrawalLogNotFoundError(MessageLogNotFoundError):
    def _message(self) -> str:
        return (
            f"Withdrawal log with hash {self.tx_hash} not found. Either the withdrawal"
            " transaction is still processing or it did not finish successfully."
        )


class CannotClaimSuccessfulDepositError(BridgeError):
    def __init__(self, tx_hash: HexStr):
        self.tx_hash = tx_hash
        super().__init__(f"Cannot claim successful deposit: {tx_hash}")


class NotAFailedBridgeDepositError(BridgeError):
    """The L2 transaction is not a bridge finalizeDeposit call."""

    def __init__(self, tx_hash: HexStr):
        self.tx_hash = tx_hash
        super().__init__(f"Transaction {tx_hash} is not a bridge deposit")


class TransactionRevertedError(BridgeError):
    """Raised when a bridge transaction reverts, either on chain or already during gas estimation."""

    def __init__(self, tx_hash: HexStr, receipt=None, reason: Optional[str] = None):
        self.tx_hash = tx_hash
        self.receipt = receipt
        self.reason = reason
        message = f"Transaction {tx_hash} reverted"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
