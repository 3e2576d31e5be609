"""
Error taxonomy for the contract transaction lifecycle.

Build, signing and submission errors propagate to the caller after the
history record has been annotated. History write failures, PersistenceError
included, are caught at the annotation call site and only logged.
"""

import re
from typing import Optional


class ContractTransactionError(Exception):
    """Base exception for lifecycle errors."""

    retryable: bool = False


class BuildError(ContractTransactionError):
    """The envelope could not be built."""
    pass


class AccountNotFoundError(BuildError):
    """Source account does not exist on the ledger."""

    def __init__(self, account_id: str):
        super().__init__(f"Account not found: {account_id}")
        self.account_id = account_id


class SimulationError(BuildError):
    """Network simulation rejected the provisional envelope."""
    pass


class AssemblyUnavailableError(BuildError):
    """No assembly strategy is usable with the installed network client."""
    pass


class SigningCancelled(ContractTransactionError):
    """The user declined, cancelled or rejected the signing prompt."""

    retryable = True

    def __init__(self, message: str = "Transaction signing was cancelled by the user."):
        super().__init__(message)


class SigningFailed(ContractTransactionError):
    """The signing agent failed for a reason other than user refusal."""

    def __init__(self, message: str, agent_message: Optional[str] = None):
        super().__init__(message)
        self.agent_message = agent_message if agent_message is not None else message


class SubmissionError(ContractTransactionError):
    """The network did not accept the broadcast."""
    pass


class PersistenceError(ContractTransactionError):
    """A history store write failed."""
    pass


class InvalidTransitionError(ContractTransactionError):
    """Attempted to move a history record backwards."""

    def __init__(self, from_status: str, to_status: str):
        super().__init__(f"Invalid lifecycle transition: {from_status} -> {to_status}")
        self.from_status = from_status
        self.to_status = to_status


# Rent escrow contract error codes, as raised by the host: "Error(Contract, #N)"
CONTRACT_ERROR_MESSAGES = {
    1: "Unauthorized: Action only allowed for landlord.",
    2: "Insufficient funds: The contract does not have enough XLM.",
    3: "Condition not met: Withdrawal is only available when full rent is paid.",
    4: "Invalid tenant: This address is not part of the agreement.",
}

_CONTRACT_ERROR_PATTERN = re.compile(r"Error\(Contract, #(\d+)\)")


def describe_contract_error(message: str) -> Optional[str]:
    """User-facing text for a contract error code in a host error message, if any."""
    match = _CONTRACT_ERROR_PATTERN.search(message or "")
    if not match:
        return None
    return CONTRACT_ERROR_MESSAGES.get(int(match.group(1)))
