"""
Tests for contract error code descriptions.
"""

import pytest

from payeasy.core.contracts.errors import CONTRACT_ERROR_MESSAGES, SubmissionError, describe_contract_error
from payeasy.core.contracts.orchestrator import failure_message


@pytest.mark.parametrize("code", sorted(CONTRACT_ERROR_MESSAGES))
def test_known_codes_are_described(code):
    message = f"HostError: Error(Contract, #{code})\nEvent log (newest first): ..."

    assert describe_contract_error(message) == CONTRACT_ERROR_MESSAGES[code]


@pytest.mark.parametrize("message", ["HostError: Error(Contract, #99)", "HostError: Error(Budget, ExceededLimit)", "", None])
def test_unknown_or_missing_codes(message):
    assert describe_contract_error(message) is None


def test_failure_message_prefers_contract_description():
    error = SubmissionError("Broadcast failed: RPC error: Error(Contract, #1)")

    assert failure_message(error) == "Unauthorized: Action only allowed for landlord."


def test_failure_message_falls_back_to_raw_text():
    assert failure_message(SubmissionError("Broadcast failed: HTTP error: 503")) == "Broadcast failed: HTTP error: 503"
    assert failure_message(RuntimeError()) == "Transaction failed."
