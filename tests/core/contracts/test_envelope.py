"""
Tests for XDR helpers: argument conversion, hashing and assembly.
"""

import pytest
from stellar_sdk import Keypair, Network, TransactionBuilder, TransactionEnvelope
from stellar_sdk import xdr as stellar_xdr

from payeasy.core.contracts.envelope import (
    DEFAULT_ASSEMBLERS,
    LibraryAssembler,
    ResourceAssembler,
    add_fee,
    assemble,
    compose_invocation,
    decode_resource_usage,
    envelope_fee,
    positive_int,
    to_scval,
    transaction_hash,
)
from payeasy.core.contracts.errors import AssemblyUnavailableError


CONTRACT_ID = "CDLZFC3SYJYDZT7K67VZ75HPJVIEUVNIXF47ZG2FB2RMQQVU2HHGCYSC"
PASSPHRASE = Network.TESTNET_NETWORK_PASSPHRASE


@pytest.fixture
def provisional(keypair):
    return compose_invocation(
        source_account=keypair.public_key,
        sequence=41,
        contract_id=CONTRACT_ID,
        method="deposit",
        args=(1000, keypair.public_key),
        network_passphrase=PASSPHRASE,
        base_fee=100,
        timeout_seconds=60,
    )


# =============================================================================
# Arguments
# =============================================================================

class TestToScval:
    def test_integers_are_i128(self):
        assert to_scval(1000).type == stellar_xdr.SCValType.SCV_I128

    def test_bool_is_not_an_integer(self):
        assert to_scval(True).type == stellar_xdr.SCValType.SCV_BOOL

    def test_strkeys_become_addresses(self, keypair):
        assert to_scval(keypair.public_key).type == stellar_xdr.SCValType.SCV_ADDRESS
        assert to_scval(CONTRACT_ID).type == stellar_xdr.SCValType.SCV_ADDRESS

    def test_plain_strings_stay_strings(self):
        assert to_scval("listing_42").type == stellar_xdr.SCValType.SCV_STRING

    def test_containers(self):
        assert to_scval([1, 2]).type == stellar_xdr.SCValType.SCV_VEC
        assert to_scval({"amount": 5}).type == stellar_xdr.SCValType.SCV_MAP
        assert to_scval(None).type == stellar_xdr.SCValType.SCV_VOID

    def test_unsupported_type(self):
        with pytest.raises(TypeError):
            to_scval(1.5)


# =============================================================================
# Envelopes
# =============================================================================

def test_compose_invocation(provisional):
    tx = provisional.transaction

    assert tx.sequence == 42
    assert envelope_fee(provisional) == 100
    assert len(tx.operations) == 1


def test_add_fee_returns_copy(provisional):
    bumped = add_fee(provisional, 250)

    assert envelope_fee(bumped) == 350
    assert envelope_fee(provisional) == 100


def test_transaction_hash_is_deterministic(keypair, sign_invocation):
    signed_xdr, expected = sign_invocation(keypair)

    assert transaction_hash(signed_xdr, PASSPHRASE) == expected
    assert transaction_hash(signed_xdr, PASSPHRASE) == transaction_hash(signed_xdr, PASSPHRASE)


def test_transaction_hash_depends_on_network(keypair, sign_invocation):
    signed_xdr, expected = sign_invocation(keypair)

    assert transaction_hash(signed_xdr, Network.PUBLIC_NETWORK_PASSPHRASE) != expected


def test_transaction_hash_of_fee_bump(keypair, sign_invocation):
    signed_xdr, inner_hash = sign_invocation(keypair)
    fee_source = Keypair.random()
    bump = TransactionBuilder.build_fee_bump_transaction(
        fee_source=fee_source.public_key,
        base_fee=200,
        inner_transaction_envelope=TransactionEnvelope.from_xdr(signed_xdr, PASSPHRASE),
        network_passphrase=PASSPHRASE,
    )
    bump.sign(fee_source)

    assert transaction_hash(bump.to_xdr(), PASSPHRASE) == bump.hash_hex()
    assert transaction_hash(bump.to_xdr(), PASSPHRASE) != inner_hash


@pytest.mark.parametrize("value, expected", [("1000", 1000), (7, 7), ("0", None), ("-5", None), (None, None), ("x", None)])
def test_positive_int(value, expected):
    assert positive_int(value) == expected


def test_decode_resource_usage_handles_missing_data():
    assert decode_resource_usage(None) == {}
    assert decode_resource_usage("not-xdr") == {}


def test_decode_resource_usage_reads_simulated_data(soroban_data_xdr):
    assert decode_resource_usage(soroban_data_xdr) == {
        "cpu_instructions": 5_000_000,
        "read_bytes": 2_048,
        "write_bytes": 512,
    }


# =============================================================================
# Assembly
# =============================================================================

def test_resource_assembler_adds_min_resource_fee(provisional):
    assembled = ResourceAssembler().assemble(provisional, {"minResourceFee": "1000"})

    assert envelope_fee(assembled) == 1100
    assert envelope_fee(provisional) == 100


def test_assemble_uses_first_available_strategy(provisional):
    class Skipped:
        name = "skipped"

        def available(self):
            return False

    assembled = assemble(provisional, {"minResourceFee": "10"}, [Skipped(), ResourceAssembler()])

    assert isinstance(assembled, TransactionEnvelope)
    assert envelope_fee(assembled) == 110


def test_assemble_without_strategies(provisional):
    with pytest.raises(AssemblyUnavailableError):
        assemble(provisional, {}, [])


def test_resource_assembler_attaches_simulated_data_and_auth(provisional, full_simulation):
    assembled = ResourceAssembler().assemble(provisional, full_simulation)

    tx = assembled.transaction
    assert envelope_fee(assembled) == 1100
    assert tx.soroban_data.resources.write_bytes.uint32 == 512
    assert len(tx.operations[0].auth) == 1
    assert not provisional.transaction.operations[0].auth


class TestLibraryAssembler:
    def test_supports_complete_simulation(self, full_simulation):
        assert LibraryAssembler().supports(full_simulation)

    @pytest.mark.parametrize("missing", ["transactionData", "minResourceFee", "results"])
    def test_declines_incomplete_simulation(self, full_simulation, missing):
        del full_simulation[missing]

        assert not LibraryAssembler().supports(full_simulation)

    def test_declines_error_only_simulation(self):
        assert not LibraryAssembler().supports({"latestLedger": 1})

    def test_sdk_assertion_is_a_value_error(self, provisional, full_simulation, monkeypatch):
        def failing_helper(envelope, simulation):
            raise AssertionError

        monkeypatch.setattr(LibraryAssembler, "_helper", lambda self: failing_helper)

        with pytest.raises(ValueError, match="incomplete result"):
            LibraryAssembler().assemble(provisional, full_simulation)

    def test_sparse_simulation_falls_through_to_resources(self, provisional):
        assembled = assemble(provisional, {"minResourceFee": "1000", "latestLedger": 1}, DEFAULT_ASSEMBLERS)

        assert envelope_fee(assembled) == 1100
        assert assembled.transaction.soroban_data is None
