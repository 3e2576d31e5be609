"""Shared fixtures for contract lifecycle tests."""

from typing import Callable, Tuple

import pytest
from stellar_sdk import Account, Address, Keypair, Network, SorobanDataBuilder, TransactionBuilder, scval
from stellar_sdk import xdr as stellar_xdr

from payeasy.config import Settings
from payeasy.core.contracts.models import BuiltEnvelope, CostEstimate, EstimateProvenance


# Testnet native asset contract
CONTRACT_ID = "CDLZFC3SYJYDZT7K67VZ75HPJVIEUVNIXF47ZG2FB2RMQQVU2HHGCYSC"
PASSPHRASE = Network.TESTNET_NETWORK_PASSPHRASE
RPC_URL = "https://soroban-testnet.stellar.org"


@pytest.fixture
def contract_id() -> str:
    return CONTRACT_ID


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Settings isolated from the process environment and .env."""

    def factory(**overrides) -> Settings:
        values = {
            "stellar_network": "testnet",
            "soroban_rpc_url": "",
            "horizon_url": "",
            "network_passphrase": "",
            "signing_agent_url": "",
            "fee_buffer_multiplier": 1.0,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return factory


@pytest.fixture
def keypair() -> Keypair:
    return Keypair.random()


@pytest.fixture
def sign_invocation() -> Callable[..., Tuple[str, str]]:
    """Build and sign a deposit invocation. Returns (signed XDR, hash hex)."""

    def factory(keypair: Keypair, sequence: int = 1) -> Tuple[str, str]:
        envelope = (
            TransactionBuilder(
                source_account=Account(keypair.public_key, sequence),
                network_passphrase=PASSPHRASE,
                base_fee=100,
            )
            .append_invoke_contract_function_op(
                contract_id=CONTRACT_ID,
                function_name="deposit",
                parameters=[scval.to_int128(1000)],
            )
            .set_timeout(60)
            .build()
        )
        envelope.sign(keypair)
        return envelope.to_xdr(), envelope.hash_hex()

    return factory


@pytest.fixture
def built_envelope() -> BuiltEnvelope:
    return BuiltEnvelope(
        unsigned_envelope="AAAAAgAAAAunsigned",
        fee_units=1100,
        cost_estimate=CostEstimate(fee_units=1000, provenance=EstimateProvenance.SIMULATION),
        network="testnet",
        network_passphrase=PASSPHRASE,
        rpc_endpoint=RPC_URL,
    )


@pytest.fixture
def soroban_data_xdr() -> str:
    """SorobanTransactionData as a simulation returns it: 5M instructions, 2048 read / 512 write bytes."""
    return (
        SorobanDataBuilder()
        .set_resources(5_000_000, 2_048, 512)
        .set_resource_fee(1000)
        .build()
        .to_xdr()
    )


@pytest.fixture
def auth_entry_xdr() -> str:
    """Source-account authorization for CONTRACT_ID.deposit()."""
    entry = stellar_xdr.SorobanAuthorizationEntry(
        credentials=stellar_xdr.SorobanCredentials(
            stellar_xdr.SorobanCredentialsType.SOROBAN_CREDENTIALS_SOURCE_ACCOUNT
        ),
        root_invocation=stellar_xdr.SorobanAuthorizedInvocation(
            function=stellar_xdr.SorobanAuthorizedFunction(
                stellar_xdr.SorobanAuthorizedFunctionType.SOROBAN_AUTHORIZED_FUNCTION_TYPE_CONTRACT_FN,
                contract_fn=stellar_xdr.InvokeContractArgs(
                    contract_address=Address(CONTRACT_ID).to_xdr_sc_address(),
                    function_name=stellar_xdr.SCSymbol(b"deposit"),
                    args=[],
                ),
            ),
            sub_invocations=[],
        ),
    )
    return entry.to_xdr()


@pytest.fixture
def full_simulation(soroban_data_xdr, auth_entry_xdr) -> dict:
    """A complete simulateTransaction result for a deposit with one auth entry."""
    return {
        "transactionData": soroban_data_xdr,
        "minResourceFee": "1000",
        "results": [{"auth": [auth_entry_xdr], "xdr": scval.to_void().to_xdr()}],
        "latestLedger": 1,
    }
