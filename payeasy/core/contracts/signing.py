"""
Signing client.

Delegates envelope signing to an external, user-controlled signing agent
(a browser wallet bridge, a hardware signer service, ...). Agents disagree
on how they report results, so every response is normalized into one of
three outcomes before the caller sees it:

    Signed     -> SignedEnvelope is returned
    Cancelled  -> SigningCancelled is raised (user declined)
    Failed     -> SigningFailed is raised (anything else)
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Union

import httpx

from payeasy.config import settings

from .errors import ContractTransactionError, SigningCancelled, SigningFailed
from .models import SignedEnvelope


logger = logging.getLogger(__name__)


CANCELLATION_MARKERS = ("cancel", "declined", "reject", "denied")


@dataclass(frozen=True)
class Signed:
    signed_xdr: str


@dataclass(frozen=True)
class Cancelled:
    message: str


@dataclass(frozen=True)
class Failed:
    message: str


SigningOutcome = Union[Signed, Cancelled, Failed]


class SigningAgent(Protocol):
    """
    External signer.

    May return the signed envelope as a string, ``{"signedTxXdr": ...}``,
    or ``{"error": ...}``, or raise.
    """

    async def sign_envelope(self, unsigned_envelope: str, network_passphrase: str) -> Any:
        ...


def classify_signing_error(message: str) -> SigningOutcome:
    """Cancelled when the agent's message says the user said no, Failed otherwise."""
    lowered = (message or "").lower()
    if any(marker in lowered for marker in CANCELLATION_MARKERS):
        return Cancelled(message)
    return Failed(message or "Signing failed.")


def normalize_signing_response(response: Any) -> SigningOutcome:
    """Map any of the agent's response shapes onto a SigningOutcome."""
    if isinstance(response, str):
        if response:
            return Signed(response)
        return Failed("Signing agent returned an empty envelope.")

    if isinstance(response, dict):
        error = response.get("error")
        if isinstance(error, dict):
            error = error.get("message")
        if isinstance(error, str) and error:
            return classify_signing_error(error)

        signed = response.get("signedTxXdr")
        if isinstance(signed, str) and signed:
            return Signed(signed)

    return Failed("Signing agent returned an unexpected signing response.")


class SigningClient:
    """Signs envelopes through a SigningAgent and raises typed errors."""

    def __init__(self, agent: SigningAgent):
        self.agent = agent

    def _resolve(self, outcome: SigningOutcome) -> SignedEnvelope:
        if isinstance(outcome, Signed):
            return SignedEnvelope(signed_bytes=outcome.signed_xdr)
        if isinstance(outcome, Cancelled):
            logger.info(f"Signing cancelled by user: {outcome.message}")
            raise SigningCancelled(outcome.message)
        logger.warning(f"Signing agent failed: {outcome.message}")
        raise SigningFailed(outcome.message)

    async def sign(self, unsigned_envelope: str, network_passphrase: str) -> SignedEnvelope:
        """
        Ask the agent to sign an envelope.

        Raises:
            SigningCancelled: The user declined
            SigningFailed: Any other agent failure
        """
        try:
            response = await self.agent.sign_envelope(unsigned_envelope, network_passphrase)
        except ContractTransactionError:
            raise
        except Exception as e:
            return self._resolve(classify_signing_error(str(e)))

        return self._resolve(normalize_signing_response(response))


class SigningAgentError(Exception):
    """The HTTP signing bridge returned an error status."""
    pass


class HttpSigningAgent:
    """
    Signing agent reached over HTTP.

    POSTs ``{"xdr": ..., "networkPassphrase": ...}`` to the bridge and
    returns whatever it answers (JSON body or plain text).
    """

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: float = 300.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url or settings.signing_agent_url
        if not self.url:
            raise SigningAgentError("SIGNING_AGENT_URL is required")
        # The bridge waits on a human, so the timeout is generous
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def close(self) -> None:
        await self._client.aclose()

    async def sign_envelope(self, unsigned_envelope: str, network_passphrase: str) -> Any:
        response = await self._client.post(
            self.url,
            json={"xdr": unsigned_envelope, "networkPassphrase": network_passphrase},
        )

        content_type = response.headers.get("content-type", "")
        body: Any = response.json() if "json" in content_type else response.text

        if response.is_error:
            if isinstance(body, dict) and body.get("error"):
                raise SigningAgentError(str(body["error"]))
            raise SigningAgentError(f"Signing bridge returned {response.status_code}")

        return body
