"""Result anchoring — publish the tally outcome's hash on an Ethereum chain.

The final counts and the winner are reduced to a canonical JSON document
whose SHA-256 digest is embedded in the data field of a 0-ETH self-send
transaction. No code runs on-chain; the transaction is only a timestamped
witness that the result existed in exactly this form.

web3 and eth-account are only needed for anchor_to_chain and are imported
on call (install the ``anchor`` extra).
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from phasevote.models.voting import Proposal, Winner

LOGGER = logging.getLogger(__name__)

_EXPLORERS = {
    1: "https://etherscan.io/tx/",
    11155111: "https://sepolia.etherscan.io/tx/",
}


class AnchorError(Exception):
    """The anchor transaction could not be built, sent or confirmed."""


@dataclass(frozen=True)
class AnchorRecord:
    """A record of a successful on-chain anchor."""
    sha256_hash: str
    tx_hash: str
    block_number: int
    chain_id: int
    timestamp_utc: str
    explorer_url: str


def result_document(
    proposals: list[Proposal], winner: Optional[Winner]
) -> dict[str, Any]:
    """Canonical result: counts in registration order plus the winner."""
    return {
        "counts": [
            {"proposal_id": p.proposal_id, "vote_count": p.vote_count}
            for p in proposals
        ],
        "total_votes": sum(p.vote_count for p in proposals),
        "winner": None if winner is None else {
            "proposal_id": winner.proposal_id,
            "description": winner.description,
            "vote_count": winner.vote_count,
        },
    }


def result_digest(document: dict[str, Any]) -> str:
    """SHA-256 hex of the document's canonical JSON (sorted keys, UTF-8)."""
    canonical = json.dumps(document, sort_keys=True, ensure_ascii=False).encode("utf-8")
    return hashlib.sha256(canonical).hexdigest()


def anchor_to_chain(
    digest: str,
    rpc_url: str,
    private_key: str,
    chain_id: int = 11155111,
    gas: int = 30_000,
    gas_price_gwei: str = "2",
    timeout: int = 300,
) -> AnchorRecord:
    """Embed a SHA-256 digest in a self-send transaction and wait for it.

    Raises ValueError if digest is not 32 bytes of hex, and AnchorError if
    the web3 stack is missing or the node rejects or drops the transaction.
    """
    data = bytes.fromhex(digest)
    if len(data) != 32:
        raise ValueError(f"Digest must be 32 bytes, got {len(data)}")

    try:
        from eth_account import Account
        from web3 import HTTPProvider, Web3
        from web3.exceptions import Web3Exception
    except ImportError as e:
        raise AnchorError(f"{e}; install the anchor extra") from e

    try:
        return _send_anchor(
            Web3(HTTPProvider(rpc_url)), Account.from_key(private_key),
            digest, data, chain_id, gas, gas_price_gwei, timeout,
        )
    except (Web3Exception, OSError, ValueError) as e:
        raise AnchorError(f"Anchor transaction failed: {e}") from e


def _send_anchor(
    w3: Any, acct: Any, digest: str, data: bytes,
    chain_id: int, gas: int, gas_price_gwei: str, timeout: int,
) -> AnchorRecord:
    tx = {
        "to": acct.address,
        "value": 0,
        "gas": gas,
        "gasPrice": w3.to_wei(gas_price_gwei, "gwei"),
        "nonce": w3.eth.get_transaction_count(acct.address),
        "chainId": chain_id,
        "data": data,
    }
    signed = acct.sign_transaction(tx)
    tx_hash = w3.eth.send_raw_transaction(signed.raw_transaction)
    LOGGER.info("Sent anchor tx %s, waiting for confirmation", tx_hash.hex())

    receipt = w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
    explorer = _EXPLORERS.get(chain_id)
    explorer_url = explorer + tx_hash.hex() if explorer else ""
    LOGGER.info("Anchor confirmed in block %s", receipt.blockNumber)

    return AnchorRecord(
        sha256_hash=digest,
        tx_hash=tx_hash.hex(),
        block_number=receipt.blockNumber,
        chain_id=chain_id,
        timestamp_utc=datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        explorer_url=explorer_url,
    )
