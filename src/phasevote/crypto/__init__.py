"""Result digests and on-chain anchoring."""

from phasevote.crypto.anchor import AnchorRecord, anchor_to_chain, result_digest, result_document

__all__ = ["AnchorRecord", "anchor_to_chain", "result_digest", "result_document"]
