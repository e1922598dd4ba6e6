"""Ballot ledger."""

from phasevote.ledger.ballots import BallotLedger

__all__ = ["BallotLedger"]
