"""Voter roster and proposal registry."""

from phasevote.registry.proposals import ProposalRegistry
from phasevote.registry.roster import VoterRoster

__all__ = ["ProposalRegistry", "VoterRoster"]
