"""phasevote CLI — drive a persistent voting session from the shell.

Usage:
    phasevote status
    phasevote register-voter alice
    phasevote advance
    phasevote --caller alice submit-proposal --id 1 --description "Build a bridge"
    phasevote --caller alice vote 1
    phasevote tally
    phasevote winner
    phasevote anchor-result

Configuration comes from the environment or a .env file (see
phasevote.config). --caller defaults to the configured administrator.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

from phasevote.config import VotingConfig
from phasevote.crypto.anchor import (
    AnchorError,
    anchor_to_chain,
    result_digest,
    result_document,
)
from phasevote.persistence.event_log import EventLog
from phasevote.persistence.state_store import StateStore
from phasevote.service import ServiceResult, VotingService


def _make_service(config: VotingConfig) -> VotingService:
    """Create a VotingService with durable persistence."""
    config.data_dir.mkdir(parents=True, exist_ok=True)
    return VotingService(
        config.admin_id,
        allow_reset=config.allow_reset,
        event_log=EventLog(storage_path=config.events_path),
        state_store=StateStore(config.state_path),
    )


def _report(result: ServiceResult) -> int:
    if result.success:
        print(json.dumps(result.data, indent=2, default=str))
        return 0
    print(f"Failed ({result.error_kind}): {'; '.join(result.errors)}", file=sys.stderr)
    return 1


def cmd_status(service: VotingService, args: argparse.Namespace) -> int:
    print(json.dumps(service.status(), indent=2))
    return 0


def cmd_register_voter(service: VotingService, args: argparse.Namespace) -> int:
    return _report(service.register_voter(args.caller, args.voter_id))


def cmd_revoke_voter(service: VotingService, args: argparse.Namespace) -> int:
    return _report(service.revoke_voter(args.caller, args.voter_id))


def cmd_advance(service: VotingService, args: argparse.Namespace) -> int:
    return _report(service.advance_phase(args.caller))


def cmd_reset(service: VotingService, args: argparse.Namespace) -> int:
    return _report(service.reset_session(args.caller))


def cmd_submit_proposal(service: VotingService, args: argparse.Namespace) -> int:
    return _report(service.submit_proposal(args.caller, args.id, args.description))


def cmd_vote(service: VotingService, args: argparse.Namespace) -> int:
    return _report(service.submit_vote(args.caller, args.proposal_id))


def cmd_voters(service: VotingService, args: argparse.Namespace) -> int:
    return _report(service.list_voters(args.caller))


def cmd_proposals(service: VotingService, args: argparse.Namespace) -> int:
    rows: list[dict[str, Any]] = [
        {
            "proposal_id": p.proposal_id,
            "description": p.description,
            "vote_count": p.vote_count,
        }
        for p in service.list_proposals()
    ]
    print(json.dumps(rows, indent=2))
    return 0


def cmd_tally(service: VotingService, args: argparse.Namespace) -> int:
    return _report(service.tally(args.caller))


def cmd_winner(service: VotingService, args: argparse.Namespace) -> int:
    return _report(service.determine_winner(args.caller))


def cmd_anchor_result(
    service: VotingService, args: argparse.Namespace, config: VotingConfig
) -> int:
    """Hash the stored result and, if configured, anchor it on-chain."""
    document = result_document(service.list_proposals(), service.get_winner())
    digest = result_digest(document)
    if args.dry_run:
        print(json.dumps({"sha256": digest, "result": document}, indent=2))
        return 0
    if not config.can_anchor:
        print(
            "Failed: PHASEVOTE_RPC_URL and PHASEVOTE_PRIVATE_KEY must be set",
            file=sys.stderr,
        )
        return 1
    try:
        record = anchor_to_chain(
            digest, config.rpc_url, config.private_key, chain_id=config.chain_id,
        )
    except (AnchorError, OSError, ValueError) as e:
        print(f"Failed: {e}", file=sys.stderr)
        return 1
    print(json.dumps(record.__dict__, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="phasevote",
        description="Phase-gated proposal voting",
    )
    parser.add_argument(
        "--caller",
        help="Identity performing the operation (default: configured admin)",
    )
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("status", help="Show session status")

    p_reg = sub.add_parser("register-voter", help="Admit a voter (admin)")
    p_reg.add_argument("voter_id")

    p_rev = sub.add_parser("revoke-voter", help="Revoke a voter (admin)")
    p_rev.add_argument("voter_id")

    sub.add_parser("advance", help="Advance to the next phase (admin)")
    sub.add_parser("reset", help="Reset the session to voter registration (admin)")

    p_prop = sub.add_parser("submit-proposal", help="Submit a proposal")
    p_prop.add_argument("--id", type=int, required=True, help="Proposal id (> 0)")
    p_prop.add_argument("--description", required=True)

    p_vote = sub.add_parser("vote", help="Vote for a proposal")
    p_vote.add_argument("proposal_id", type=int)

    sub.add_parser("voters", help="List voters who have cast a ballot")
    sub.add_parser("proposals", help="List proposals in registration order")
    sub.add_parser("tally", help="Recount votes (admin)")
    sub.add_parser("winner", help="Tally and determine the winner (admin)")

    p_anchor = sub.add_parser("anchor-result", help="Anchor the result hash on-chain")
    p_anchor.add_argument(
        "--dry-run", action="store_true", help="Print the digest without sending",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        config = VotingConfig.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.caller is None:
        args.caller = config.admin_id

    commands = {
        "status": cmd_status,
        "register-voter": cmd_register_voter,
        "revoke-voter": cmd_revoke_voter,
        "advance": cmd_advance,
        "reset": cmd_reset,
        "submit-proposal": cmd_submit_proposal,
        "vote": cmd_vote,
        "voters": cmd_voters,
        "proposals": cmd_proposals,
        "tally": cmd_tally,
        "winner": cmd_winner,
    }

    service = _make_service(config)
    if args.command == "anchor-result":
        return cmd_anchor_result(service, args, config)

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    return handler(service, args)


if __name__ == "__main__":
    raise SystemExit(main())
