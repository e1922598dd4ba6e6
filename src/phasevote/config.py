"""Runtime configuration, read from the environment and an optional .env file.

Variables:
    PHASEVOTE_ADMIN         administrator identity (required)
    PHASEVOTE_DATA_DIR      directory for events.jsonl and state.json (default ./data)
    PHASEVOTE_LOG_LEVEL     logging level name (default INFO)
    PHASEVOTE_ALLOW_RESET   enable session reset (default true)
    PHASEVOTE_RPC_URL       Ethereum RPC endpoint for result anchoring
    PHASEVOTE_PRIVATE_KEY   signing key for result anchoring
    PHASEVOTE_CHAIN_ID      chain id for result anchoring (default 11155111, Sepolia)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

DEFAULT_DATA_DIR = Path("data")
SEPOLIA_CHAIN_ID = 11155111

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class VotingConfig:
    admin_id: str
    data_dir: Path = DEFAULT_DATA_DIR
    log_level: str = "INFO"
    allow_reset: bool = True
    rpc_url: Optional[str] = None
    private_key: Optional[str] = None
    chain_id: int = SEPOLIA_CHAIN_ID

    def __post_init__(self) -> None:
        if not self.admin_id.strip():
            raise ValueError("Administrator identity cannot be blank")

    @property
    def events_path(self) -> Path:
        return self.data_dir / "events.jsonl"

    @property
    def state_path(self) -> Path:
        return self.data_dir / "state.json"

    @property
    def can_anchor(self) -> bool:
        return bool(self.rpc_url and self.private_key)

    @classmethod
    def from_env(
        cls,
        env: Optional[Mapping[str, str]] = None,
        dotenv_path: Optional[Path] = None,
    ) -> VotingConfig:
        """Build a config from env (default: os.environ after loading .env)."""
        if env is None:
            load_dotenv(dotenv_path)
            env = os.environ

        admin = env.get("PHASEVOTE_ADMIN", "")
        if not admin.strip():
            raise ValueError("PHASEVOTE_ADMIN is not set")

        return cls(
            admin_id=admin.strip(),
            data_dir=Path(env.get("PHASEVOTE_DATA_DIR", str(DEFAULT_DATA_DIR))),
            log_level=env.get("PHASEVOTE_LOG_LEVEL", "INFO").upper(),
            allow_reset=_parse_bool(env.get("PHASEVOTE_ALLOW_RESET"), default=True),
            rpc_url=env.get("PHASEVOTE_RPC_URL") or None,
            private_key=env.get("PHASEVOTE_PRIVATE_KEY") or None,
            chain_id=int(env.get("PHASEVOTE_CHAIN_ID", SEPOLIA_CHAIN_ID)),
        )


def _parse_bool(raw: Optional[str], default: bool) -> bool:
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"Not a boolean value: {raw!r}")
