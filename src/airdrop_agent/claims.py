"""
Simulated airdrop claims.

Nothing here touches a chain: receipts are synthetic and the transaction
hash is random hex that cannot be verified anywhere.  Claims simulated by
this process are remembered per wallet so that ``history`` can list them
after two sample records.  Both the claims per wallet and the number of
wallets are bounded; the least recently claiming wallet is dropped first.
"""

from __future__ import annotations

import logging
import random
import threading
import time
from collections import OrderedDict, deque
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from .exceptions import ClientInputError
from .models import ClaimHistory, ClaimReceipt, ClaimRecord

logger = logging.getLogger(__name__)

NETWORK = "Ethereum Mainnet"

# (airdrop_id, protocol, amount, age)
_SAMPLE_HISTORY: tuple[tuple[str, str, float, timedelta], ...] = (
    ("uniswap_v4", "Uniswap V4", 1250.00, timedelta(days=1)),
    ("aave_v3", "Aave Protocol V3", 920.00, timedelta(days=2)),
)

_PROTOCOL_NAMES = {airdrop_id: protocol for airdrop_id, protocol, _, _ in _SAMPLE_HISTORY}


def protocol_name(airdrop_id: str) -> str:
    """Display name for an airdrop id: ``"zk_era"`` -> ``"Zk Era"``."""
    if airdrop_id in _PROTOCOL_NAMES:
        return _PROTOCOL_NAMES[airdrop_id]
    words = [w for w in airdrop_id.replace("-", "_").split("_") if w]
    return " ".join(w.capitalize() for w in words) or airdrop_id


class ClaimSimulator:
    """Produces fake claim receipts and a per-wallet claim history."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
        max_per_wallet: int = 100,
        max_wallets: int = 10_000,
    ) -> None:
        self._rng = rng or random.Random()
        self._clock = clock
        self._max_per_wallet = max_per_wallet
        self._max_wallets = max_wallets
        self._ledger: OrderedDict[str, deque[ClaimRecord]] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def tracked_wallets(self) -> int:
        with self._lock:
            return len(self._ledger)

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self._clock(), tz=timezone.utc)

    def transaction_hash(self) -> str:
        return "0x" + "".join(self._rng.choice("0123456789abcdef") for _ in range(64))

    def claim(
        self,
        wallet_address: Optional[str],
        airdrop_id: Optional[str],
        claim_amount: Optional[float] = None,
    ) -> ClaimReceipt:
        if not wallet_address:
            raise ClientInputError("Wallet address is required")
        if not airdrop_id:
            raise ClientInputError("Airdrop id is required")

        amount = (
            float(claim_amount)
            if claim_amount is not None
            else float(self._rng.randrange(100, 1100))
        )
        receipt = ClaimReceipt(
            success=True,
            transaction_hash=self.transaction_hash(),
            claimed_amount=amount,
            airdrop_id=airdrop_id,
            timestamp=self._now().isoformat(),
            network=NETWORK,
            gas_used=self._rng.randrange(50_000, 150_000),
            status="confirmed",
        )
        with self._lock:
            claims = self._ledger.pop(wallet_address, None)
            if claims is None:
                claims = deque(maxlen=self._max_per_wallet)
            self._ledger[wallet_address] = claims
            while len(self._ledger) > self._max_wallets:
                evicted, _ = self._ledger.popitem(last=False)
                logger.debug("Claim ledger full, dropped wallet %s", evicted)
            claims.append(
                ClaimRecord(
                    airdrop_id=airdrop_id,
                    protocol=protocol_name(airdrop_id),
                    amount=amount,
                    timestamp=receipt.timestamp,
                    transaction_hash=receipt.transaction_hash,
                    status=receipt.status,
                )
            )
        logger.info("Airdrop claimed (simulated): %s for %s", airdrop_id, wallet_address)
        return receipt

    def history(self, wallet_address: str) -> ClaimHistory:
        now = self._now()
        claims = [
            ClaimRecord(
                airdrop_id=airdrop_id,
                protocol=protocol,
                amount=amount,
                timestamp=(now - age).isoformat(),
                transaction_hash=self.transaction_hash(),
            )
            for airdrop_id, protocol, amount, age in _SAMPLE_HISTORY
        ]
        with self._lock:
            claims.extend(self._ledger.get(wallet_address, ()))
        return ClaimHistory(
            wallet_address=wallet_address,
            total_claimed=sum(c.amount for c in claims),
            claims=claims,
        )
