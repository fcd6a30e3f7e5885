from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

from utp_gateway.core.errors import ExecutionFailure, InvalidTransitionError
from utp_gateway.models.constants import BASE_PRICES
from utp_gateway.models.settlement import SettlementMethodConfig, SettlementRecord
from utp_gateway.services.money import round2
from utp_gateway.services.pricing.oracle import PriceOracle
from utp_gateway.services.randomness import (
    RandomSource,
    default_random_source,
    random_reference,
    random_tx_hash,
)
from .fees import get_method, validate_amount

"""Simulated payout rails.

`execute` drives one settlement through its lifecycle:

    pending -> processing -> completed | failed
                          \\-> processing (NEFT batch, when configured)

Amount limits are checked first; a violation leaves the record pending.
Once a routine starts, any exception or cancellation marks the record
failed, records the message and is re-raised. There is no retry;
callers create a new settlement instead.
"""

logger = logging.getLogger("utp_gateway.settlement.dispatch")

# Nominal rail latency before the receipt comes back
ROUTINE_LATENCY_SECONDS: Dict[str, float] = {
    "inr_upi": 1.0,
    "inr_neft": 2.0,
    "binr_transfer": 0.5,
    "bgt_transfer": 0.8,
    "mixed_settlement": 1.5,
}

COMPLETION_WINDOWS: Dict[str, timedelta] = {
    "inr_upi": timedelta(seconds=2),
    "inr_neft": timedelta(hours=24),
    "binr_transfer": timedelta(seconds=5),
    "bgt_transfer": timedelta(seconds=10),
    "mixed_settlement": timedelta(seconds=15),
}

BLOCK_RANGE = (18_000_000, 18_999_999)
TOKEN_TRANSFER_GAS = 21000


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ExecutionResult:
    status: str
    estimated_completion: datetime
    transaction_details: Dict[str, Any]


Routine = Callable[[SettlementRecord, SettlementMethodConfig], Awaitable[ExecutionResult]]


class SettlementDispatcher:
    def __init__(
        self,
        rng: Optional[RandomSource] = None,
        *,
        oracle: Optional[PriceOracle] = None,
        neft_status: str = "processing",
        mixed_inr_share: float = 0.5,
        latency_scale: float = 1.0,
        timeout_seconds: Optional[float] = 30.0,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if neft_status not in ("processing", "completed"):
            raise ValueError(f"Unsupported NEFT status '{neft_status}'")
        if not 0.0 <= mixed_inr_share <= 1.0:
            raise ValueError("mixed_inr_share must be within 0..1")
        self._rng = rng or default_random_source()
        self._oracle = oracle
        self._neft_status = neft_status
        self._mixed_inr_share = mixed_inr_share
        self._latency_scale = latency_scale
        self._timeout = timeout_seconds
        self._clock = clock
        self._routines: Dict[str, Routine] = {
            "inr_upi": self._process_upi,
            "inr_neft": self._process_neft,
            "binr_transfer": self._process_binr,
            "bgt_transfer": self._process_bgt,
            "mixed_settlement": self._process_mixed,
        }

    async def execute(self, record: SettlementRecord) -> ExecutionResult:
        method = get_method(record.settlement_method)
        if record.status != "pending":
            raise InvalidTransitionError(
                f"Settlement {record.settlement_id} already {record.status}; create a new settlement to retry"
            )
        validate_amount(record.amount, method)

        routine = self._routines[method.code]
        record.transition("processing")
        try:
            if self._timeout:
                result = await asyncio.wait_for(routine(record, method), self._timeout)
            else:
                result = await routine(record, method)
        except asyncio.TimeoutError as exc:
            message = f"{method.display_name} timed out after {self._timeout}s"
            self._fail(record, message)
            raise ExecutionFailure(message, settlement_id=record.settlement_id) from exc
        except asyncio.CancelledError:
            # A cancelled dispatch ends failed, never processing
            self._fail(record, f"{method.display_name} cancelled")
            raise
        except Exception as exc:
            self._fail(record, str(exc))
            raise

        record.transaction_details = result.transaction_details
        record.estimated_completion = result.estimated_completion
        if result.status != record.status:
            record.transition(result.status)
        logger.info(
            "settlement %s dispatched via %s -> %s",
            record.settlement_id,
            method.code,
            record.status,
        )
        return result

    # Internal --------------------------------------------------
    def _fail(self, record: SettlementRecord, message: str) -> None:
        record.transition("failed", error_message=message)
        logger.error(
            "settlement %s failed: %s",
            record.settlement_id,
            message,
            extra={"settlement_method": record.settlement_method},
        )

    async def _simulate_latency(self, code: str) -> None:
        delay = ROUTINE_LATENCY_SECONDS[code] * self._latency_scale
        if delay > 0:
            await asyncio.sleep(delay)

    def _epoch_ms(self) -> int:
        return int(self._clock().timestamp() * 1000)

    def _eta(self, code: str) -> datetime:
        return self._clock() + COMPLETION_WINDOWS[code]

    def _block_number(self) -> int:
        return self._rng.randint(*BLOCK_RANGE)

    @staticmethod
    def _require(record: SettlementRecord, *keys: str) -> Any:
        # First non-empty key wins; the rail rejects the payout otherwise
        for key in keys:
            value = record.merchant_account.get(key)
            if value:
                return value
        raise ExecutionFailure(
            f"merchant account is missing '{keys[0]}'",
            field=f"merchant_account_details.{keys[0]}",
            settlement_id=record.settlement_id,
        )

    # Routines -------------------------------------------------
    async def _process_upi(
        self, record: SettlementRecord, method: SettlementMethodConfig
    ) -> ExecutionResult:
        vpa = self._require(record, "vpa", "upi_id")
        await self._simulate_latency(method.code)
        utr = f"UPI{self._epoch_ms()}{random_reference(self._rng, 6)}"
        return ExecutionResult(
            status="completed",
            estimated_completion=self._eta(method.code),
            transaction_details={
                "method": "upi",
                "utr": utr,
                "vpa": vpa,
                "upi_reference": f"UR{random_reference(self._rng, 9)}",
                "amount": round2(record.net_amount),
            },
        )

    async def _process_neft(
        self, record: SettlementRecord, method: SettlementMethodConfig
    ) -> ExecutionResult:
        account_number = self._require(record, "account_number")
        ifsc_code = self._require(record, "ifsc_code")
        await self._simulate_latency(method.code)
        return ExecutionResult(
            status=self._neft_status,
            estimated_completion=self._eta(method.code),
            transaction_details={
                "method": "neft",
                "transaction_id": f"NEFT{self._epoch_ms()}",
                "reference_number": f"REF{random_reference(self._rng, 12)}",
                "account_number": account_number,
                "ifsc_code": ifsc_code,
                "amount": round2(record.net_amount),
            },
        )

    async def _process_binr(
        self, record: SettlementRecord, method: SettlementMethodConfig
    ) -> ExecutionResult:
        wallet = self._require(record, "wallet_address")
        await self._simulate_latency(method.code)
        return ExecutionResult(
            status="completed",
            estimated_completion=self._eta(method.code),
            transaction_details={
                "method": "binr_transfer",
                "recipient_wallet": wallet,
                "transaction_hash": random_tx_hash(self._rng),
                "block_number": self._block_number(),
                "gas_used": TOKEN_TRANSFER_GAS,
                "token_amount": round2(record.net_amount),
            },
        )

    async def _process_bgt(
        self, record: SettlementRecord, method: SettlementMethodConfig
    ) -> ExecutionResult:
        wallet = self._require(record, "wallet_address")
        await self._simulate_latency(method.code)
        gold_price = (
            self._oracle.get_price("bgt").price if self._oracle else BASE_PRICES["bgt"]
        )
        return ExecutionResult(
            status="completed",
            estimated_completion=self._eta(method.code),
            transaction_details={
                "method": "bgt_transfer",
                "recipient_wallet": wallet,
                "transaction_hash": random_tx_hash(self._rng),
                "block_number": self._block_number(),
                "token_amount": round2(record.net_amount),
                "gold_grams": round(record.net_amount / gold_price, 4),
                "vault_provider": record.merchant_account.get("vault_provider")
                or "MMTC-PAMP",
            },
        )

    async def _process_mixed(
        self, record: SettlementRecord, method: SettlementMethodConfig
    ) -> ExecutionResult:
        await self._simulate_latency(method.code)
        inr_amount = record.net_amount * self._mixed_inr_share
        binr_amount = record.net_amount - inr_amount
        return ExecutionResult(
            status="completed",
            estimated_completion=self._eta(method.code),
            transaction_details={
                "method": "mixed",
                "legs": [
                    {
                        "leg": "inr",
                        "currency": "INR",
                        "share": self._mixed_inr_share,
                        "amount": round2(inr_amount),
                        "reference": f"MI{self._epoch_ms()}",
                        "status": "completed",
                    },
                    {
                        "leg": "binr",
                        "currency": "BINR",
                        "share": round(1 - self._mixed_inr_share, 6),
                        "amount": round2(binr_amount),
                        "transaction_hash": random_tx_hash(self._rng),
                        "block_number": self._block_number(),
                        "recipient_wallet": record.merchant_account.get(
                            "wallet_address"
                        ),
                        "status": "completed",
                    },
                ],
            },
        )
