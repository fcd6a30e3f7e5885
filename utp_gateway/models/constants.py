"""Domain constants and enumerations for validation.

Asset and settlement-method codes form closed sets; anything outside them is
rejected by the services before state is touched.
"""

from typing import Dict, Set, Tuple

ASSET_CODES: Tuple[str, ...] = ("bgt", "bst", "bpt", "binr", "rwa")

# INR per unit
BASE_PRICES: Dict[str, float] = {
    "bgt": 5650.00,  # gold, per gram
    "bst": 72.50,  # silver, per gram
    "bpt": 3200.00,  # platinum, per gram
    "binr": 1.00,  # 1 BINR = 1 INR
    "rwa": 100.00,  # generic RWA token
}

VOLATILITY: Dict[str, str] = {
    "bgt": "low",
    "bst": "medium",
    "bpt": "high",
    "binr": "minimal",
    "rwa": "medium",
}

PRICE_SOURCES: Dict[str, str] = {
    "bgt": "LBMA/MMEX",
    "bst": "LME",
    "bpt": "LPPM",
    "binr": "BINR Network",
    "rwa": "UTP Internal",
}

QUOTE_CURRENCY = "INR"

SETTLEMENT_METHOD_CODES: Tuple[str, ...] = (
    "inr_upi",
    "inr_neft",
    "binr_transfer",
    "bgt_transfer",
    "mixed_settlement",
)

SETTLEMENT_CURRENCIES: Set[str] = {"INR", "BINR", "BGT", "BST", "BPT"}

SETTLEMENT_STATUSES: Tuple[str, ...] = ("pending", "processing", "completed", "failed")
TERMINAL_STATUSES: Set[str] = {"completed", "failed"}

# Fixed GST levied on settlement fees
GST_RATE = 0.18
