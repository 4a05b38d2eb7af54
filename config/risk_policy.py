"""
Risk scoring policy constants.

Weights used by the risk aggregator. Tunable policy values, not
derived quantities.
"""

# =============================================================================
# BASE RISK (projection summary)
# =============================================================================

# Weight per projected day in each band
STOCKOUT_DAY_WEIGHT = 0.4
CRITICAL_DAY_WEIGHT = 0.2
WARNING_DAY_WEIGHT = 0.1

# Weighted day count is divided by this to normalize into 0-1
RISK_NORMALIZATION_DAYS = 30

# =============================================================================
# BLENDING
# =============================================================================

# Share of seasonal deviation added to the stockout probability
SEASONAL_RISK_WEIGHT = 0.3

# Share of network imbalance (1 - optimization score) added
NETWORK_RISK_WEIGHT = 0.2

# =============================================================================
# NETWORK OPTIMIZATION SCORE
# =============================================================================

# Score lost per recommended transfer
SCORE_PENALTY_PER_TRANSFER = 0.1

# Floor of the score, however many transfers are recommended
MIN_NETWORK_SCORE = 0.1

# Neutral score when no network analysis is available
DEFAULT_NETWORK_SCORE = 0.5

# =============================================================================
# RISK LEVEL BOUNDARIES (upper bounds, exclusive)
# =============================================================================

LOW_RISK_BELOW = 0.2
MEDIUM_RISK_BELOW = 0.5

# =============================================================================
# TRANSFER URGENCY (share of the destination's target still missing)
# =============================================================================

HIGH_URGENCY_GAP_RATIO = 0.5
MEDIUM_URGENCY_GAP_RATIO = 0.25

# =============================================================================
# DISTRIBUTION PLAN
# =============================================================================

# Estimated benefit per unit of deficit a transfer starts closing
TRANSFER_BENEFIT_PER_UNIT = 0.1

# Ceiling on a node's stock as a share of its capacity
MAX_STOCK_CAPACITY_RATIO = 0.9
