"""Point rewards paid out when a transaction is settled"""

# Buyer bonus: on the pre-discount total for zero-cost checkouts, on the paid
# amount for confirmed payments
PURCHASE_BONUS_PERCENT = 10
# One-time reward to whoever referred the buyer, on the buyer's first confirmed payment
REFERRAL_REWARD_PERCENT = 5


def purchase_bonus_points(amount: int) -> int:
    return max(0, amount) * PURCHASE_BONUS_PERCENT // 100


def referral_reward_points(final_amount: int) -> int:
    return max(0, final_amount) * REFERRAL_REWARD_PERCENT // 100
