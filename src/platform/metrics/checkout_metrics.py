from prometheus_client import Counter, Histogram


class CheckoutMetrics:
    """
    Checkout and settlement metrics

    Tracks checkout outcomes, settlement transitions and expiry sweeps
    """

    def __init__(self):
        # ========== Checkout ==========
        self.checkout_requests = Counter(
            'checkout_requests_total',
            'Total checkout attempts',
            ['event_id', 'result'],  # result: waiting_for_payment/done/<error class>
        )

        self.checkout_duration = Histogram(
            'checkout_duration_seconds',
            'Checkout unit-of-work duration',
            ['event_id'],
            buckets=[0.005, 0.01, 0.05, 0.1, 0.2, 0.5, 1.0, 2.0, 5.0],
        )

        self.checkout_amount = Histogram(
            'checkout_final_amount',
            'Final payable amount per created transaction',
            ['event_id'],
            buckets=[0, 10_000, 50_000, 100_000, 250_000, 500_000, 1_000_000, 5_000_000],
        )

        # ========== Settlement ==========
        self.settlement_transitions = Counter(
            'settlement_transitions_total',
            'Transaction status transitions',
            ['from_status', 'to_status'],
        )

        self.expiry_sweep_canceled = Counter(
            'expiry_sweep_canceled_total',
            'Transactions canceled by the payment deadline sweep',
        )

        self.expiry_sweep_failures = Counter(
            'expiry_sweep_failures_total',
            'Per-transaction failures during the payment deadline sweep',
            ['error_type'],
        )

    # ========== Helper Methods ==========

    def record_checkout(self, *, event_id: int, result: str, duration: float):
        self.checkout_requests.labels(event_id=event_id, result=result).inc()
        self.checkout_duration.labels(event_id=event_id).observe(duration)

    def record_checkout_amount(self, *, event_id: int, final_amount: int):
        self.checkout_amount.labels(event_id=event_id).observe(final_amount)

    def record_transition(self, *, from_status: str, to_status: str):
        self.settlement_transitions.labels(from_status=from_status, to_status=to_status).inc()

    def record_sweep(self, *, canceled: int, failures: dict[str, int]):
        self.expiry_sweep_canceled.inc(canceled)
        for error_type, count in failures.items():
            self.expiry_sweep_failures.labels(error_type=error_type).inc(count)


# Global metrics instance
metrics = CheckoutMetrics()
