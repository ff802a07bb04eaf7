"""
Unit tests for PricingEngine

Key points:
1. Discount order: promotion, then coupon on what is left, then points
2. Points cap: min(balance, floor(total / 2)) on the pre-discount total
3. Non-applicable promotion / coupon are ignored, never an error
4. Validation: empty cart, bad quantity, unknown tier, availability
"""

from datetime import timedelta

import pytest

from src.service.checkout.domain.checkout_error import (
    EmptyCartError,
    InsufficientSeatsError,
    InvalidQuantityError,
    TicketNotFoundError,
)
from src.service.checkout.domain.entity.event_entity import TicketTier
from src.service.checkout.domain.entity.promotion_entity import Coupon, Promotion
from src.service.checkout.domain.pricing_engine import PricingEngine, max_usable_points
from src.service.checkout.domain.value_object.cart_line import CartLine
from src.service.checkout.domain.value_object.priced_quote import DiscountSource
from test.test_constants import TEST_NOW


EVENT_ID = 1
USER_ID = 7


@pytest.fixture
def engine() -> PricingEngine:
    return PricingEngine()


@pytest.fixture
def catalog() -> dict[int, TicketTier]:
    return {
        1: TicketTier(
            id=1, event_id=EVENT_ID, name='Regular', price=100_000, total_seats=10, available_seats=10
        ),
        2: TicketTier(
            id=2, event_id=EVENT_ID, name='VIP', price=250_000, total_seats=2, available_seats=1
        ),
        3: TicketTier(
            id=3, event_id=99, name='Other Event', price=50_000, total_seats=5, available_seats=5
        ),
    }


def _promotion(**overrides) -> Promotion:
    fields = {
        'id': 11,
        'code': 'EARLYBIRD',
        'discount': 10,
        'is_percentage': True,
        'start_date': TEST_NOW - timedelta(days=1),
        'end_date': TEST_NOW + timedelta(days=1),
        'max_uses': 100,
        'used_count': 0,
        'event_id': EVENT_ID,
    }
    fields |= overrides
    return Promotion(**fields)


def _coupon(**overrides) -> Coupon:
    fields = {
        'id': 21,
        'user_id': USER_ID,
        'code': 'WELCOME',
        'discount': 50_000,
        'is_percentage': False,
        'expiry_date': TEST_NOW + timedelta(days=30),
    }
    fields |= overrides
    return Coupon(**fields)


class TestPricingTotals:
    def test_totals_lines_without_discounts(self, engine, catalog):
        """
        Given: 2 Regular + 1 VIP
        When: priced with no promotion, coupon or points
        Then: final amount equals the line total
        """
        # Act
        quote = engine.price(
            cart=[CartLine(ticket_id=1, quantity=2), CartLine(ticket_id=2, quantity=1)],
            catalog=catalog,
            event_id=EVENT_ID,
            user_id=USER_ID,
            now=TEST_NOW,
        )

        # Assert
        assert [line.subtotal for line in quote.lines] == [200_000, 250_000]
        assert quote.total_amount == 450_000
        assert quote.final_amount == 450_000
        assert quote.discounts == ()
        assert quote.seat_units == 3
        assert quote.all_available is True

    def test_same_inputs_give_same_quote(self, engine, catalog):
        cart = [CartLine(ticket_id=1, quantity=3)]
        kwargs = dict(
            cart=cart,
            catalog=catalog,
            event_id=EVENT_ID,
            user_id=USER_ID,
            now=TEST_NOW,
            promotion=_promotion(),
            coupon=_coupon(),
            points_requested=40_000,
            point_balance=100_000,
        )

        assert engine.price(**kwargs) == engine.price(**kwargs)


class TestDiscountOrder:
    def test_coupon_applies_to_amount_after_promotion(self, engine, catalog):
        """
        Given: total 200,000, 10% promotion, 50% coupon
        When: priced
        Then: coupon takes 50% of 180,000, not of 200,000
        """
        # Act
        quote = engine.price(
            cart=[CartLine(ticket_id=1, quantity=2)],
            catalog=catalog,
            event_id=EVENT_ID,
            user_id=USER_ID,
            now=TEST_NOW,
            promotion=_promotion(discount=10, is_percentage=True),
            coupon=_coupon(discount=50, is_percentage=True),
        )

        # Assert
        assert quote.promotion_discount == 20_000
        assert quote.coupon_discount == 90_000
        assert quote.final_amount == 90_000
        assert [d.source for d in quote.discounts] == [
            DiscountSource.PROMOTION,
            DiscountSource.COUPON,
        ]
        assert quote.promotion_id == 11
        assert quote.promotion_code == 'EARLYBIRD'
        assert quote.coupon_id == 21

    def test_percentage_discount_is_floored(self, engine):
        # 15% of 33,333 = 4,999.95
        catalog = {
            1: TicketTier(
                id=1, event_id=EVENT_ID, name='Odd', price=33_333, total_seats=5, available_seats=5
            )
        }

        quote = engine.price(
            cart=[CartLine(ticket_id=1, quantity=1)],
            catalog=catalog,
            event_id=EVENT_ID,
            user_id=USER_ID,
            now=TEST_NOW,
            promotion=_promotion(discount=15, is_percentage=True),
        )

        assert quote.promotion_discount == 4_999
        assert quote.final_amount == 28_334

    def test_flat_discounts_are_capped_at_remaining_amount(self, engine, catalog):
        """
        Given: total 100,000, flat promotion 80,000, flat coupon 50,000
        When: priced
        Then: coupon only takes the 20,000 left and final is 0
        """
        quote = engine.price(
            cart=[CartLine(ticket_id=1, quantity=1)],
            catalog=catalog,
            event_id=EVENT_ID,
            user_id=USER_ID,
            now=TEST_NOW,
            promotion=_promotion(discount=80_000, is_percentage=False),
            coupon=_coupon(discount=50_000),
        )

        assert quote.promotion_discount == 80_000
        assert quote.coupon_discount == 20_000
        assert quote.final_amount == 0


class TestPointsCap:
    @pytest.mark.parametrize(
        'total_amount,point_balance,expected',
        [
            (100_000, 200_000, 50_000),
            (100_000, 30_000, 30_000),
            (99_999, 200_000, 49_999),
            (0, 10_000, 0),
            (100_000, 0, 0),
        ],
    )
    def test_max_usable_points(self, total_amount, point_balance, expected):
        assert max_usable_points(total_amount=total_amount, point_balance=point_balance) == expected

    def test_points_capped_at_half_of_pre_discount_total(self, engine, catalog):
        """
        Given: total 100,000, flat coupon 100,000, balance 200,000, request 200,000
        When: priced
        Then: points used = 50,000 even though the coupon already covered everything
        """
        # Act
        quote = engine.price(
            cart=[CartLine(ticket_id=1, quantity=1)],
            catalog=catalog,
            event_id=EVENT_ID,
            user_id=USER_ID,
            now=TEST_NOW,
            coupon=_coupon(discount=100_000),
            points_requested=200_000,
            point_balance=200_000,
        )

        # Assert
        assert quote.coupon_discount == 100_000
        assert quote.points_used == 50_000
        assert quote.final_amount == 0

    def test_points_never_exceed_request(self, engine, catalog):
        quote = engine.price(
            cart=[CartLine(ticket_id=1, quantity=2)],
            catalog=catalog,
            event_id=EVENT_ID,
            user_id=USER_ID,
            now=TEST_NOW,
            points_requested=10_000,
            point_balance=500_000,
        )

        assert quote.points_used == 10_000
        assert quote.discount_for(DiscountSource.POINTS) == 10_000
        assert quote.final_amount == 190_000

    def test_no_points_without_balance(self, engine, catalog):
        quote = engine.price(
            cart=[CartLine(ticket_id=1, quantity=1)],
            catalog=catalog,
            event_id=EVENT_ID,
            user_id=USER_ID,
            now=TEST_NOW,
            points_requested=10_000,
            point_balance=0,
        )

        assert quote.points_used == 0
        assert quote.final_amount == 100_000


class TestNonApplicableDiscountsAreIgnored:
    @pytest.mark.parametrize(
        'overrides',
        [
            {'end_date': TEST_NOW - timedelta(seconds=1)},
            {'start_date': TEST_NOW + timedelta(hours=1)},
            {'used_count': 100},
            {'event_id': 99},
            {'is_active': False},
        ],
        ids=['expired', 'not_started', 'exhausted', 'other_event', 'inactive'],
    )
    def test_promotion_ignored(self, engine, catalog, overrides):
        quote = engine.price(
            cart=[CartLine(ticket_id=1, quantity=1)],
            catalog=catalog,
            event_id=EVENT_ID,
            user_id=USER_ID,
            now=TEST_NOW,
            promotion=_promotion(**overrides),
        )

        assert quote.promotion_discount == 0
        assert quote.promotion_id is None
        assert quote.final_amount == 100_000

    def test_event_agnostic_promotion_applies(self, engine, catalog):
        quote = engine.price(
            cart=[CartLine(ticket_id=1, quantity=1)],
            catalog=catalog,
            event_id=EVENT_ID,
            user_id=USER_ID,
            now=TEST_NOW,
            promotion=_promotion(event_id=None),
        )

        assert quote.promotion_discount == 10_000

    @pytest.mark.parametrize(
        'overrides',
        [
            {'user_id': 8},
            {'is_used': True},
            {'expiry_date': TEST_NOW - timedelta(seconds=1)},
            {'event_id': 99},
        ],
        ids=['other_owner', 'used', 'expired', 'other_event'],
    )
    def test_coupon_ignored(self, engine, catalog, overrides):
        quote = engine.price(
            cart=[CartLine(ticket_id=1, quantity=1)],
            catalog=catalog,
            event_id=EVENT_ID,
            user_id=USER_ID,
            now=TEST_NOW,
            coupon=_coupon(**overrides),
        )

        assert quote.coupon_discount == 0
        assert quote.coupon_id is None

    def test_coupon_valid_until_expiry_instant(self, engine, catalog):
        quote = engine.price(
            cart=[CartLine(ticket_id=1, quantity=1)],
            catalog=catalog,
            event_id=EVENT_ID,
            user_id=USER_ID,
            now=TEST_NOW,
            coupon=_coupon(expiry_date=TEST_NOW),
        )

        assert quote.coupon_discount == 50_000


class TestCartValidation:
    def test_empty_cart(self, engine, catalog):
        with pytest.raises(EmptyCartError):
            engine.price(cart=[], catalog=catalog, event_id=EVENT_ID, user_id=USER_ID, now=TEST_NOW)

    @pytest.mark.parametrize('quantity', [0, -1, True, 1.5])
    def test_non_positive_quantity(self, engine, catalog, quantity):
        with pytest.raises(InvalidQuantityError):
            engine.price(
                cart=[CartLine(ticket_id=1, quantity=quantity)],
                catalog=catalog,
                event_id=EVENT_ID,
                user_id=USER_ID,
                now=TEST_NOW,
            )

    @pytest.mark.parametrize('ticket_id', [404, 3], ids=['unknown', 'other_event'])
    def test_ticket_not_in_event(self, engine, catalog, ticket_id):
        with pytest.raises(TicketNotFoundError):
            engine.price(
                cart=[CartLine(ticket_id=ticket_id, quantity=1)],
                catalog=catalog,
                event_id=EVENT_ID,
                user_id=USER_ID,
                now=TEST_NOW,
            )

    def test_exceeding_availability_fails_when_enforced(self, engine, catalog):
        with pytest.raises(InsufficientSeatsError):
            engine.price(
                cart=[CartLine(ticket_id=2, quantity=2)],
                catalog=catalog,
                event_id=EVENT_ID,
                user_id=USER_ID,
                now=TEST_NOW,
            )

    def test_exceeding_availability_is_advisory_for_quotes(self, engine, catalog):
        """
        Given: VIP has 1 seat left
        When: 2 VIP are quoted without enforcement
        Then: the quote is priced and flagged as not available
        """
        quote = engine.price(
            cart=[CartLine(ticket_id=2, quantity=2)],
            catalog=catalog,
            event_id=EVENT_ID,
            user_id=USER_ID,
            now=TEST_NOW,
            enforce_availability=False,
        )

        assert quote.total_amount == 500_000
        assert quote.all_available is False
        assert quote.lines[0].is_available is False
