#!/usr/bin/env python3
"""
Unit Tests for fare calculation

Covers the free-parking threshold, hourly rates per vehicle type, the
recurring-user discount and the invalid ticket cases.
"""

import unittest
from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import Mock

from parkit.domain.fare_calculator import (
    FareCalculationError, FareCalculatorService, FareRates,
    InvalidTicketError, UnknownParkingTypeError
)
from parkit.domain.models import ParkingSpot, ParkingType, Ticket

ENTRY_TIME = datetime(2026, 3, 2, 10, 0, 0)


def make_ticket(parking_type=ParkingType.CAR, minutes=60):
    return Ticket(
        parking_spot=ParkingSpot(1, parking_type, False),
        vehicle_reg_number="ABCDEF",
        in_time=ENTRY_TIME,
        out_time=ENTRY_TIME + timedelta(minutes=minutes)
    )


class TestFareCalculatorService(unittest.TestCase):
    """Unit tests for FareCalculatorService"""

    def setUp(self):
        self.calculator = FareCalculatorService(FareRates())

    def test_calculate_fare_car(self):
        """One hour of car parking costs the car hourly rate"""
        ticket = make_ticket(ParkingType.CAR, 60)

        self.calculator.calculate_fare(ticket)

        self.assertEqual(ticket.price, Decimal("1.5"))

    def test_calculate_fare_bike(self):
        """One hour of bike parking costs the bike hourly rate"""
        ticket = make_ticket(ParkingType.BIKE, 60)

        self.calculator.calculate_fare(ticket)

        self.assertEqual(ticket.price, Decimal("1.0"))

    def test_calculate_fare_returns_price(self):
        ticket = make_ticket(ParkingType.CAR, 120)

        price = self.calculator.calculate_fare(ticket)

        self.assertEqual(price, ticket.price)
        self.assertEqual(price, Decimal("3.0"))

    def test_calculate_fare_car_with_less_than_one_hour(self):
        """45 minutes is billed as three quarters of an hour"""
        ticket = make_ticket(ParkingType.CAR, 45)

        self.calculator.calculate_fare(ticket)

        self.assertEqual(ticket.price, Decimal("0.75") * Decimal("1.5"))

    def test_calculate_fare_bike_with_less_than_one_hour(self):
        ticket = make_ticket(ParkingType.BIKE, 45)

        self.calculator.calculate_fare(ticket)

        self.assertEqual(ticket.price, Decimal("0.75"))

    def test_calculate_fare_car_with_more_than_a_day(self):
        ticket = make_ticket(ParkingType.CAR, 24 * 60)

        self.calculator.calculate_fare(ticket)

        self.assertEqual(ticket.price, Decimal("36"))

    def test_free_parking_under_thirty_minutes(self):
        """Stays up to 30 minutes are free whatever the type or discount"""
        for parking_type in (ParkingType.CAR, ParkingType.BIKE):
            for discount in (False, True):
                for minutes in (0, 1, 20, 29, 30):
                    ticket = make_ticket(parking_type, minutes)
                    self.calculator.calculate_fare(ticket, discount)
                    self.assertEqual(
                        ticket.price, Decimal("0"),
                        msg=f"type={parking_type}, discount={discount}, minutes={minutes}"
                    )

    def test_just_over_thirty_minutes_is_charged(self):
        ticket = make_ticket(ParkingType.CAR, 31)

        self.calculator.calculate_fare(ticket)

        self.assertGreater(ticket.price, Decimal("0"))

    def test_free_threshold_is_checked_to_the_microsecond(self):
        ticket = make_ticket(ParkingType.CAR, 30)
        ticket.out_time += timedelta(microseconds=1)

        self.calculator.calculate_fare(ticket)

        self.assertGreater(ticket.price, Decimal("0"))

    def test_discount_for_recurring_user(self):
        """Recurring users pay 95% of the hourly price"""
        ticket = make_ticket(ParkingType.CAR, 60)

        self.calculator.calculate_fare(ticket, True)

        self.assertEqual(ticket.price, Decimal("1.425"))

    def test_discount_for_recurring_bike_user(self):
        ticket = make_ticket(ParkingType.BIKE, 120)

        self.calculator.calculate_fare(ticket, discount=True)

        self.assertEqual(ticket.price, Decimal("1.90"))

    def test_default_is_no_discount(self):
        with_default = make_ticket(ParkingType.CAR, 90)
        explicit = make_ticket(ParkingType.CAR, 90)

        self.calculator.calculate_fare(with_default)
        self.calculator.calculate_fare(explicit, False)

        self.assertEqual(with_default.price, explicit.price)

    def test_price_increases_with_duration(self):
        """Price is monotonically increasing past the free threshold"""
        for parking_type in (ParkingType.CAR, ParkingType.BIKE):
            for discount in (False, True):
                prices = []
                for minutes in (31, 45, 60, 90, 180, 600):
                    ticket = make_ticket(parking_type, minutes)
                    self.calculator.calculate_fare(ticket, discount)
                    prices.append(ticket.price)
                self.assertEqual(prices, sorted(prices))
                self.assertEqual(len(set(prices)), len(prices))

    def test_price_is_rounded_to_four_places(self):
        """35 minutes is 0.58333... hours; the price keeps the stored scale"""
        ticket = make_ticket(ParkingType.BIKE, 35)

        price = self.calculator.calculate_fare(ticket)

        self.assertEqual(price, Decimal("0.5833"))
        self.assertEqual(price.as_tuple().exponent, -4)

    def test_discounted_price_is_rounded(self):
        """50 minutes of car parking: 1.25 x 0.95 = 1.1875 fits the scale exactly"""
        ticket = make_ticket(ParkingType.CAR, 50)

        self.calculator.calculate_fare(ticket, True)

        self.assertEqual(ticket.price, Decimal("1.1875"))

    def test_rounding_is_half_up(self):
        calculator = FareCalculatorService(FareRates(recurring_discount=Decimal("0.12345")))
        ticket = make_ticket(ParkingType.BIKE, 60)

        calculator.calculate_fare(ticket, True)

        self.assertEqual(ticket.price, Decimal("0.1235"))

    def test_missing_out_time_raises(self):
        ticket = make_ticket()
        ticket.out_time = None

        with self.assertRaises(InvalidTicketError):
            self.calculator.calculate_fare(ticket)

    def test_out_time_before_in_time_raises(self):
        ticket = make_ticket(minutes=-60)

        with self.assertRaises(InvalidTicketError):
            self.calculator.calculate_fare(ticket)

    def test_invalid_ticket_error_is_a_value_error(self):
        ticket = make_ticket(minutes=-1)

        with self.assertRaises(ValueError):
            self.calculator.calculate_fare(ticket)

    def test_invalid_ticket_leaves_price_untouched(self):
        ticket = make_ticket(minutes=-60)
        ticket.price = Decimal("0")

        with self.assertRaises(FareCalculationError):
            self.calculator.calculate_fare(ticket, True)

        self.assertEqual(ticket.price, Decimal("0"))

    def test_unknown_parking_type_raises(self):
        ticket = make_ticket(minutes=120)
        ticket.parking_spot = Mock(parking_type="TRUCK")

        with self.assertRaises(UnknownParkingTypeError):
            self.calculator.calculate_fare(ticket)

    def test_unknown_parking_type_is_free_under_threshold(self):
        """The free-parking rule is applied before the rate lookup"""
        ticket = make_ticket(minutes=10)
        ticket.parking_spot = Mock(parking_type="TRUCK")

        self.calculator.calculate_fare(ticket)

        self.assertEqual(ticket.price, Decimal("0"))

    def test_configured_rates_are_used(self):
        calculator = FareCalculatorService(FareRates(
            car_rate_per_hour=Decimal("4"),
            bike_rate_per_hour=Decimal("2"),
            free_parking_minutes=0,
            recurring_discount=Decimal("0.5")
        ))
        car = make_ticket(ParkingType.CAR, 30)
        bike = make_ticket(ParkingType.BIKE, 60)

        calculator.calculate_fare(car)
        calculator.calculate_fare(bike, True)

        self.assertEqual(car.price, Decimal("2"))
        self.assertEqual(bike.price, Decimal("1"))


class TestFareRates(unittest.TestCase):
    """Unit tests for FareRates"""

    def test_defaults(self):
        rates = FareRates()

        self.assertEqual(rates.hourly_rates()[ParkingType.CAR], Decimal("1.5"))
        self.assertEqual(rates.hourly_rates()[ParkingType.BIKE], Decimal("1.0"))
        self.assertEqual(rates.free_parking_threshold, timedelta(minutes=30))
        self.assertEqual(rates.recurring_discount, Decimal("0.95"))

    def test_discount_percent(self):
        self.assertEqual(FareRates().discount_percent, Decimal("5"))
        self.assertEqual(format(FareRates(recurring_discount=Decimal("0.9")).discount_percent, "f"), "10")
        self.assertEqual(format(FareRates(recurring_discount=Decimal("0.925")).discount_percent, "f"), "7.5")
        self.assertEqual(FareRates(recurring_discount=Decimal("1")).discount_percent, Decimal("0"))

    def test_negative_rate_rejected(self):
        with self.assertRaises(ValueError):
            FareRates(car_rate_per_hour=Decimal("-1"))

    def test_discount_out_of_range_rejected(self):
        for factor in (Decimal("0"), Decimal("1.1")):
            with self.assertRaises(ValueError):
                FareRates(recurring_discount=factor)

    def test_from_settings(self):
        settings = Mock(
            car_rate_per_hour=Decimal("2.5"),
            bike_rate_per_hour=Decimal("1.25"),
            free_parking_minutes=15,
            recurring_discount=Decimal("0.9")
        )

        rates = FareRates.from_settings(settings)

        self.assertEqual(rates.car_rate_per_hour, Decimal("2.5"))
        self.assertEqual(rates.bike_rate_per_hour, Decimal("1.25"))
        self.assertEqual(rates.free_parking_minutes, 15)
        self.assertEqual(rates.recurring_discount, Decimal("0.9"))


if __name__ == '__main__':
    unittest.main()
