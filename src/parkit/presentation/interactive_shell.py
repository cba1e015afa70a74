# File: src/parkit/presentation/interactive_shell.py
"""
Interactive console for parking attendants
"""

import logging

from ..application.parking_service import InvalidInputError, ParkingService
from .input_reader import InputReaderUtil

MENU = (
    "Please select an option. Simply enter the number to choose an action\n"
    "1 New Vehicle Entering - allocate Parking Space\n"
    "2 Vehicle Exiting - generate Ticket price\n"
    "3 Shutdown System"
)

VEHICLE_TYPE_MENU = (
    "Please select vehicle type from menu\n"
    "1 CAR\n"
    "2 BIKE"
)

REG_NUMBER_PROMPT = "Please type the vehicle registration number and press enter key"


class InteractiveShell:
    """Menu loop wiring console input to the ParkingService"""

    def __init__(self, parking_service: ParkingService, input_reader: InputReaderUtil, output=print):
        self.parking_service = parking_service
        self.input_reader = input_reader
        self.output = output
        self.logger = logging.getLogger(self.__class__.__name__)

    def run(self) -> None:
        self.logger.info("App initialized!!!")
        self.output("Welcome to Parking System!")

        continue_app = True
        while continue_app:
            self.output(MENU)
            try:
                option = self.input_reader.read_selection()
            except EOFError:
                self.logger.info("Input closed, exiting program")
                break

            try:
                if option == 1:
                    self.handle_incoming_vehicle()
                elif option == 2:
                    self.handle_exiting_vehicle()
                elif option == 3:
                    self.output("Exiting from the system!")
                    continue_app = False
                else:
                    self.output("Unsupported option. Please enter a number corresponding to the provided menu")
            except EOFError:
                self.logger.info("Input closed, exiting program")
                break

    def handle_incoming_vehicle(self) -> None:
        self.output(VEHICLE_TYPE_MENU)
        selection = self.input_reader.read_selection()
        try:
            self.parking_service.get_vehicle_type(selection)
        except InvalidInputError:
            self.output("Incorrect input provided")
            return

        self.output(REG_NUMBER_PROMPT)
        try:
            reg_number = self.input_reader.read_vehicle_registration_number()
        except InvalidInputError as e:
            self.output(str(e))
            return

        result = self.parking_service.process_incoming_vehicle(selection, reg_number)
        if result.recurring_user and result.success:
            self.output(
                f"Welcome back! As a recurring user of our parking lot, "
                f"you'll benefit from a {result.discount_percent:f}% discount."
            )
        self.output(result.message)
        if result.success and result.ticket:
            self.output(
                f"Recorded in-time for vehicle number: {result.ticket.vehicle_reg_number} "
                f"is: {result.ticket.in_time:%Y-%m-%d %H:%M:%S}"
            )

    def handle_exiting_vehicle(self) -> None:
        self.output(REG_NUMBER_PROMPT)
        try:
            reg_number = self.input_reader.read_vehicle_registration_number()
        except InvalidInputError as e:
            self.output(str(e))
            return

        result = self.parking_service.process_exiting_vehicle(reg_number)
        self.output(result.message)
        if result.success and result.ticket:
            self.output(
                f"Recorded out-time for vehicle number: {result.ticket.vehicle_reg_number} "
                f"is: {result.ticket.out_time:%Y-%m-%d %H:%M:%S}"
            )
