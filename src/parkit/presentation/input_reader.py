# File: src/parkit/presentation/input_reader.py
"""
Console input parsing
"""

import logging
import sys
from typing import Optional, TextIO

from ..application.parking_service import InvalidInputError

INVALID_SELECTION = -1


class InputReaderUtil:
    """Reads menu selections and registration numbers from a text stream"""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdin
        self.logger = logging.getLogger(self.__class__.__name__)

    def _read_line(self) -> str:
        line = self.stream.readline()
        if line == "":
            raise EOFError("Input stream closed")
        return line.strip()

    def read_selection(self) -> int:
        """Parse an integer selection, INVALID_SELECTION for anything else"""
        line = self._read_line()
        try:
            return int(line)
        except ValueError:
            self.logger.error(f"Error while reading user input from shell: {line!r}")
            print("Error reading input. Please enter valid number for proceeding further")
            return INVALID_SELECTION

    def read_vehicle_registration_number(self) -> str:
        """Read a non-blank registration number, raising InvalidInputError otherwise"""
        line = self._read_line()
        if not line:
            self.logger.error("Error while reading user input from shell: blank registration number")
            raise InvalidInputError("Invalid input provided")
        return line
