"""ParkIt - single-facility parking lot management"""

__version__ = "1.0.0"
