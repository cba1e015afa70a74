"""
Integration Tests Package for the ParkIt parking system

Vehicle entry and exit flows run through ParkingService against the
SQLAlchemy stores on an in-memory SQLite database.
"""
