"""
Unit Tests Package for the ParkIt parking system

Each component is tested in isolation; collaborators are replaced with
unittest.mock autospecs or the in-memory stores.
"""
