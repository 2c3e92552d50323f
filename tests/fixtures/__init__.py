"""Test doubles for the scheduler, event sources and command runners."""
