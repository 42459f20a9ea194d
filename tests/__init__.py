"""
Test suite for the Hospital Management System.

Contains unit and integration tests for slot availability, booking and the
doctor API.
"""
