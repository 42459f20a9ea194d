"""
Hospital Management System

A FastAPI-based backend for doctors: profiles, patients, prescriptions and
appointment scheduling with conflict-free slot booking.
"""

__version__ = "1.0.0"
