"""Warnings Tracker - static analysis issue tracking across builds."""

__version__ = "0.1.0"
