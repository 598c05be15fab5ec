"""Booking lifecycle: state machine, persistence and HTTP routes"""
