"""
Shared Kernel

This module contains base classes and utilities shared across the
reservation and key custody domains: domain events, value objects, the
error taxonomy, the unit of work and the message bus.
"""
