"""Adapters layer for MedLedger.

This module contains the adapters that interface with the ledger's external
collaborators. Adapters implement Port interfaces defined in the domain layer:
state stores, caller identity resolvers and transaction contexts.
"""
