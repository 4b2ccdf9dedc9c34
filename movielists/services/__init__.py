"""Clients for the remote catalog and account APIs."""
