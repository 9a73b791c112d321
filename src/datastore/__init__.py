"""Boundary to the hosted relational backend."""
