"""Cassandra connection management."""

from learnhub.core.database.cassandra import CassandraStore


__all__ = ["CassandraStore"]
