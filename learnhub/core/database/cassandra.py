"""Cassandra access through cassandra-asyncio-driver.

The driver's `Cluster` hands out sessions that expose `aexecute()`, an
awaitable counterpart of `execute()`. Connecting itself stays blocking, so
it happens once at startup.
"""

from typing import TYPE_CHECKING

import structlog
from cassandra.auth import PlainTextAuthProvider
from cassandra.policies import DCAwareRoundRobinPolicy, TokenAwarePolicy
from cassandra_asyncio.cluster import Cluster

from learnhub.courses.models import COURSES_TABLES_CQL
from learnhub.progress.models import PROGRESS_TABLES_CQL


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from learnhub.config.settings import Settings

logger = structlog.get_logger(__name__)

SCHEMA_CQL = [*COURSES_TABLES_CQL, *PROGRESS_TABLES_CQL]


def keyspace_replication(production: bool) -> str:
    """Replication map for the keyspace DDL."""
    if production:
        return "{'class': 'NetworkTopologyStrategy', 'datacenter1': 3}"
    return "{'class': 'SimpleStrategy', 'replication_factor': 1}"


class CassandraStore:
    """Owns the cluster and session for the lifetime of the application."""

    def __init__(self, settings: "Settings"):
        self.settings = settings
        self.cluster: Cluster | None = None
        self.session: "Session | None" = None

    def _build_cluster(self) -> Cluster:
        credentials = None
        if self.settings.cassandra_username and self.settings.cassandra_password:
            credentials = PlainTextAuthProvider(
                username=self.settings.cassandra_username,
                password=self.settings.cassandra_password,
            )
        return Cluster(
            contact_points=self.settings.cassandra_hosts,
            port=self.settings.cassandra_port,
            auth_provider=credentials,
            protocol_version=self.settings.cassandra_protocol_version,
            load_balancing_policy=TokenAwarePolicy(DCAwareRoundRobinPolicy()),
            connect_timeout=self.settings.cassandra_connect_timeout,
        )

    async def open(self) -> "Session":
        """Connect, then create the keyspace and tables if missing.

        Raises:
            ConnectionError: If the cluster cannot be reached
        """
        if self.session is not None:
            return self.session

        keyspace = self.settings.cassandra_keyspace
        self.cluster = self._build_cluster()
        try:
            session = self.cluster.connect()
        except Exception as e:
            logger.error(
                "cassandra_connection_failed",
                hosts=self.settings.cassandra_hosts,
                error=str(e),
            )
            self.cluster.shutdown()
            self.cluster = None
            raise ConnectionError(f"Failed to connect to Cassandra: {e}") from e

        replication = keyspace_replication(self.settings.is_production)
        await session.aexecute(
            f"CREATE KEYSPACE IF NOT EXISTS {keyspace} "
            f"WITH replication = {replication} AND durable_writes = true"
        )
        session.set_keyspace(keyspace)
        for table_cql in SCHEMA_CQL:
            await session.aexecute(table_cql.format(keyspace=keyspace))

        self.session = session
        logger.info(
            "cassandra_ready",
            hosts=self.settings.cassandra_hosts,
            keyspace=keyspace,
            tables=len(SCHEMA_CQL),
        )
        return session

    def close(self) -> None:
        """Shut down the session and cluster (safe to call twice)."""
        if self.session is not None:
            self.session.shutdown()
            self.session = None
        if self.cluster is not None:
            self.cluster.shutdown()
            self.cluster = None
            logger.info("cassandra_closed")
