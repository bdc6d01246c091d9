import logging
import threading
from typing import Iterator, Optional

from config import Config
from psycopg import Cursor
from psycopg.conninfo import make_conninfo
from psycopg_pool import ConnectionPool, PoolTimeout

from relaybox.errors import NotFound


logger = logging.getLogger(__name__)


LATEST = "latest"


pools: dict[str, ConnectionPool] = {}
pools_lock = threading.Lock()


def get_pool(db_config: Config) -> ConnectionPool:
    """
    Returns the connection pool for the mailbox database described by the
    `db` mapping, opening it the first time it is asked for.

    Pools are shared by connection string, so every store pointing at the
    same database uses the same pool.
    """
    conninfo = make_conninfo(
        dbname=db_config.get("name", "relaybox"),
        user=db_config.get("user", "relaybox"),
        password=db_config.get("password", None),
        host=db_config.get("host", "localhost"),
        port=db_config.get("port", 5432),
    )

    with pools_lock:
        if conninfo not in pools:
            pool = ConnectionPool(conninfo, open=False)

            try:
                pool.open(wait=True)
            except PoolTimeout as e:
                logger.error("Could not connect to the mailbox database: %(reason)s", {"reason": str(e)})
                pool.close()
                raise

            pools[conninfo] = pool

        return pools[conninfo]


class MessageStore:
    """
    Read-only access to the raw messages captured in the mailbox.

    Messages live in the `messages` table, with the original bytes in `raw`.
    The mailbox itself (capture, search, tagging, deletion) is maintained
    elsewhere; this only ever reads.

    A cursor can be injected, in which case the connection pool is not used.
    """

    def __init__(self, app_config: Config, cursor: Optional[Cursor] = None) -> None:
        self.app_config = app_config
        self.cursor = cursor

    def _get_cursor(self) -> Iterator[Cursor]:
        if self.cursor:
            yield self.cursor
        else:
            with get_pool(self.app_config.get("db", {})).connection() as connection:
                with connection.cursor() as cursor:
                    yield cursor

    def latest_id(self) -> str:
        """
        Returns the id of the most recently captured message
        """
        for cursor in self._get_cursor():
            cursor.execute(
                """
                SELECT
                    id
                    FROM messages
                    ORDER BY created DESC
                    LIMIT 1
                """
            )
            result = cursor.fetchone()

            if result:
                return str(result[0])

        raise NotFound("No messages found")

    def load_raw(self, message_id: str) -> bytes:
        """
        Returns the original bytes of the message.

        The id `latest` resolves to the most recently captured message.
        """
        if message_id == LATEST:
            message_id = self.latest_id()

        for cursor in self._get_cursor():
            cursor.execute(
                """
                SELECT
                    raw
                    FROM messages
                    WHERE id=%(id)s
                """,
                {"id": message_id}
            )
            result = cursor.fetchone()

            if result:
                logger.debug("Loaded message %(id)s", {"id": message_id})
                return bytes(result[0])

        raise NotFound(f"Message {message_id} not found")
