from django.db import DEFAULT_DB_ALIAS, connections, transaction


class ConnectionProvider:
    """Hands out the Django connection for one database alias.

    Holds no state besides the alias; Django keeps one connection per thread,
    so a single provider is safely shared by every store.
    """

    def __init__(self, alias=DEFAULT_DB_ALIAS):
        self.alias = alias

    def acquire(self):
        """Return the connection for this alias, opening it if needed."""
        connection = connections[self.alias]
        connection.ensure_connection()
        return connection

    def atomic(self):
        return transaction.atomic(using=self.alias)
