"""
Utilities for reading and rewriting database connection strings.
"""
from sqlalchemy.engine import make_url


def with_database(connection_string: str, database: str) -> str:
    """
    Returns the connection string pointing at another catalog.

    :param connection_string: SQLAlchemy style URL.
    :param database: Catalog name to use.
    :return: The rewritten URL, password included.
    """
    url = make_url(connection_string).set(database=database)
    return url.render_as_string(hide_password=False)


def redact(connection_string: str) -> str:
    """
    Hides the password so the connection string can be logged.
    """
    return make_url(connection_string).render_as_string(hide_password=True)
