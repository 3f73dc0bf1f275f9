"""
PostgreSQL connection helper.
Provides get_db() and db_cursor() for use by services.
"""

import logging
import os
from contextlib import contextmanager
from typing import Iterator

import psycopg2
from psycopg2.extras import DictCursor
from dotenv import load_dotenv

# Load .env variables from the project root
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set. Please set the environment variable.")


def get_db():
    """
    Returns a new psycopg2 connection with dictionary-based row access.

    Returns:
        psycopg2.extensions.connection: A connection object with DictCursor factory.

    Raises:
        psycopg2.Error: If connection fails.
    """
    try:
        conn = psycopg2.connect(DATABASE_URL)
        # Rows come back as dictionaries (e.g., {"user_id": 1, "email": "..."})
        conn.cursor_factory = DictCursor
        return conn
    except psycopg2.Error as e:
        logging.error(f"Error connecting to database: {e}")
        raise


@contextmanager
def db_cursor() -> Iterator[DictCursor]:
    """
    Yield a cursor inside a transaction and close the connection afterwards.

    The transaction commits when the block exits cleanly and rolls back
    when it raises.

    Usage:
        with db_cursor() as cur:
            cur.execute(...)
    """
    conn = get_db()
    try:
        with conn:
            with conn.cursor() as cur:
                yield cur
    finally:
        conn.close()
