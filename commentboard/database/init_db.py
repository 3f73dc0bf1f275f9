"""
Create the comment board schema.

Run once against an empty database (safe to re-run, every statement is
idempotent):

    python -m commentboard.database.init_db

Uniqueness of usernames and emails is enforced here with UNIQUE constraints,
so concurrent duplicate registrations cannot both succeed.
"""

import logging
import sys

from commentboard.database.db_connection import db_cursor

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    user_id       SERIAL PRIMARY KEY,
    username      VARCHAR(30)  NOT NULL,
    email         VARCHAR(255) NOT NULL,
    password_hash TEXT         NOT NULL,
    first_name    VARCHAR(50)  NOT NULL,
    last_name     VARCHAR(50)  NOT NULL,
    is_active     BOOLEAN      NOT NULL DEFAULT TRUE,
    last_login    TIMESTAMPTZ,
    created_at    TIMESTAMPTZ  NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at    TIMESTAMPTZ  NOT NULL DEFAULT CURRENT_TIMESTAMP,
    CONSTRAINT users_username_key UNIQUE (username),
    CONSTRAINT users_email_key UNIQUE (email),
    CONSTRAINT users_email_lowercase CHECK (email = LOWER(email))
);

CREATE TABLE IF NOT EXISTS comments (
    comment_id  SERIAL PRIMARY KEY,
    content     VARCHAR(500) NOT NULL CHECK (LENGTH(content) > 0),
    author_id   INTEGER      NOT NULL REFERENCES users (user_id),
    author_name VARCHAR(101) NOT NULL,
    is_active   BOOLEAN      NOT NULL DEFAULT TRUE,
    created_at  TIMESTAMPTZ  NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at  TIMESTAMPTZ  NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS comments_created_at_idx ON comments (created_at DESC);
CREATE INDEX IF NOT EXISTS comments_author_id_idx ON comments (author_id);
"""


def init_db() -> None:
    """Apply SCHEMA_SQL in a single transaction."""
    with db_cursor() as cur:
        cur.execute(SCHEMA_SQL)
    logging.info("Database schema is up to date.")


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(asctime)s - %(message)s")
    try:
        init_db()
    except Exception as e:
        logging.error(f"Schema initialisation failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
