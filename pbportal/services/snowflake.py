from __future__ import annotations

from typing import Optional

import snowflake.connector

from pbportal.config import Settings, get_settings



# MODULE-LEVEL CONNECTION (USED BY THE SNOWFLAKE STORE)


def get_snowflake_connection(settings: Optional[Settings] = None):
    """
    Snowflake connection factory.
    Used by SnowflakeScoringStore via dependency injection.
    """
    settings = settings or get_settings()
    password = settings.SNOWFLAKE_PASSWORD.get_secret_value() if settings.SNOWFLAKE_PASSWORD else None

    return snowflake.connector.connect(
        account=settings.SNOWFLAKE_ACCOUNT,
        user=settings.SNOWFLAKE_USER,
        password=password,
        warehouse=settings.SNOWFLAKE_WAREHOUSE,
        database=settings.SNOWFLAKE_DATABASE,
        schema=settings.SNOWFLAKE_SCHEMA,
        role=settings.SNOWFLAKE_ROLE,
    )



# SCHEMA


SCHEMA_DDL = (
    """
    CREATE TABLE IF NOT EXISTS scoring_records (
        application_id  VARCHAR(64)  NOT NULL,
        scorer_id       VARCHAR(128) NOT NULL,
        scorer_name     VARCHAR(255),
        scores          VARIANT,
        notes           VARIANT,
        is_final        BOOLEAN DEFAULT FALSE,
        total           FLOAT,
        created_at      TIMESTAMP_TZ,
        updated_at      TIMESTAMP_TZ,
        PRIMARY KEY (application_id, scorer_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS master_tracker (
        application_id  VARCHAR(64)  NOT NULL,
        scorer_id       VARCHAR(128) NOT NULL,
        scorer_name     VARCHAR(255),
        total           FLOAT,
        scores          VARIANT,
        updated_at      TIMESTAMP_TZ,
        PRIMARY KEY (application_id, scorer_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS reach_declarations (
        application_id         VARCHAR(64) PRIMARY KEY,
        reach_figure           INTEGER,
        evidence_url           VARCHAR(2048),
        evidence_file_path     VARCHAR(1024),
        declaration_confirmed  BOOLEAN,
        tier                   VARCHAR(16),
        coefficient_factor     FLOAT,
        audit_flag             BOOLEAN DEFAULT FALSE,
        admin_notes            VARCHAR(4000),
        submitted_at           TIMESTAMP_TZ,
        updated_at             TIMESTAMP_TZ
    )
    """,
)


def ensure_schema(conn) -> None:
    """Create the engine tables if they do not exist."""
    cur = conn.cursor()
    try:
        for ddl in SCHEMA_DDL:
            cur.execute(ddl)
    finally:
        cur.close()
