from __future__ import annotations

from timeclock.database.bootstrap import apply_schema, list_tables
from timeclock.main import DATABASE_DIR, configure_logging, load_settings


def main() -> None:
    settings = load_settings()
    configure_logging(settings)
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
    tables = list_tables(db_config)
    print(
        "OK: Applied schema.sql -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')} "
        f"(tables={len(tables)})"
    )


if __name__ == "__main__":
    main()
