from __future__ import annotations

from timeclock.database.bootstrap import apply_seed_sql, ensure_demo_accounts
from timeclock.main import DATABASE_DIR, configure_logging, load_settings


def main() -> None:
    settings = load_settings()
    configure_logging(settings)
    db_config = dict(settings.DB_CONFIG)

    apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
    ensure_demo_accounts(db_config, pin_key=getattr(settings, "PIN_LOOKUP_KEY", None) or settings.SECRET_KEY)

    print(
        "OK: Seeded database -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"
    )


if __name__ == "__main__":
    main()
