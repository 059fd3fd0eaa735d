from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import mysql.connector
from werkzeug.security import generate_password_hash

from ..accounts.pins import PinHasher

logger = logging.getLogger(__name__)

DEMO_COMPANY_ID = "00000000-0000-4000-8000-000000000001"


@dataclass(frozen=True)
class DBTarget:
    host: str
    port: int
    user: str
    password: str
    database: str


def _as_target(db_config: dict) -> DBTarget:
    return DBTarget(
        host=str(db_config.get("host", "localhost")),
        port=int(db_config.get("port", 3306)),
        user=str(db_config.get("user", "root")),
        password=str(db_config.get("password", "")),
        database=str(db_config.get("database", "timeclock_db")),
    )


def _connect(target: DBTarget, *, with_database: bool = True):
    kwargs = dict(host=target.host, port=target.port, user=target.user, password=target.password, use_pure=True)
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal SQL splitter for schema/seed files (handles ';' inside quotes and '--' comments).
    buf: list[str] = []
    in_single = False
    in_double = False
    escape = False
    lines = [ln for ln in sql.splitlines() if not ln.lstrip().startswith("--")]

    for ch in "\n".join(lines):
        if escape:
            buf.append(ch)
            escape = False
            continue

        if ch == "\\":
            buf.append(ch)
            escape = True
            continue

        if ch == "'" and not in_double:
            in_single = not in_single
        elif ch == '"' and not in_single:
            in_double = not in_double
        elif ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue

        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _exec_sql(cur, sql: str) -> None:
    for stmt in _iter_sql_statements(sql):
        cur.execute(stmt)


def ensure_database_exists(db_config: dict) -> None:
    target = _as_target(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def apply_sql_file(db_config: dict, *, path: str | Path) -> None:
    target = _as_target(db_config)
    sql = _strip_create_db_and_use(Path(path).read_text(encoding="utf-8"))
    conn = _connect(target)
    try:
        cur = conn.cursor()
        _exec_sql(cur, sql)
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    apply_sql_file(db_config, path=schema_path)
    logger.info("Applied schema %s", schema_path)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    apply_sql_file(db_config, path=seed_path)
    logger.info("Applied seed %s", seed_path)


def ensure_demo_accounts(db_config: dict, *, pin_key: str) -> None:
    """Upsert a demo admin and a demo employee (PIN 1234) in the demo company."""
    pins = PinHasher(pin_key)
    target = _as_target(db_config)
    conn = _connect(target)
    try:
        cur = conn.cursor(dictionary=True)

        cur.execute("SELECT id FROM companies WHERE id=%s", (DEMO_COMPANY_ID,))
        if not cur.fetchone():
            raise RuntimeError("Demo company missing; run seed.sql first")

        def upsert(email: str, password: str | None, first: str, last: str, role: str, employee_id: str, pin: str | None):
            cur.execute("SELECT id, user_id FROM profiles WHERE company_id=%s AND email=%s", (DEMO_COMPANY_ID, email))
            profile = cur.fetchone()
            pin_hash = pins.hash(pin) if pin else None
            pin_lookup = pins.lookup(DEMO_COMPANY_ID, pin) if pin else None
            if profile:
                profile_id = profile["id"]
                account_id = profile["user_id"]
                cur.execute(
                    "UPDATE profiles SET first_name=%s, last_name=%s, status='active', pin_hash=%s, pin_lookup=%s WHERE id=%s",
                    (first, last, pin_hash, pin_lookup, profile_id),
                )
            else:
                profile_id = str(uuid.uuid4())
                account_id = None
                cur.execute(
                    """
                    INSERT INTO profiles (id, company_id, first_name, last_name, display_name, email,
                                          employee_id, pin_hash, pin_lookup, status)
                    VALUES (%s,%s,%s,%s,%s,%s,%s,%s,%s,'active')
                    """,
                    (profile_id, DEMO_COMPANY_ID, first, last, f"{first} {last}", email, employee_id, pin_hash, pin_lookup),
                )

            if password:
                password_hash = generate_password_hash(password)
                if account_id:
                    cur.execute("UPDATE accounts SET password_hash=%s, is_active=1 WHERE id=%s", (password_hash, account_id))
                else:
                    account_id = str(uuid.uuid4())
                    cur.execute(
                        "INSERT INTO accounts (id, email, password_hash, is_active) VALUES (%s,%s,%s,1)",
                        (account_id, email, password_hash),
                    )
                    cur.execute("UPDATE profiles SET user_id=%s WHERE id=%s", (account_id, profile_id))

            cur.execute("DELETE FROM user_roles WHERE profile_id=%s", (profile_id,))
            cur.execute(
                "INSERT INTO user_roles (id, user_id, profile_id, role) VALUES (%s,%s,%s,%s)",
                (str(uuid.uuid4()), account_id, profile_id, role),
            )

        upsert("admin@demo.local", "admin123", "Admin", "Demo", "admin", "A-001", None)
        upsert("employee@demo.local", None, "Erin", "Employee", "employee", "E-001", "1234")

        conn.commit()
    finally:
        conn.close()


def list_tables(db_config: dict) -> list[str]:
    target = _as_target(db_config)
    conn = _connect(target)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
