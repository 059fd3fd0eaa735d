"""Example: call the service layer directly, without Flask.

Controllers are thin; the use cases live in the services built by the container.
Run after `scripts/init_db.py` and `scripts/seed_db.py`.
"""

from timeclock.container import build_container
from timeclock.core.actor import Actor
from timeclock.main import load_settings


def main():
    settings = load_settings()
    container = build_container(db_config=settings.DB_CONFIG, settings=settings)

    user = container.auth_service.authenticate("admin@demo.local", "admin123")
    admin = Actor(account_id=user.account_id, profile_id=user.profile_id, company_id=user.company_id, role=user.role)

    for row in container.report_service.employee_hours(actor=admin):
        print(row)
    print(container.report_service.unclocked_users(actor=admin))


if __name__ == "__main__":
    main()
