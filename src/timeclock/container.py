from __future__ import annotations

from dataclasses import dataclass

from .accounts.mysql_account_repository import MySQLAccountRepository, MySQLRoleRepository
from .accounts.pins import PinHasher
from .accounts.service import AuthService, PinAuthService
from .badges.mysql_badge_repository import MySQLBadgeTemplateRepository, MySQLCertificationRepository
from .badges.service import BadgeService
from .common.rate_limit import RateLimiter
from .companies.mysql_company_repository import MySQLCompanyRepository, MySQLDepartmentRepository
from .companies.service import CompanyService
from .core.constants import (
    FACE_MATCH_THRESHOLD,
    LOOKUP_MAX_REQUESTS,
    LOOKUP_WINDOW_SECONDS,
    PIN_MAX_ATTEMPTS,
    PIN_WINDOW_SECONDS,
)
from .database.connection import DBConfig, DatabaseConnection
from .face.azure_client import build_face_client
from .face.mysql_face_repository import MySQLFaceVerificationRepository
from .face.service import FaceService
from .notifications.mailer import Mailer, build_mailer
from .profiles.mysql_profile_repository import MySQLProfileRepository
from .profiles.service import ProfileService
from .projects.mysql_project_repository import MySQLClientRepository, MySQLProjectRepository
from .projects.service import ProjectService
from .reports.calculator.standard_calculator import StandardPayrollCalculator
from .reports.service import ReportService
from .scheduled_reports.mysql_scheduled_report_repository import (
    MySQLExecutionRepository,
    MySQLRecipientRepository,
    MySQLScheduledReportRepository,
)
from .scheduled_reports.service import ScheduledReportService
from .schedules.mysql_schedule_repository import MySQLScheduleRepository
from .schedules.service import ScheduleService
from .storage.photo_store import PhotoStore
from .storage.service import PhotoService
from .tasks.mysql_task_repository import MySQLTaskActivityRepository, MySQLTaskTypeRepository
from .tasks.service import TaskService
from .time_entries.mysql_time_entry_repository import MySQLAdjustmentRepository, MySQLTimeEntryRepository
from .time_entries.service import AdminTimeService, TimeclockService
from .time_off.mysql_time_off_repository import MySQLTimeOffRepository
from .time_off.service import TimeOffService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    mailer: Mailer
    photo_store: PhotoStore

    auth_service: AuthService
    pin_auth_service: PinAuthService
    company_service: CompanyService
    profile_service: ProfileService
    timeclock_service: TimeclockService
    admin_time_service: AdminTimeService
    task_service: TaskService
    face_service: FaceService
    badge_service: BadgeService
    project_service: ProjectService
    schedule_service: ScheduleService
    time_off_service: TimeOffService
    report_service: ReportService
    scheduled_report_service: ScheduledReportService
    photo_service: PhotoService


def build_container(*, db_config: dict, settings) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    mailer = build_mailer(settings)
    public_base_url = getattr(settings, "PUBLIC_BASE_URL", "")

    accounts_repo = MySQLAccountRepository(conn)
    roles_repo = MySQLRoleRepository(conn)
    companies_repo = MySQLCompanyRepository(conn)
    departments_repo = MySQLDepartmentRepository(conn)
    profiles_repo = MySQLProfileRepository(conn)
    entries_repo = MySQLTimeEntryRepository(conn)
    adjustments_repo = MySQLAdjustmentRepository(conn)
    task_types_repo = MySQLTaskTypeRepository(conn)
    activities_repo = MySQLTaskActivityRepository(conn)
    verifications_repo = MySQLFaceVerificationRepository(conn)
    certifications_repo = MySQLCertificationRepository(conn)
    templates_repo = MySQLBadgeTemplateRepository(conn)
    clients_repo = MySQLClientRepository(conn)
    projects_repo = MySQLProjectRepository(conn)
    schedules_repo = MySQLScheduleRepository(conn)
    time_off_repo = MySQLTimeOffRepository(conn)
    reports_repo = MySQLScheduledReportRepository(conn)
    recipients_repo = MySQLRecipientRepository(conn)
    executions_repo = MySQLExecutionRepository(conn)

    calculator = StandardPayrollCalculator()
    task_service = TaskService(task_types_repo, activities_repo)
    photo_store = PhotoStore(
        getattr(settings, "STORAGE_DIR", "storage"),
        getattr(settings, "SECRET_KEY"),
        public_base_url=public_base_url,
    )
    photo_service = PhotoService(photo_store, entries_repo)
    pins = PinHasher(getattr(settings, "PIN_LOOKUP_KEY", None) or getattr(settings, "SECRET_KEY"))

    return Container(
        conn=conn,
        mailer=mailer,
        photo_store=photo_store,
        auth_service=AuthService(accounts_repo, roles_repo, profiles_repo),
        pin_auth_service=PinAuthService(
            profiles_repo,
            RateLimiter(max_attempts=PIN_MAX_ATTEMPTS, window_seconds=PIN_WINDOW_SECONDS),
            pins,
        ),
        company_service=CompanyService(companies_repo, departments_repo, profiles_repo, roles_repo),
        profile_service=ProfileService(
            profiles_repo,
            accounts_repo,
            roles_repo,
            departments_repo,
            lookup_limiter=RateLimiter(max_attempts=LOOKUP_MAX_REQUESTS, window_seconds=LOOKUP_WINDOW_SECONDS),
            pins=pins,
        ),
        timeclock_service=TimeclockService(entries_repo, profiles_repo, tasks=task_service, photos=photo_service),
        admin_time_service=AdminTimeService(entries_repo, adjustments_repo, companies_repo, profiles_repo, mailer),
        task_service=task_service,
        face_service=FaceService(
            verifications_repo,
            profiles_repo,
            client=build_face_client(settings),
            photos=photo_service,
            threshold=float(getattr(settings, "FACE_MATCH_THRESHOLD", FACE_MATCH_THRESHOLD)),
        ),
        badge_service=BadgeService(
            profiles_repo,
            companies_repo,
            certifications_repo,
            templates_repo,
            public_base_url=public_base_url,
        ),
        project_service=ProjectService(clients_repo, projects_repo, departments_repo),
        schedule_service=ScheduleService(schedules_repo, profiles_repo),
        time_off_service=TimeOffService(time_off_repo),
        report_service=ReportService(entries_repo, profiles_repo, schedules_repo, companies_repo, calculator=calculator),
        scheduled_report_service=ScheduledReportService(
            reports_repo,
            recipients_repo,
            executions_repo,
            entries_repo,
            companies_repo,
            mailer,
            calculator=calculator,
        ),
        photo_service=photo_service,
    )
