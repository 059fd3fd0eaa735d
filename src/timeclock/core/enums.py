from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles granted to an auth account inside a company."""

    ADMIN = "admin"
    SUPERVISOR = "supervisor"
    FOREMAN = "foreman"
    EMPLOYEE = "employee"


class ProfileStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class ClockAction(str, Enum):
    CLOCK_IN = "clock_in"
    CLOCK_OUT = "clock_out"
    BREAK = "break"


class AdjustmentType(str, Enum):
    RETROACTIVE_CLOCKOUT = "retroactive_clockout"
    AUTO_CLOSE_OVERTIME = "auto_close_overtime"
    MANUAL_EDIT = "manual_edit"


class EnrollmentStatus(str, Enum):
    NOT_ENROLLED = "not_enrolled"
    ENROLLED = "enrolled"
    FAILED = "failed"


class VerificationStatus(str, Enum):
    PASSED = "passed"
    FLAGGED = "flagged"
    SKIPPED = "skipped"
    ERROR = "error"


class ReviewStatus(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"


class TaskAction(str, Enum):
    START = "start"
    FINISH = "finish"


class TimeOffType(str, Enum):
    VACATION = "vacation"
    SICK = "sick"
    PERSONAL = "personal"
    OTHER = "other"


class RequestStatus(str, Enum):
    """Approval workflow state for time-off requests."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReportType(str, Enum):
    EMPLOYEE_TIMECARD = "employee_timecard"
    PROJECT_TIMECARD = "project_timecard"
    WEEKLY_PAYROLL = "weekly_payroll"
    MONTHLY_PROJECT_BILLING = "monthly_project_billing"


class ScheduleFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class ExecutionStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    NO_RECIPIENTS = "no_recipients"
