from __future__ import annotations

from dataclasses import dataclass
from types import ModuleType
from typing import Optional

from .attendance.calculator.standard_calculator import StandardWorkTimeCalculator
from .attendance.factory import AttendanceStrategyFactory
from .attendance.handlers import LateArrivalHandler
from .attendance.model import AttendanceSaved
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.report import AttendanceReportService
from .attendance.service import AttendanceService
from .common.datetime_utils import parse_hhmm
from .core import constants
from .core.events import EventBus
from .database.connection import DBConfig, DatabaseConnection
from .employees.model import EmployeeChanged
from .employees.mysql_employee_repository import MySQLDepartmentRepository, MySQLEmployeeRepository
from .employees.service import DepartmentHeadcountHandler, DepartmentReportService, EmployeeService
from .leave.mysql_leave_repository import MySQLLeaveRepository, MySQLLeaveTypeRepository
from .leave.service import LeaveService
from .notifications.mysql_notification_repository import MySQLNotificationGateway, MySQLRoleRecipientResolver
from .notifications.service import Notifier
from .quotations.mysql_quotation_repository import MySQLLeadDirectory, MySQLQuotationRepository
from .quotations.service import QuotationService
from .skills.mysql_skill_repository import MySQLSkillRepository
from .skills.service import SkillReportService
from .support.mysql_party_resolver import MySQLPartyResolver
from .support.mysql_ticket_repository import MySQLSLAPolicyRepository, MySQLTicketRepository
from .support.service import TicketService
from .training.certificates import CertificateNumberGenerator
from .training.mysql_training_repository import MySQLEnrollmentRepository, MySQLTrainingRepository
from .training.service import TrainingService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    events: EventBus
    notifier: Notifier

    employees_repo: MySQLEmployeeRepository
    departments_repo: MySQLDepartmentRepository
    leaves_repo: MySQLLeaveRepository
    leave_types_repo: MySQLLeaveTypeRepository
    attendance_repo: MySQLAttendanceRepository
    trainings_repo: MySQLTrainingRepository
    enrollments_repo: MySQLEnrollmentRepository
    skills_repo: MySQLSkillRepository
    tickets_repo: MySQLTicketRepository
    sla_repo: MySQLSLAPolicyRepository
    quotations_repo: MySQLQuotationRepository

    employee_service: EmployeeService
    department_report_service: DepartmentReportService
    leave_service: LeaveService
    attendance_service: AttendanceService
    attendance_report_service: AttendanceReportService
    training_service: TrainingService
    skill_report_service: SkillReportService
    ticket_service: TicketService
    quotation_service: QuotationService


def build_container(*, db_config: dict, settings: Optional[ModuleType] = None) -> Container:
    def setting(name: str, default):
        return getattr(settings, name, default) if settings is not None else default

    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    events = EventBus()

    employees_repo = MySQLEmployeeRepository(conn)
    departments_repo = MySQLDepartmentRepository(conn)
    leaves_repo = MySQLLeaveRepository(conn)
    leave_types_repo = MySQLLeaveTypeRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    trainings_repo = MySQLTrainingRepository(conn)
    enrollments_repo = MySQLEnrollmentRepository(conn)
    skills_repo = MySQLSkillRepository(conn)
    tickets_repo = MySQLTicketRepository(conn)
    sla_repo = MySQLSLAPolicyRepository(conn)
    quotations_repo = MySQLQuotationRepository(conn)

    notifier = Notifier(MySQLNotificationGateway(conn), MySQLRoleRecipientResolver(conn))

    late_threshold = setting("LATE_THRESHOLD", None)
    events.subscribe(
        AttendanceSaved,
        LateArrivalHandler(
            attendance_repo,
            strategy_factory=AttendanceStrategyFactory(),
            threshold=parse_hhmm(late_threshold) if late_threshold else constants.DEFAULT_LATE_THRESHOLD,
        ),
    )
    events.subscribe(EmployeeChanged, DepartmentHeadcountHandler(employees_repo, departments_repo))

    employee_service = EmployeeService(employees_repo, departments_repo, events)
    department_report_service = DepartmentReportService(employees_repo, departments_repo)
    leave_service = LeaveService(leaves_repo, leave_types_repo, employees_repo, notifier=notifier)
    attendance_service = AttendanceService(
        attendance_repo,
        employees_repo,
        events,
        calculator=StandardWorkTimeCalculator(setting("STANDARD_WORKDAY_MINUTES", constants.STANDARD_WORKDAY_MINUTES)),
    )
    attendance_report_service = AttendanceReportService(attendance_repo, employees_repo)
    training_service = TrainingService(
        trainings_repo,
        enrollments_repo,
        employees_repo,
        notifier=notifier,
        numbering=CertificateNumberGenerator(
            enrollments_repo.certificate_number_exists,
            prefix=setting("CERTIFICATE_PREFIX", constants.CERTIFICATE_PREFIX),
        ),
        passing_score=setting("PASSING_SCORE", constants.DEFAULT_PASSING_SCORE),
    )
    skill_report_service = SkillReportService(skills_repo)
    ticket_service = TicketService(
        tickets_repo,
        sla_repo,
        notifier=notifier,
        parties=MySQLPartyResolver(conn),
        agent_role=setting("SUPPORT_AGENT_ROLE", constants.SUPPORT_AGENT_ROLE),
    )
    quotation_service = QuotationService(
        quotations_repo,
        leads=MySQLLeadDirectory(conn),
        notifier=notifier,
        invoice_due_days=setting("INVOICE_DUE_DAYS", constants.INVOICE_DUE_DAYS),
    )

    return Container(
        conn=conn,
        events=events,
        notifier=notifier,
        employees_repo=employees_repo,
        departments_repo=departments_repo,
        leaves_repo=leaves_repo,
        leave_types_repo=leave_types_repo,
        attendance_repo=attendance_repo,
        trainings_repo=trainings_repo,
        enrollments_repo=enrollments_repo,
        skills_repo=skills_repo,
        tickets_repo=tickets_repo,
        sla_repo=sla_repo,
        quotations_repo=quotations_repo,
        employee_service=employee_service,
        department_report_service=department_report_service,
        leave_service=leave_service,
        attendance_service=attendance_service,
        attendance_report_service=attendance_report_service,
        training_service=training_service,
        skill_report_service=skill_report_service,
        ticket_service=ticket_service,
        quotation_service=quotation_service,
    )
