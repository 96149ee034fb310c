from __future__ import annotations

from sqlalchemy import case, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .models import ClassCohortORM, EnrollmentORM, GradingPolicyORM, ScheduleORM, SubjectORM, UserORM
from ..application.ports import (
    ConflictError,
    IClassCohortRepository,
    IEnrollmentRepository,
    IGradingPolicyRepository,
    IScheduleRepository,
    ISubjectRepository,
    IUserRepository,
)
from ..domain.entities import (
    ClassCohort,
    ClassSummary,
    DayOfWeek,
    Enrollment,
    EnrollmentStatus,
    GradeScaleItem,
    GradingPolicy,
    GradingPolicyType,
    Role,
    Schedule,
    SchoolLevel,
    Subject,
    SubjectSummary,
    User,
    UserSummary,
)
from ..domain.scheduling import normalize_room


# --- ORM -> domain

def user_to_domain(u: UserORM) -> User:
    return User(id=u.id, email=u.email, name=u.name, role=Role(u.role), active=u.active)


def user_summary(u: UserORM | None) -> UserSummary | None:
    return UserSummary(id=u.id, name=u.name, email=u.email) if u else None


def class_summary(c: ClassCohortORM | None) -> ClassSummary | None:
    if c is None:
        return None
    return ClassSummary(id=c.id, name=c.name, level=SchoolLevel(c.level), grade=c.grade,
                        academic_year=c.academic_year)


def scale_to_domain(scale: list[dict]) -> list[GradeScaleItem]:
    return [GradeScaleItem(i["letter"], i["min_value"], i["max_value"], i["gpa_value"]) for i in scale]


def scale_to_json(scale: list[GradeScaleItem]) -> list[dict]:
    return [
        {"letter": i.letter, "min_value": i.min_value, "max_value": i.max_value, "gpa_value": i.gpa_value}
        for i in scale
    ]


def policy_to_domain(p: GradingPolicyORM) -> GradingPolicy:
    return GradingPolicy(id=p.id, name=p.name, type=GradingPolicyType(p.type),
                         scale=scale_to_domain(p.scale), class_count=len(p.classes))


def cohort_to_domain(c: ClassCohortORM) -> ClassCohort:
    return ClassCohort(
        id=c.id,
        name=c.name,
        level=SchoolLevel(c.level),
        grade=c.grade,
        academic_year=c.academic_year,
        grading_policy_id=c.grading_policy_id,
        capacity=c.capacity,
        homeroom_teacher=user_summary(c.homeroom_teacher),
        grading_policy_name=c.grading_policy.name if c.grading_policy else None,
        enrollment_count=sum(1 for e in c.enrollments if e.status == EnrollmentStatus.ACTIVE.value),
        schedule_count=len(c.schedules),
    )


def subject_to_domain(s: SubjectORM) -> Subject:
    return Subject(id=s.id, name=s.name, code=s.code, description=s.description)


def enrollment_to_domain(e: EnrollmentORM) -> Enrollment:
    return Enrollment(
        id=e.id,
        student_id=e.student_id,
        class_id=e.class_id,
        academic_year=e.academic_year,
        status=EnrollmentStatus(e.status),
        enrolled_at=e.enrolled_at,
        student=user_summary(e.student),
        class_cohort=class_summary(e.class_cohort),
    )


def schedule_to_domain(s: ScheduleORM) -> Schedule:
    return Schedule(
        id=s.id,
        class_id=s.class_id,
        subject_id=s.subject_id,
        teacher_id=s.teacher_id,
        day_of_week=DayOfWeek(s.day_of_week),
        start_time=s.start_time,
        end_time=s.end_time,
        room=s.room,
        class_cohort=class_summary(s.class_cohort),
        subject=SubjectSummary(id=s.subject.id, name=s.subject.name, code=s.subject.code) if s.subject else None,
        teacher=user_summary(s.teacher),
    )


class SqlRepository:
    """Общая часть репозиториев: одна сессия на запрос, commit на каждую запись."""

    def __init__(self, db: Session): self.db = db

    def rollback(self) -> None:
        self.db.rollback()

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError(str(exc.orig)) from exc

    def _save(self, row):
        self.db.add(row); self._commit(); self.db.refresh(row)
        return row

    def _update(self, row, fields: dict):
        for key, value in fields.items():
            setattr(row, key, value)
        self._commit(); self.db.refresh(row)
        return row

    def _delete(self, row) -> None:
        self.db.delete(row); self._commit()

    def _get(self, model, pk: int, lock: bool = False):
        stmt = select(model).where(model.id == pk)
        if lock:
            # FOR UPDATE: на SQLite не генерируется
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()


class UserRepository(SqlRepository, IUserRepository):
    def get(self, user_id: int, lock: bool = False) -> User | None:
        row = self._get(UserORM, user_id, lock)
        return user_to_domain(row) if row else None

    def get_by_email(self, email: str) -> User | None:
        row = self.db.query(UserORM).filter(func.lower(UserORM.email) == email.lower()).first()
        return user_to_domain(row) if row else None

    def list(self, role: str | None = None, active: bool | None = None) -> list[User]:
        q = self.db.query(UserORM)
        if role:
            q = q.filter(UserORM.role == role.upper())
        if active is not None:
            q = q.filter(UserORM.active == active)
        return [user_to_domain(r) for r in q.order_by(UserORM.name, UserORM.id).all()]

    def create(self, email: str, name: str, password_hash: str, role: str) -> User:
        row = UserORM(email=email, name=name, password_hash=password_hash, role=role)
        return user_to_domain(self._save(row))

    def update(self, user_id: int, **fields) -> User:
        return user_to_domain(self._update(self._get(UserORM, user_id), fields))


class GradingPolicyRepository(SqlRepository, IGradingPolicyRepository):
    def get(self, policy_id: int) -> GradingPolicy | None:
        row = self._get(GradingPolicyORM, policy_id)
        return policy_to_domain(row) if row else None

    def get_by_name(self, name: str) -> GradingPolicy | None:
        row = self.db.query(GradingPolicyORM).filter(GradingPolicyORM.name == name).first()
        return policy_to_domain(row) if row else None

    def list(self) -> list[GradingPolicy]:
        rows = self.db.query(GradingPolicyORM).order_by(GradingPolicyORM.name).all()
        return [policy_to_domain(r) for r in rows]

    def create(self, name: str, type: str, scale: list[GradeScaleItem]) -> GradingPolicy:
        row = GradingPolicyORM(name=name, type=type, scale=scale_to_json(scale))
        return policy_to_domain(self._save(row))

    def update(self, policy_id: int, **fields) -> GradingPolicy:
        if "scale" in fields:
            fields["scale"] = scale_to_json(fields["scale"])
        return policy_to_domain(self._update(self._get(GradingPolicyORM, policy_id), fields))

    def delete(self, policy_id: int) -> None:
        self._delete(self._get(GradingPolicyORM, policy_id))

    def count_classes(self, policy_id: int) -> int:
        return self.db.query(ClassCohortORM).filter(ClassCohortORM.grading_policy_id == policy_id).count()


class ClassCohortRepository(SqlRepository, IClassCohortRepository):
    def get(self, class_id: int, lock: bool = False) -> ClassCohort | None:
        row = self._get(ClassCohortORM, class_id, lock)
        return cohort_to_domain(row) if row else None

    def get_by_homeroom_teacher(self, teacher_id: int) -> ClassCohort | None:
        row = self.db.query(ClassCohortORM).filter(ClassCohortORM.homeroom_teacher_id == teacher_id).first()
        return cohort_to_domain(row) if row else None

    def list(self, level: str | None = None, academic_year: str | None = None,
             search: str | None = None) -> list[ClassCohort]:
        q = self.db.query(ClassCohortORM)
        if level:
            q = q.filter(ClassCohortORM.level == level)
        if academic_year:
            q = q.filter(ClassCohortORM.academic_year == academic_year)
        if search:
            q = q.filter(ClassCohortORM.name.ilike(f"%{search}%"))
        rows = q.order_by(ClassCohortORM.academic_year.desc(), ClassCohortORM.grade, ClassCohortORM.name).all()
        return [cohort_to_domain(r) for r in rows]

    def create(self, **fields) -> ClassCohort:
        return cohort_to_domain(self._save(ClassCohortORM(**fields)))

    def update(self, class_id: int, **fields) -> ClassCohort:
        return cohort_to_domain(self._update(self._get(ClassCohortORM, class_id), fields))

    def delete(self, class_id: int) -> None:
        self._delete(self._get(ClassCohortORM, class_id))

    def count_active_enrollments(self, class_id: int) -> int:
        return (
            self.db.query(EnrollmentORM)
            .filter(EnrollmentORM.class_id == class_id, EnrollmentORM.status == EnrollmentStatus.ACTIVE.value)
            .count()
        )

    def count_enrollments(self, class_id: int) -> int:
        return self.db.query(EnrollmentORM).filter(EnrollmentORM.class_id == class_id).count()


class SubjectRepository(SqlRepository, ISubjectRepository):
    def get(self, subject_id: int) -> Subject | None:
        row = self._get(SubjectORM, subject_id)
        return subject_to_domain(row) if row else None

    def get_by_code(self, code: str) -> Subject | None:
        row = self.db.query(SubjectORM).filter(SubjectORM.code == code).first()
        return subject_to_domain(row) if row else None

    def list(self) -> list[Subject]:
        return [subject_to_domain(r) for r in self.db.query(SubjectORM).order_by(SubjectORM.name).all()]

    def create(self, **fields) -> Subject:
        return subject_to_domain(self._save(SubjectORM(**fields)))

    def update(self, subject_id: int, **fields) -> Subject:
        return subject_to_domain(self._update(self._get(SubjectORM, subject_id), fields))

    def delete(self, subject_id: int) -> None:
        self._delete(self._get(SubjectORM, subject_id))

    def count_schedules(self, subject_id: int) -> int:
        return self.db.query(ScheduleORM).filter(ScheduleORM.subject_id == subject_id).count()


class EnrollmentRepository(SqlRepository, IEnrollmentRepository):
    def get(self, enrollment_id: int) -> Enrollment | None:
        row = self._get(EnrollmentORM, enrollment_id)
        return enrollment_to_domain(row) if row else None

    def find(self, student_id: int, class_id: int, academic_year: str) -> Enrollment | None:
        row = (
            self.db.query(EnrollmentORM)
            .filter(
                EnrollmentORM.student_id == student_id,
                EnrollmentORM.class_id == class_id,
                EnrollmentORM.academic_year == academic_year,
            )
            .first()
        )
        return enrollment_to_domain(row) if row else None

    def find_in_other_class(self, student_id: int, academic_year: str,
                            class_id: int) -> Enrollment | None:
        # любое зачисление в другой класс этого года; ACTIVE в приоритете
        active_first = case((EnrollmentORM.status == EnrollmentStatus.ACTIVE.value, 0), else_=1)
        row = (
            self.db.query(EnrollmentORM)
            .filter(
                EnrollmentORM.student_id == student_id,
                EnrollmentORM.academic_year == academic_year,
                EnrollmentORM.class_id != class_id,
            )
            .order_by(active_first, EnrollmentORM.id)
            .first()
        )
        return enrollment_to_domain(row) if row else None

    def get_active_for_student(self, student_id: int, academic_year: str) -> Enrollment | None:
        row = (
            self.db.query(EnrollmentORM)
            .filter(
                EnrollmentORM.student_id == student_id,
                EnrollmentORM.academic_year == academic_year,
                EnrollmentORM.status == EnrollmentStatus.ACTIVE.value,
            )
            .first()
        )
        return enrollment_to_domain(row) if row else None

    def list(self, student_id: int | None = None, class_id: int | None = None,
             academic_year: str | None = None,
             status: EnrollmentStatus | None = None) -> list[Enrollment]:
        q = self.db.query(EnrollmentORM)
        if student_id is not None:
            q = q.filter(EnrollmentORM.student_id == student_id)
        if class_id is not None:
            q = q.filter(EnrollmentORM.class_id == class_id)
        if academic_year:
            q = q.filter(EnrollmentORM.academic_year == academic_year)
        if status is not None:
            q = q.filter(EnrollmentORM.status == EnrollmentStatus(status).value)
        rows = q.order_by(EnrollmentORM.enrolled_at.desc(), EnrollmentORM.id.desc()).all()
        return [enrollment_to_domain(r) for r in rows]

    def create(self, student_id: int, class_id: int, academic_year: str) -> Enrollment:
        row = EnrollmentORM(student_id=student_id, class_id=class_id, academic_year=academic_year,
                            status=EnrollmentStatus.ACTIVE.value)
        return enrollment_to_domain(self._save(row))

    def set_status(self, enrollment_id: int, status: EnrollmentStatus) -> Enrollment:
        row = self._get(EnrollmentORM, enrollment_id)
        return enrollment_to_domain(self._update(row, {"status": EnrollmentStatus(status).value}))

    def delete(self, enrollment_id: int) -> None:
        self._delete(self._get(EnrollmentORM, enrollment_id))


class ScheduleRepository(SqlRepository, IScheduleRepository):
    def get(self, schedule_id: int) -> Schedule | None:
        row = self._get(ScheduleORM, schedule_id)
        return schedule_to_domain(row) if row else None

    def list(self, class_id: int | None = None, teacher_id: int | None = None,
             subject_id: int | None = None, day_of_week: str | None = None) -> list[Schedule]:
        q = self.db.query(ScheduleORM)
        if class_id is not None:
            q = q.filter(ScheduleORM.class_id == class_id)
        if teacher_id is not None:
            q = q.filter(ScheduleORM.teacher_id == teacher_id)
        if subject_id is not None:
            q = q.filter(ScheduleORM.subject_id == subject_id)
        if day_of_week:
            q = q.filter(ScheduleORM.day_of_week == DayOfWeek(day_of_week).value)
        items = [schedule_to_domain(r) for r in q.all()]
        return sorted(items, key=lambda s: (s.day_of_week.order, s.start_time, s.id))

    def find_same_day(self, day_of_week: str, class_id: int, teacher_id: int,
                      room: str | None = None, exclude_id: int | None = None) -> list[Schedule]:
        who = [ScheduleORM.class_id == class_id, ScheduleORM.teacher_id == teacher_id]
        if normalize_room(room):
            # lower() в SQLite только для ASCII: имена кабинетов сравнивает find_conflict
            who.append(ScheduleORM.room.isnot(None))
        q = self.db.query(ScheduleORM).filter(
            ScheduleORM.day_of_week == DayOfWeek(day_of_week).value,
            or_(*who),
        )
        if exclude_id is not None:
            q = q.filter(ScheduleORM.id != exclude_id)
        return [schedule_to_domain(r) for r in q.order_by(ScheduleORM.id).all()]

    def create(self, **fields) -> Schedule:
        return schedule_to_domain(self._save(ScheduleORM(**fields)))

    def update(self, schedule_id: int, **fields) -> Schedule:
        return schedule_to_domain(self._update(self._get(ScheduleORM, schedule_id), fields))

    def delete(self, schedule_id: int) -> None:
        self._delete(self._get(ScheduleORM, schedule_id))
