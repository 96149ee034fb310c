# school_admin/infrastructure/models.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserORM(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False, default="STUDENT", index=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    def __repr__(self) -> str:
        return f"UserORM(id={self.id!r}, email={self.email!r}, role={self.role!r})"


class GradingPolicyORM(Base):
    __tablename__ = "grading_policies"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(16), nullable=False, default="LETTER")
    # [{"letter": "A", "min_value": 90, "max_value": 100, "gpa_value": 4.0}, ...]
    scale: Mapped[list] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    classes: Mapped[list["ClassCohortORM"]] = relationship("ClassCohortORM", back_populates="grading_policy")

    def __repr__(self) -> str:
        return f"GradingPolicyORM(id={self.id!r}, name={self.name!r})"


class ClassCohortORM(Base):
    __tablename__ = "class_cohorts"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    level: Mapped[str] = mapped_column(String(8), nullable=False)
    grade: Mapped[int] = mapped_column(Integer, nullable=False)
    academic_year: Mapped[str] = mapped_column(String(9), nullable=False, index=True)
    capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # один классный руководитель на один класс
    homeroom_teacher_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
    )
    grading_policy_id: Mapped[int] = mapped_column(
        ForeignKey("grading_policies.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    homeroom_teacher: Mapped[Optional["UserORM"]] = relationship("UserORM")
    grading_policy: Mapped["GradingPolicyORM"] = relationship("GradingPolicyORM", back_populates="classes")
    enrollments: Mapped[list["EnrollmentORM"]] = relationship(
        "EnrollmentORM",
        back_populates="class_cohort",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    schedules: Mapped[list["ScheduleORM"]] = relationship(
        "ScheduleORM",
        back_populates="class_cohort",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"ClassCohortORM(id={self.id!r}, name={self.name!r}, academic_year={self.academic_year!r})"


class SubjectORM(Base):
    __tablename__ = "subjects"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str | None] = mapped_column(String(20), unique=True, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    schedules: Mapped[list["ScheduleORM"]] = relationship("ScheduleORM", back_populates="subject")

    def __repr__(self) -> str:
        return f"SubjectORM(id={self.id!r}, name={self.name!r}, code={self.code!r})"


class EnrollmentORM(Base):
    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("student_id", "class_id", "academic_year", name="uq_enrollment_student_class_year"),
        # не больше одного ACTIVE-зачисления ученика на учебный год
        Index(
            "uq_enrollment_active_student_year",
            "student_id",
            "academic_year",
            unique=True,
            sqlite_where=text("status = 'ACTIVE'"),
            postgresql_where=text("status = 'ACTIVE'"),
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    class_id: Mapped[int] = mapped_column(
        ForeignKey("class_cohorts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    academic_year: Mapped[str] = mapped_column(String(9), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="ACTIVE")
    enrolled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    student: Mapped["UserORM"] = relationship("UserORM")
    class_cohort: Mapped["ClassCohortORM"] = relationship("ClassCohortORM", back_populates="enrollments")

    def __repr__(self) -> str:
        return (f"EnrollmentORM(id={self.id!r}, student_id={self.student_id!r}, "
                f"class_id={self.class_id!r}, status={self.status!r})")


class ScheduleORM(Base):
    __tablename__ = "schedules"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    class_id: Mapped[int] = mapped_column(
        ForeignKey("class_cohorts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    subject_id: Mapped[int] = mapped_column(
        ForeignKey("subjects.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    teacher_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    day_of_week: Mapped[str] = mapped_column(String(9), nullable=False, index=True)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    room: Mapped[str | None] = mapped_column(String(50), nullable=True)

    class_cohort: Mapped["ClassCohortORM"] = relationship("ClassCohortORM", back_populates="schedules")
    subject: Mapped["SubjectORM"] = relationship("SubjectORM", back_populates="schedules")
    teacher: Mapped["UserORM"] = relationship("UserORM")

    def __repr__(self) -> str:
        return (f"ScheduleORM(id={self.id!r}, class_id={self.class_id!r}, day_of_week={self.day_of_week!r}, "
                f"start_time={self.start_time!r}, end_time={self.end_time!r})")


__all__ = [
    "Base",
    "UserORM",
    "GradingPolicyORM",
    "ClassCohortORM",
    "SubjectORM",
    "EnrollmentORM",
    "ScheduleORM",
]
