from app.models.classroom import Classroom  # noqa: F401
from app.models.schedule_entry import DayOfWeek, ScheduleEntry, ScheduleStatus  # noqa: F401
from app.models.school_year import SchoolYear  # noqa: F401
from app.models.section import SchedulePattern, Section  # noqa: F401
from app.models.subject import Subject  # noqa: F401
from app.models.teacher import Teacher  # noqa: F401
