from classtime.models.activity_log import ActivityLog  # noqa: F401
from classtime.models.classroom import Classroom, ClassroomType  # noqa: F401
from classtime.models.course import Course, course_teachers  # noqa: F401
from classtime.models.schedule import Schedule  # noqa: F401
from classtime.models.user import User, UserRole  # noqa: F401
