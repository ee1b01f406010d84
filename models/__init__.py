from models.teacher import TeacherProfile
from models.workload import ClassRecord, SubjectLoad, Workload, group_workload
from models.timeslot import TimeSlot
from models.timetable import GenerationResult, TimetableEntry, UnplacedLoad

__all__ = [
    "TeacherProfile",
    "ClassRecord",
    "SubjectLoad",
    "Workload",
    "group_workload",
    "TimeSlot",
    "GenerationResult",
    "TimetableEntry",
    "UnplacedLoad",
]
