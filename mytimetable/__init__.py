"""
MyTimetable – weekly class timetable with recurrence expansion and calendar layout.
"""
