# CourseChat
# Classroom front end for an AI chat service

__version__ = "0.1.0"
