"""AttendSync package.

This package is organized by feature modules (attendance, students, classes,
reports, ...) with a thin Flask controller layer and service/repository layers.
"""
