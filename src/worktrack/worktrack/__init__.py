"""WorkTrack package.

This package is organized by feature modules (users, projects, reports, time entries, ...)
with a thin Flask controller layer and service/repository layers underneath.
"""
