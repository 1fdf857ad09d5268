"""
courseadvisor – dialogue-driven course planner.

Resolves loosely spoken course names and codes against a fixed catalog and
walks the user through building a schedule cart with undo and a credit
overload check.
"""
