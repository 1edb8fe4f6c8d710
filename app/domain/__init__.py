"""
Domain Package
==============
Plant care entities, value objects and the exception hierarchy.

- care/: plants, care plans, tasks, care log and suggested actions
- exceptions.py: ``PlantCareError`` and its subclasses
"""
