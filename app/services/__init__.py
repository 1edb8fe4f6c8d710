"""
Service Organization
====================
Services are organized by their role:

**application/**
  Singleton services managed by ServiceContainer. One instance per application.
  Examples: CarePlanEngine, TaskScheduler, TaskLifecycle, PlantService

**ai/**
  LLM provider backends and the care advisor that turns plant context into
  prompts and parses the structured replies.
"""
