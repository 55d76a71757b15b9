# backend/settings/__init__.py
"""
Pick a concrete module with DJANGO_SETTINGS_MODULE:
- backend.settings.dev   local runs and tests (manage.py default)
- backend.settings.prod  deployed service
"""
