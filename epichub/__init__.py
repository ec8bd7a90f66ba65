"""EPIC Hub: projects, tasks and project files over a small JSON API"""

__version__ = '1.0.0'
