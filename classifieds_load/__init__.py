"""
Classifieds load generator (Locust-based).

Simulates concurrent users of the classifieds web application to
produce representative load for performance testing.  Each virtual user
runs a :class:`~classifieds_load.session.SessionSimulator` that either
logs in, browses 5-15 weighted-random pages and signs out, or issues a
single anonymous page request per iteration.

Key Concepts Demonstrated:
- Declarative weighted traffic mix shared by both user profiles
- Per-user state only, so users scale out without coordination
- Failed checks reported through Locust, never aborting a virtual user
- Environment-driven configuration validated once at startup
"""

__version__ = "0.1.0"
