"""
Locust scenario user classes.

Each module in this package defines one Locust ``HttpUser`` subclass
that runs the session simulator in one of its modes:

- :mod:`.session_user`: login, 5-15 weighted browse actions, sign-out
- :mod:`.browse_user`: one anonymous weighted browse action per iteration

Both inherit from :class:`~classifieds_load.scenarios.base.ClassifiedsUser`,
which assigns the virtual-user id and builds the simulator.
"""
