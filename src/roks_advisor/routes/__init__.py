"""API routers mounted by :mod:`roks_advisor.app`."""
