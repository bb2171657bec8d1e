"""MyWay — multi-tenant learning-management backend.

Organizations own courses, courses own modules, materials, assignments
and discussions. Every request is authenticated with a bearer access
token and authorized against the caller's membership in the owning
organization.
"""

__version__ = "0.1.0"
