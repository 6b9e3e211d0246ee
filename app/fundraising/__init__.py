"""
Fundraising application.

Club fundraising projects and the mobile money donations made to them.
"""
