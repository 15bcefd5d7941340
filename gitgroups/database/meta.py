"""
Meta functionality for the database.
"""

from .account import Account, Person
from .group import Group, Membership

ALL_TABLES = (
    Account,
    Group,
    Membership,
    Person,
)
