from enum import Enum


class Role(str, Enum):
    USER = "user"
    CREATOR = "creator"
    OPS = "ops"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"
