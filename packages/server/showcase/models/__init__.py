# Table definitions: imported here so metadata is populated before create_all.
from .user import User  # noqa: F401
