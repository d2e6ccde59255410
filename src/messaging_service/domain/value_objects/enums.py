from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    INITIATOR = "initiator"
    COUNTERPART = "counterpart"
    TENANT_ADMIN = "tenant-admin"
