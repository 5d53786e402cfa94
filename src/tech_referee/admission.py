"""Admission control seam for the referee endpoint."""

from __future__ import annotations

from typing import Protocol


class AdmissionPolicy(Protocol):
    """Decides whether a client may submit another comparison."""

    def admit_request(self, client_id: str) -> bool: ...


class AllowAllAdmission:
    """Default policy: every request is admitted."""

    def admit_request(self, client_id: str) -> bool:
        del client_id
        return True
