from __future__ import annotations
from typing import Optional, Sequence


class ImportRejected(ValueError):
    """A sheet could not be imported; nothing partial is returned."""


class HeaderNotFound(ImportRejected):
    def __init__(self, scanned: int):
        self.scanned = scanned
        super().__init__(
            f"no header row (Candidate ID / Candidate Name / Roll No) found in the first {scanned} rows"
        )


class MissingRequiredColumn(ImportRejected):
    def __init__(self, role: str, headers: Sequence[str] = (), suggestion: Optional[str] = None):
        self.role = role
        self.headers = list(headers)
        self.suggestion = suggestion
        msg = f"could not detect the '{role}' column"
        if suggestion:
            msg += f" (closest header: '{suggestion}')"
        super().__init__(msg)


class EmptySheet(ImportRejected):
    def __init__(self, sheet: str = "marks"):
        self.sheet = sheet
        super().__init__(f"{sheet} sheet has no data rows after the header")
