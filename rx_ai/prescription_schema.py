"""Schema for the vision model's answer. Anything else is discarded."""

from typing import List

from pydantic import BaseModel, Field, field_validator

MAX_NAME_LENGTH = 100


class PrescriptionScan(BaseModel):
    medicines: List[str] = Field(default_factory=list)

    @field_validator("medicines", mode="before")
    @classmethod
    def clean_names(cls, v) -> List[str]:
        """Strip, drop blanks/non-strings/overlong entries, de-duplicate case-insensitively."""
        if v is None:
            return []
        if not isinstance(v, list):
            raise ValueError("medicines must be a list")
        names: List[str] = []
        seen = set()
        for raw in v:
            if not isinstance(raw, str):
                continue
            name = " ".join(raw.split())
            if not name or len(name) > MAX_NAME_LENGTH:
                continue
            if name.lower() in seen:
                continue
            seen.add(name.lower())
            names.append(name)
        return names
