"""
Component models and the transformer that validates raw backend rows.

Rows come back from the backend as plain dicts. They are turned into
Component models here so the rest of the app never touches raw JSON.
"""

from datetime import datetime
from typing import Any, Optional

import pydantic
from pydantic import BaseModel, Field, field_validator
from rich.console import Console

console = Console()


def _clean_tags(v: Optional[list]) -> list[str]:
    """Strip, drop blanks, drop exact duplicates. Order is kept."""
    if not v:
        return []
    seen = set()
    result = []
    for item in v:
        cleaned = str(item).strip()
        if cleaned and cleaned not in seen:
            seen.add(cleaned)
            result.append(cleaned)
    return result


def _require_text(v: Optional[str], field_name: str) -> str:
    if v is None or not str(v).strip():
        raise ValueError(f"{field_name} is required")
    return v


class Component(BaseModel):
    """One catalog entry as stored by the backend."""

    id: str
    user_id: Optional[str] = None
    name: str
    code: str = ""
    image_url: str = ""
    tags: list[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def coerce_identifier(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        return str(v)

    @field_validator("tags", mode="before")
    @classmethod
    def clean_tags(cls, v: Optional[list]) -> list[str]:
        return _clean_tags(v)

    @field_validator("image_url", "code", mode="before")
    @classmethod
    def none_to_empty(cls, v: Optional[str]) -> str:
        return v or ""


class ComponentDraft(BaseModel):
    """Fields sent to the backend when creating a component."""

    name: str
    code: str
    image_url: str
    tags: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def clean_name(cls, v: str) -> str:
        return _require_text(v, "Name").strip()

    @field_validator("code")
    @classmethod
    def check_code(cls, v: str) -> str:
        # Code is stored verbatim, only blank input is refused
        return _require_text(v, "Code")

    @field_validator("image_url")
    @classmethod
    def check_image_url(cls, v: str) -> str:
        return _require_text(v, "Image").strip()

    @field_validator("tags", mode="before")
    @classmethod
    def clean_tags(cls, v: Optional[list]) -> list[str]:
        return _clean_tags(v)


class ComponentUpdate(BaseModel):
    """Partial update for an existing component. Image and id never change."""

    name: str
    code: str
    tags: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def clean_name(cls, v: str) -> str:
        return _require_text(v, "Name").strip()

    @field_validator("code")
    @classmethod
    def check_code(cls, v: str) -> str:
        return _require_text(v, "Code")

    @field_validator("tags", mode="before")
    @classmethod
    def clean_tags(cls, v: Optional[list]) -> list[str]:
        return _clean_tags(v)


def describe_validation_error(exc: pydantic.ValidationError) -> str:
    """Turn a pydantic error into one short sentence for the user."""
    messages = []
    for error in exc.errors():
        msg = error.get("msg", "")
        # pydantic prefixes custom ValueErrors with "Value error, "
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        if msg and msg not in messages:
            messages.append(msg)
    return "; ".join(messages) if messages else "Invalid input"


class ComponentTransformer:
    """Transforms raw backend rows into validated Component models."""

    def transform(self, row: dict) -> Optional[Component]:
        """Transform one row. Returns None when the row is unusable."""
        try:
            return Component.model_validate(row)
        except pydantic.ValidationError as e:
            console.print(
                f"[yellow]Skipping malformed component row {row.get('id')!r}: "
                f"{describe_validation_error(e)}[/yellow]"
            )
            return None

    def transform_batch(self, rows: list[dict]) -> list[Component]:
        """Transform a batch of rows, keeping input order."""
        results = []
        for row in rows or []:
            transformed = self.transform(row)
            if transformed:
                results.append(transformed)
        return results
