"""Field declaration helpers and field discovery.

Dataclasses declare mapped fields with :func:`db_field` / :func:`embedded`;
pydantic models use ``Field(json_schema_extra={"db": "..."})`` or
``{"embed": True}``.
"""

from __future__ import annotations

import dataclasses
import typing
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

TAG_KEY = "db"
EMBED_KEY = "embed"


def db_field(tag: str, **kwargs: Any) -> Any:
    """Declare a mapped dataclass field.

    Args:
        tag: ``"column[,token...]"``, e.g. ``"id,primaryKey,autoIncrement"``.
        **kwargs: Passed through to :func:`dataclasses.field`.
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[TAG_KEY] = tag
    return dataclasses.field(metadata=metadata, **kwargs)


def embedded(**kwargs: Any) -> Any:
    """Declare a dataclass field whose mapped columns are flattened into the parent."""
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[EMBED_KEY] = True
    return dataclasses.field(metadata=metadata, **kwargs)


@dataclass(frozen=True)
class DeclaredField:
    """One attribute of a mapped type, as declared."""

    name: str
    tag: str | None
    embed: bool


def is_pydantic_model(cls: Any) -> bool:
    return isinstance(cls, type) and issubclass(cls, BaseModel)


def is_mapped_shape(cls: Any) -> bool:
    """True for dataclass types and pydantic model types."""
    return isinstance(cls, type) and (dataclasses.is_dataclass(cls) or is_pydantic_model(cls))


def declared_fields(cls: type) -> list[DeclaredField]:
    """List the attributes of *cls* in declaration order."""
    if is_pydantic_model(cls):
        result = []
        for name, info in cls.model_fields.items():  # type: ignore[attr-defined]
            extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
            tag = extra.get(TAG_KEY)
            result.append(
                DeclaredField(
                    name=name,
                    tag=tag if isinstance(tag, str) else None,
                    embed=bool(extra.get(EMBED_KEY)),
                )
            )
        return result

    if dataclasses.is_dataclass(cls):
        return [
            DeclaredField(
                name=f.name,
                tag=f.metadata.get(TAG_KEY),
                embed=bool(f.metadata.get(EMBED_KEY)),
            )
            for f in dataclasses.fields(cls)
        ]

    raise TypeError(f"{cls!r} is neither a dataclass nor a pydantic model")


def field_type(cls: type, name: str) -> Any:
    """Resolve the annotated type of attribute *name* on *cls*."""
    if is_pydantic_model(cls):
        return cls.model_fields[name].annotation  # type: ignore[attr-defined]
    declared = {f.name: f.type for f in dataclasses.fields(cls)}[name]
    if isinstance(declared, type):
        return declared
    # string annotations (postponed evaluation)
    return typing.get_type_hints(cls)[name]


def attribute_names(cls: type) -> list[str]:
    return [f.name for f in declared_fields(cls)]
