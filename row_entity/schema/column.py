"""Column model - one mapped field and its flag derivation."""

from __future__ import annotations

from dataclasses import dataclass

IGNORE_TAGS = frozenset({"ignore", "-"})

# token -> canonical flag name
_TOKENS: dict[str, str] = {
    "primaryKey": "primary_key",
    "primary_key": "primary_key",
    "autoIncrement": "auto_increment",
    "auto_increment": "auto_increment",
    "refuseUpdate": "refuse_update",
    "refuse_update": "refuse_update",
    "returning": "returning",
    "returningInsert": "returning_insert",
    "returning_insert": "returning_insert",
    "returningUpdate": "returning_update",
    "returning_update": "returning_update",
    "deprecated": "deprecated",
}


@dataclass(frozen=True)
class ColumnTag:
    """Parsed mapping annotation: column name plus raw flags."""

    db_field: str
    primary_key: bool = False
    auto_increment: bool = False
    refuse_update: bool = False
    returning_insert: bool = False
    returning_update: bool = False
    deprecated: bool = False


def parse_tag(tag: str) -> ColumnTag | None:
    """Parse ``"name,token,..."``. Returns None for ignored fields.

    Raises:
        ValueError: On an empty column name or an unknown token.
    """
    tag = tag.strip()
    if tag in IGNORE_TAGS:
        return None

    name, *tokens = (part.strip() for part in tag.split(","))
    if not name:
        raise ValueError(f"empty column name in tag {tag!r}")

    flags: dict[str, bool] = {}
    for token in tokens:
        if not token:
            continue
        try:
            flag = _TOKENS[token]
        except KeyError:
            raise ValueError(f"unknown token {token!r} in tag {tag!r}") from None
        if flag == "returning":
            flags["returning_insert"] = True
            flags["returning_update"] = True
        else:
            flags[flag] = True
    return ColumnTag(db_field=name, **flags)


@dataclass(frozen=True)
class Column:
    """Normalized description of one mapped field.

    ``struct_field`` is the attribute path from the mapped type down to the
    field (more than one element for embedded types).
    """

    struct_field: tuple[str, ...]
    db_field: str
    primary_key: bool = False
    auto_increment: bool = False
    refuse_update: bool = False
    returning_insert: bool = False
    returning_update: bool = False

    @classmethod
    def from_tag(cls, struct_field: tuple[str, ...], tag: ColumnTag) -> Column:
        """Build a column, applying the implication rules.

        primary key, auto increment and returning-on-update all imply
        refuse update.
        """
        refuse_update = (
            tag.refuse_update or tag.primary_key or tag.auto_increment or tag.returning_update
        )
        return cls(
            struct_field=struct_field,
            db_field=tag.db_field,
            primary_key=tag.primary_key,
            auto_increment=tag.auto_increment,
            refuse_update=refuse_update,
            returning_insert=tag.returning_insert,
            returning_update=tag.returning_update,
        )

    @property
    def attribute(self) -> str:
        """Dotted attribute path, for messages."""
        return ".".join(self.struct_field)

    def __str__(self) -> str:
        return self.db_field
