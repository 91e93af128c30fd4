def escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def contains(column, value: str):
    """Case-insensitive substring match, with LIKE wildcards taken literally."""
    return column.ilike(f"%{escape_like(value)}%", escape="\\")
