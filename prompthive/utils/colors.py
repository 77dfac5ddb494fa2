TAG_COLORS = (
    "#ef4444",
    "#f97316",
    "#f59e0b",
    "#22c55e",
    "#3b82f6",
    "#6366f1",
    "#8b5cf6",
    "#ec4899",
    "#f43f5e",
)


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value >= 0x80000000 else value


def _utf16_units(text: str) -> list[int]:
    data = text.encode("utf-16-le")
    return [int.from_bytes(data[i:i + 2], "little") for i in range(0, len(data), 2)]


def generate_color_from_name(name: str) -> str:
    """Pick a stable palette colour for a tag name.

    Hashes UTF-16 code units with ``(h << 5) - h + c`` and 32-bit wrap-around
    on the shift, so the browser computes the same colour for the same name.
    """
    hash_value = 0
    for unit in _utf16_units(name):
        hash_value = unit + (_to_int32(hash_value << 5) - hash_value)
    return TAG_COLORS[abs(hash_value) % len(TAG_COLORS)]
