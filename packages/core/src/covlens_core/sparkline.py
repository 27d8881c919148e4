BLOCKS = "▁▂▃▄▅▆▇█"


def render(values: list[float], min_range: float = 5.0) -> str:
    """Render values (oldest first) as a row of block characters.

    The vertical scale is at least ``min_range`` wide, centred on the data, so
    a 0.1 point wobble does not look like a cliff. Fewer than two values
    render as an empty string.
    """
    if len(values) < 2:
        return ""

    low, high = min(values), max(values)
    span = high - low
    if span < min_range:
        mid = (low + high) / 2
        low = mid - min_range / 2
        span = min_range

    chars = []
    for value in values:
        normalized = (value - low) / span if span > 0 else 0
        index = min(len(BLOCKS) - 1, max(0, int(normalized * 7.999)))
        chars.append(BLOCKS[index])
    return "".join(chars)
