"""Input sanitization for citizen-submitted report fields."""

import html


def sanitize_string(value, max_length=None):
    """Trim, optionally truncate, then escape HTML entities in a string.

    Converts < > & " ' to their HTML entity equivalents so that
    reporter-supplied text cannot inject markup into dashboards. Truncation
    happens before escaping so an entity is never cut in half.
    """
    if not isinstance(value, str):
        return value
    value = value.strip()
    if max_length is not None:
        value = value[:max_length]
    return html.escape(value, quote=True)


def sanitize_dict(data, limits=None):
    """Recursively walk a dict/list structure and sanitize all string values.

    ``limits`` maps top-level keys to a maximum length for that field.
    Non-string leaves (int, float, bool, None) are returned unchanged.
    """
    limits = limits or {}
    if isinstance(data, dict):
        return {
            key: sanitize_string(value, limits.get(key)) if isinstance(value, str) else sanitize_dict(value)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [sanitize_dict(item) for item in data]
    if isinstance(data, str):
        return sanitize_string(data)
    return data
