"""
drf-spectacular preprocessing hooks.
"""


def preprocess_exclude_admin(endpoints, **kwargs):
    """Exclude Django admin and internal endpoints from public API docs."""
    filtered = []
    for (path, path_regex, method, callback) in endpoints:
        # Exclude Django admin
        if path.startswith('/admin/'):
            continue
        # Exclude internal endpoints
        if path in ('/health/',):
            continue
        filtered.append((path, path_regex, method, callback))
    return filtered
