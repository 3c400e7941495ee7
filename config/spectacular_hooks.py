TAG_PATTERNS = [
    (lambda p: p.startswith("/api/v1/auth/jwt/"), "Authentication"),
    (lambda p: p.startswith("/api/v1/users/event-chats/"), "Event Chat"),
    (lambda p: p.startswith("/api/v1/users/"), "Users"),
    (lambda p: p.startswith("/api/v1/events/") and "/chat/" in p, "Event Chat"),
    (lambda p: p.startswith("/api/v1/audit/"), "Audit"),
    (lambda p: p == "/api/v1/schema/", "Meta"),
]


def group_tags(result, generator, request, public):
    """Group operations under one tag per API area.

    The `/api/` compatibility prefix is left out of the schema so every
    operation is documented once, under `/api/v1/`.
    """

    paths = result.get("paths", {})
    for path in [p for p in paths if p.startswith("/api/") and not p.startswith("/api/v1/")]:
        del paths[path]

    for path, operations in paths.items():
        tag = next((name for pred, name in TAG_PATTERNS if pred(path)), None)
        if tag is None:
            continue
        for op in operations.values():
            op["tags"] = [tag]
    return result
