from dbexplorer.models.schema import BackendKind

# Checked in order; the first substring found decides the kind.
_KEYWORD_RULES: list[tuple[str, BackendKind]] = [
    ("mongo", BackendKind.MONGODB),
    ("postgres", BackendKind.POSTGRESQL),
    ("mysql", BackendKind.MYSQL),
    ("firestore.googleapis", BackendKind.FIREBASE),
    ("supabase", BackendKind.SUPABASE),
]


def detect(connection_string: str | None) -> BackendKind:
    """Classify a connection string or URL by syntactic cues only. Never raises."""
    if not connection_string:
        return BackendKind.UNKNOWN

    for keyword, kind in _KEYWORD_RULES:
        if keyword in connection_string:
            return kind
    if connection_string.startswith("http"):
        return BackendKind.REST_API
    return BackendKind.UNKNOWN
