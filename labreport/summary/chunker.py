def split_into_chunks(text: str, chunk_chars: int) -> list[str]:
    """Slice text into consecutive chunks of at most chunk_chars characters."""
    if chunk_chars < 1:
        raise ValueError("chunk_chars must be positive")
    return [text[start:start + chunk_chars] for start in range(0, len(text), chunk_chars)]
