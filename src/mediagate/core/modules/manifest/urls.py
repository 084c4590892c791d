from urllib.parse import quote

TOKEN_PARAM = "token"


def with_token(uri: str, token: str | None) -> str:
    """Return ``uri`` with exactly one ``token`` query parameter.

    Works on the raw query string: any previous token is dropped and every other
    parameter is kept byte for byte, in order. With no token the parameter is
    removed.
    """
    base, hash_mark, fragment = uri.partition("#")
    path, _, query = base.partition("?")
    items = [item for item in query.split("&") if item.partition("=")[0] != TOKEN_PARAM] if query else []
    if token:
        items.append(f"{TOKEN_PARAM}={quote(token, safe='')}")
    rebuilt = f"{path}?{'&'.join(items)}" if items else path
    return f"{rebuilt}{hash_mark}{fragment}"
