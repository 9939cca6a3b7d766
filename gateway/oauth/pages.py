"""
HTML pages served during the browser flow.

- Provider selection page (GET /authorize with several providers)
- Approval dialog (GET /<provider>/authorize without an approval cookie)

Every interpolated value is escaped.
"""

from html import escape

from gateway.core.domain import ClientInfo


_STYLE = """
    body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
           margin: 0; padding: 40px; background: #f5f5f5; color: #333; }
    .container { max-width: 440px; margin: 0 auto; background: white; padding: 32px;
                 border-radius: 8px; box-shadow: 0 2px 8px rgba(0,0,0,0.1); }
    h1 { text-align: center; font-size: 22px; margin-bottom: 24px; }
    .provider { display: block; padding: 12px 16px; margin: 8px 0; border-radius: 6px;
                border: 1px solid #ddd; text-decoration: none; color: #333; }
    .provider:hover { background: #f8f9fa; border-color: #007cba; }
    .logo { display: block; max-width: 160px; max-height: 48px; margin: 0 auto 16px; }
    .client { background: #f8f9fa; border-radius: 6px; padding: 12px 16px; margin: 16px 0; }
    .muted { color: #666; font-size: 14px; }
    .actions { display: flex; gap: 12px; justify-content: flex-end; margin-top: 24px; }
    button { padding: 10px 18px; border-radius: 6px; border: 1px solid #ddd;
             background: white; cursor: pointer; font-size: 15px; }
    button.primary { background: #007cba; border-color: #007cba; color: white; }
"""


def render_provider_selection(providers: list[tuple[str, str]], query_string: str) -> str:
    """
    Render the provider selection page.

    Args:
        providers: (path name, display name) pairs in display order
        query_string: Original /authorize query string, forwarded verbatim

    Returns:
        HTML document
    """
    suffix = f"?{query_string}" if query_string else ""
    links = "\n".join(
        f'<a class="provider" href="{escape(f"/{name}/authorize{suffix}")}">'
        f"{escape(display_name)}</a>"
        for name, display_name in providers
    )

    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>Choose OAuth Provider</title>
    <style>{_STYLE}</style>
</head>
<body>
    <div class="container">
        <h1>Choose Authentication Provider</h1>
        {links}
    </div>
</body>
</html>"""


def render_approval_dialog(
    *,
    action: str,
    state: str,
    client_id: str,
    client: ClientInfo | None,
    server_name: str,
    server_description: str,
    logo_url: str | None = None,
) -> str:
    """
    Render the approval dialog for a downstream client.

    Submitting the form POSTs the hidden `state` field back to `action`.

    Args:
        action: Form target (/<provider>/authorize)
        state: Encoded approval form state
        client_id: Requesting client id
        client: Registered client info, if the client is known
        server_name: Name of this gateway
        server_description: Provider-specific description
        logo_url: Provider logo

    Returns:
        HTML document
    """
    client_name = (client.client_name if client else None) or client_id

    details = [f'<div class="muted">Client ID: {escape(client_id)}</div>']
    if client and client.client_uri and client.client_uri.startswith(("https://", "http://")):
        details.append(
            f'<div class="muted">Website: <a href="{escape(client.client_uri)}">'
            f"{escape(client.client_uri)}</a></div>"
        )
    if client and client.redirect_uris:
        uris = ", ".join(escape(uri) for uri in client.redirect_uris)
        details.append(f'<div class="muted">Redirect URIs: {uris}</div>')

    details_html = "".join(details)
    logo = f'<img class="logo" src="{escape(logo_url)}" alt="">' if logo_url else ""

    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{escape(client_name)} | Authorization Request</title>
    <style>{_STYLE}</style>
</head>
<body>
    <div class="container">
        {logo}
        <h1>{escape(server_name)}</h1>
        <p class="muted">{escape(server_description)}</p>
        <div class="client">
            <strong>{escape(client_name)}</strong> is requesting access
            {details_html}
        </div>
        <p>This client will be able to act on your behalf using the tools of
        this server. If you approve, you will be redirected to sign in.</p>
        <form method="post" action="{escape(action)}">
            <input type="hidden" name="state" value="{escape(state)}">
            <div class="actions">
                <button type="button" onclick="window.history.back()">Cancel</button>
                <button type="submit" class="primary">Approve</button>
            </div>
        </form>
    </div>
</body>
</html>"""
