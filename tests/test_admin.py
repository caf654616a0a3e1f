from deutschshikhi.admin import ADMIN_VIEWS, _json_full, _json_preview


def test_json_preview_escapes_and_trims():
    rendered = _json_preview({"html": "<b>fett</b>"}, max_chars=20)
    assert "<b>" not in rendered
    assert "&lt;b&gt;" in rendered
    assert rendered.endswith("…</pre>")


def test_json_preview_placeholder_for_empty_values():
    assert "—" in _json_preview(None)
    assert "Morgen" in _json_full("Morgen")


def test_admin_views_are_registered(client):
    from deutschshikhi.main import admin

    registered = {type(view) for view in admin.views}
    assert set(ADMIN_VIEWS) <= registered
